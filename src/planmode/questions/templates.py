"""Keyword-triggered question templates.

Three catalogs are matched against the lower-cased user request:

* ambiguity templates resolve vague wording ("optimize", "robust", ...),
* decision templates ask the user to choose among alternatives,
* the confirmation template restates assumptions before implementation work.

Catalog order matters: it is the tie-breaker when two templates match the same
number of keywords.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Tuple

from .schema import QuestionOption


@dataclass(slots=True)
class AmbiguityTemplate:
    id: str
    keywords: Tuple[str, ...]
    render: Callable[[str], str]
    options: List[QuestionOption] = field(default_factory=list)
    allow_skip: bool = True


@dataclass(slots=True)
class DecisionTemplate:
    id: str
    keywords: Tuple[str, ...]
    render: Callable[[str], str]
    options: List[QuestionOption] = field(default_factory=list)
    allow_multiple: bool = False


@dataclass(slots=True)
class ConfirmationTemplate:
    id: str
    triggers: Tuple[str, ...]
    render: Callable[[Mapping[str, Any]], str]
    confirm_label: str
    modify_label: str


def count_keyword_matches(keywords: Tuple[str, ...], lower_request: str) -> int:
    """Count how many ``keywords`` occur as substrings of ``lower_request``."""
    return sum(1 for keyword in keywords if keyword in lower_request)


def _performance_question(_request: str) -> str:
    return (
        'When you say "optimize performance", I need to understand your priorities better.\n\n'
        "Which metrics are most important?\n"
        "[1] Response time / latency\n"
        "[2] Memory usage\n"
        "[3] CPU utilization\n"
        "[4] Database query performance\n"
        "[5] Network bandwidth\n\n"
        "What's your target improvement?\n"
        "[1] 2x faster\n"
        "[2] 50% memory reduction\n"
        "[3] Handle 10x more users\n"
        "[4] Other specific target"
    )


def _error_handling_question(_request: str) -> str:
    return (
        "How should we handle errors and failures?\n\n"
        "What's your preferred approach?\n"
        "[1] Graceful degradation with fallbacks\n"
        "[2] Fail fast with detailed error messages\n"
        "[3] Retry mechanisms with exponential backoff\n"
        "[4] Circuit breaker pattern\n\n"
        "Should errors be:\n"
        "[1] Logged for debugging\n"
        "[2] Shown to users (sanitized)\n"
        "[3] Sent to monitoring service\n"
        "[4] All of the above"
    )


def _architecture_question(_request: str) -> str:
    return (
        "What architectural pattern would you prefer?\n\n"
        "[1] Monolithic - Single application with all components\n"
        "    Pros: Simple to develop, easier debugging, lower complexity\n"
        "    Cons: Harder to scale, tight coupling\n\n"
        "[2] Microservices - Separate services for different functions\n"
        "    Pros: Scalable, independent deployment, technology diversity\n"
        "    Cons: Network complexity, data consistency challenges\n\n"
        "[3] Modular Monolith - Single app with clear module boundaries\n"
        "    Pros: Balanced approach, future migration path\n"
        "    Cons: Still single deployment unit"
    )


def _database_question(_request: str) -> str:
    return (
        "What type of database would you prefer?\n\n"
        "[1] PostgreSQL - Relational database with strong consistency\n"
        "    Pros: ACID compliance, complex queries, data integrity\n"
        "    Cons: Vertical scaling, schema migrations\n\n"
        "[2] MongoDB - Document database with flexible schema\n"
        "    Pros: Schema flexibility, horizontal scaling, JSON native\n"
        "    Cons: Eventual consistency, no joins\n\n"
        "[3] SQLite - File-based relational database\n"
        "    Pros: Simple setup, zero configuration, portable\n"
        "    Cons: Single writer, limited scaling"
    )


def _authentication_question(_request: str) -> str:
    return (
        "What authentication approach should I implement?\n\n"
        "[1] JWT Tokens - Stateless tokens with digital signatures\n"
        "    Pros: Scalable, standard approach, no server state\n"
        "    Cons: Token management, cannot revoke easily\n\n"
        "[2] Session-based - Server-side session storage\n"
        "    Pros: Easy to revoke, secure, simple\n"
        "    Cons: Server memory usage, not scalable\n\n"
        "[3] OAuth2 Integration - Third-party authentication\n"
        "    Pros: No password management, social login, trusted\n"
        "    Cons: External dependency, complex setup"
    )


def _assumptions_question(assumptions: Mapping[str, Any]) -> str:
    items = "\n".join(f"- {key}: {json.dumps(value)}" for key, value in assumptions.items())
    return (
        "Before I start implementing, I want to confirm my understanding:\n\n"
        f"Current Requirements:\n{items}\n\n"
        "Are these assumptions correct? Should I proceed with this understanding?"
    )


AMBIGUITY_TEMPLATES: List[AmbiguityTemplate] = [
    AmbiguityTemplate(
        id="performance-requirements",
        keywords=("optimize", "performance", "fast", "efficient"),
        render=_performance_question,
        options=[
            QuestionOption(id="response-time", text="Response time", description="Focus on latency and speed"),
            QuestionOption(id="memory", text="Memory usage", description="Focus on memory efficiency"),
            QuestionOption(id="cpu", text="CPU utilization", description="Focus on CPU efficiency"),
            QuestionOption(id="database", text="Database performance", description="Focus on query optimization"),
        ],
    ),
    AmbiguityTemplate(
        id="error-handling",
        keywords=("error handling", "robust", "reliable"),
        render=_error_handling_question,
        options=[
            QuestionOption(
                id="graceful",
                text="Graceful degradation",
                description="Continue operating with reduced functionality",
            ),
            QuestionOption(id="fail-fast", text="Fail fast", description="Stop immediately and show detailed errors"),
            QuestionOption(id="retry", text="Retry mechanisms", description="Automatically retry failed operations"),
            QuestionOption(id="circuit-breaker", text="Circuit breaker", description="Stop calling failing services"),
        ],
    ),
]

DECISION_TEMPLATES: List[DecisionTemplate] = [
    DecisionTemplate(
        id="architecture-pattern",
        keywords=("build", "create", "implement", "architecture", "structure"),
        render=_architecture_question,
        options=[
            QuestionOption(
                id="monolithic",
                text="Monolithic",
                description="Simple, single-unit application",
                pros=["Simple to develop", "Easier debugging"],
                cons=["Harder to scale"],
            ),
            QuestionOption(
                id="microservices",
                text="Microservices",
                description="Distributed, independent services",
                pros=["Scalable", "Independent deployment"],
                cons=["Network complexity", "Data consistency"],
            ),
            QuestionOption(
                id="modular-monolith",
                text="Modular Monolith",
                description="Single app with module boundaries",
                pros=["Balanced approach", "Future migration path"],
                cons=["Single deployment unit"],
            ),
        ],
    ),
    DecisionTemplate(
        id="database-choice",
        keywords=("database", "storage", "persistence", "data"),
        render=_database_question,
        options=[
            QuestionOption(id="postgresql", text="PostgreSQL", description="Strong consistency, complex queries"),
            QuestionOption(id="mongodb", text="MongoDB", description="Flexible schema, horizontal scaling"),
            QuestionOption(id="sqlite", text="SQLite", description="Simple, portable, embedded"),
        ],
    ),
    DecisionTemplate(
        id="authentication-method",
        keywords=("authentication", "login", "auth", "user", "security"),
        render=_authentication_question,
        options=[
            QuestionOption(id="jwt", text="JWT Tokens", description="Stateless, scalable"),
            QuestionOption(id="session", text="Session-based", description="Server-controlled, easy to revoke"),
            QuestionOption(id="oauth2", text="OAuth2", description="Third-party authentication"),
        ],
    ),
]

CONFIRMATION_TEMPLATES: List[ConfirmationTemplate] = [
    ConfirmationTemplate(
        id="assumptions-confirmation",
        triggers=("create", "build", "implement"),
        render=_assumptions_question,
        confirm_label="Yes, proceed",
        modify_label="No, let me clarify",
    ),
]

ASSUMPTIONS_CONFIRMATION_ID = "assumptions-confirmation"

# Broader than the template's own triggers: any request that asks for new work.
CONFIRMATION_KEYWORDS: Tuple[str, ...] = ("create", "build", "implement", "add", "develop")
