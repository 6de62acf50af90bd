"""CLI commands for running plan mode and managing stored plans."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from .config import (
    DEFAULT_CONFIG_NAME,
    ConfigError,
    PlanModeConfig,
    copy_config_template,
    load_config,
    write_config,
)
from .memory.schema import PlanRecord
from .memory.store import InvalidProjectDirectoryError, PlanFileCorruptError, PlanFileStore
from .phases import PHASE_ALLOWED_TOOLS, PHASE_DESCRIPTIONS, PHASE_LABELS, PHASE_SEQUENCE, PlanningPhase
from .planning.plan_manager import PlanManager
from .planning.session import PlanningSession
from .policy.tool_gate import DevelopmentMode
from .questions import (
    QUESTION_ICONS,
    Question,
    QuestionAnswer,
    QuestionConfig,
    QuestionManager,
    QuestionValidationError,
)
from .tools.editor import EditorLaunchError, resolve_editor

APP_HELP = "Plan mode: clarify, plan, and approve changes before any file is modified."
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_SKIPPED_DIRS = {".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv", "dist", "build"}
_MAX_PROJECT_FILES = 500

app = typer.Typer(help=APP_HELP)


@dataclass(slots=True)
class CliContext:
    """Objects resolved once per command invocation."""

    settings: PlanModeConfig
    plans: PlanManager


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Plan mode entry point."""
    ctx.obj = {"verbose": verbose}
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _resolve_context(ctx: typer.Context, config: str, root: Optional[Path]) -> CliContext:
    """Load configuration and build the plan manager for ``root``."""
    config_path = Path(config)
    try:
        data = load_config(config_path)
        settings = PlanModeConfig.from_mapping(data, base_dir=config_path.parent)
    except ConfigError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    if root is not None:
        settings.project_root = root.resolve()

    verbose = bool((ctx.obj or {}).get("verbose"))
    if not verbose:
        logging.getLogger("planmode").setLevel(settings.log_level)

    store = PlanFileStore(settings.project_root, plan_dir=settings.plan_dir)
    editor = resolve_editor(override=settings.editor) if settings.editor else None
    return CliContext(settings=settings, plans=PlanManager(store, editor=editor))


def _require_project_directory(plans: PlanManager, action: str) -> None:
    if not plans.is_valid_directory():
        typer.echo(f"Plans can only be {action} in project directories, not in your home directory.")
        raise typer.Exit(code=1)


def _load_existing(plans: PlanManager, slug: str) -> PlanRecord:
    try:
        record = plans.load_plan(slug)
    except (PlanFileCorruptError, ValueError) as error:
        typer.echo(f"Failed to load plan '{slug}': {error}")
        raise typer.Exit(code=1) from error
    if record is None:
        typer.echo(f"Plan '{slug}' does not exist. Use `planmode list` to see available plans.")
        raise typer.Exit(code=1)
    return record


def _phase_name(record: PlanRecord) -> str:
    return getattr(record.phase, "value", record.phase)


def _summarise(text: str, limit: int = 60) -> str:
    flattened = " ".join(text.split())
    if len(flattened) <= limit:
        return flattened
    return flattened[: limit - 3].rstrip() + "..."


def _collect_project_files(root: Path, limit: int = _MAX_PROJECT_FILES) -> List[str]:
    """Return up to ``limit`` project-relative file paths, skipping VCS and build dirs."""
    collected: List[str] = []
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in _SKIPPED_DIRS and not d.startswith("."))
        for name in sorted(files):
            collected.append((Path(current) / name).relative_to(root).as_posix())
            if len(collected) >= limit:
                return collected
    return collected


def _render_question(question: Question, number: int, total: int) -> None:
    """Print a question with numbered options."""
    typer.echo("")
    typer.echo(f"{QUESTION_ICONS[question.type]} Question {number} of {total} ({question.type.value})")
    typer.echo(question.template)
    if question.options:
        typer.echo("")
        for index, option in enumerate(question.options, start=1):
            detail = f" - {option.description}" if option.description else ""
            typer.echo(f"  {index}. {option.text}{detail}")
            if option.pros:
                typer.echo(f"     Pros: {', '.join(option.pros)}")
            if option.cons:
                typer.echo(f"     Cons: {', '.join(option.cons)}")


def _parse_response(question: Question, response: str) -> Optional[QuestionAnswer]:
    """Translate a typed response into an answer; ``None`` means skip."""
    text = response.strip()
    if text.lower() in {"s", "skip"}:
        return None

    tokens = [token.strip() for token in text.split(",") if token.strip()]
    if tokens and all(token.isdigit() for token in tokens):
        indices = [int(token) for token in tokens]
        if not question.allow_multiple:
            indices = indices[:1]
        selected = [
            question.options[index - 1].id for index in indices if 1 <= index <= len(question.options)
        ]
        if selected:
            return QuestionAnswer(question_id=question.id, selected_option_ids=selected)

    return QuestionAnswer(question_id=question.id, custom_text=text)


def _split_items(value: str, separator: str) -> List[str]:
    return [item.strip() for item in value.split(separator) if item.strip()]


def _run_questions(session: PlanningSession) -> None:
    while session.is_question_mode:
        question = session.current_question
        if question is None:
            break
        _render_question(question, session.question_number, session.total_questions)
        hint = "option number(s), free text" + (", or 's' to skip" if question.allow_skip else "")
        response = typer.prompt(f"Answer ({hint})")
        answer = _parse_response(question, response)
        try:
            if answer is None:
                session.skip()
            else:
                session.answer(answer)
        except QuestionValidationError as error:
            typer.echo(f"Error: {error}")


def _run_approval(session: PlanningSession) -> None:
    record = session.plan
    if record is None:
        return
    while True:
        choice = typer.prompt(
            "Approve plan? [n]ormal / [a]uto-accept / [e]dit / [d]iscard",
            default="n",
        ).strip().lower()
        if choice in {"n", "normal", "a", "auto-accept"}:
            mode = DevelopmentMode.AUTO_ACCEPT if choice.startswith("a") else DevelopmentMode.NORMAL
            session.approve(mode)
            typer.echo(f"✓ Plan approved! Switching to {mode.value} mode")
            return
        if choice in {"e", "edit"}:
            try:
                code = session.edit()
            except EditorLaunchError as error:
                typer.echo(f"Failed to open editor: {error}")
                continue
            typer.echo(f"Editor exited with code {code}.")
            continue
        if choice in {"d", "discard"}:
            session.discard()
            typer.echo("Plan discarded")
            return
        typer.echo(f"Unknown choice: {choice}")


@app.command()
def init(
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration file."),
) -> None:
    """Write the default configuration file."""
    config_path = Path(config)
    if config_path.exists() and not force:
        typer.echo(f"Configuration already exists at {config_path}; use --force to overwrite.")
        raise typer.Exit(code=1)
    write_config(config_path, copy_config_template())
    typer.echo(f"Wrote configuration to {config_path}")


@app.command()
def phases() -> None:
    """Show the planning phases and the tools each one allows."""
    for index, phase in enumerate(PHASE_SEQUENCE, start=1):
        tools = ", ".join(PHASE_ALLOWED_TOOLS[phase]) or "(none)"
        typer.echo(f"{index}. {PHASE_LABELS[phase]} [{phase.value}]")
        typer.echo(f"   {PHASE_DESCRIPTIONS[phase]}")
        typer.echo(f"   tools: {tools}")


@app.command()
def plan(
    ctx: typer.Context,
    request: Optional[str] = typer.Argument(None, help="What you want to change."),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Run an interactive plan-mode session for a request."""
    cli = _resolve_context(ctx, config, root)
    user_request = request or typer.prompt("What would you like to do?")

    questions = QuestionManager(
        config=QuestionConfig(max_questions=cli.settings.max_questions, allow_skip=cli.settings.allow_skip)
    )
    session = PlanningSession(cli.plans, questions=questions)
    try:
        record = session.start(user_request, _collect_project_files(cli.settings.project_root))
    except InvalidProjectDirectoryError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    typer.echo(f"Created plan {record.slug} ({cli.plans.markdown_path(record.slug)})")
    try:
        _run_questions(session)

        if session.phase is PlanningPhase.DESIGN:
            typer.echo(f"Phase: {session.planning.phase_label()}")
            body = typer.prompt("Implementation plan (blank to fill in later)", default="")
            files = typer.prompt("Files to modify (comma separated)", default="")
            steps = typer.prompt("Verification steps (separated by ';')", default="")
            if body.strip() or files.strip() or steps.strip():
                session.write_plan_file(
                    body.strip(),
                    files_to_modify=_split_items(files, ","),
                    verification_steps=_split_items(steps, ";"),
                )

        while session.phase is not None and session.phase is not PlanningPhase.EXIT:
            session.transition_to_next_phase()
            typer.echo(f"Phase: {session.planning.phase_label()}")

        _run_approval(session)
    finally:
        session.close()


@app.command("list")
def list_plans(
    ctx: typer.Context,
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """List saved plans, newest first."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "listed")

    plans = cli.plans.list_plans()
    typer.echo(f"Saved Plans ({len(plans)})")
    if not plans:
        typer.echo("No saved plans.")
        return
    for item in plans:
        created = item.record.created_at.strftime("%Y-%m-%d %H:%M")
        typer.echo(f"- {item.slug} [{_phase_name(item.record)}] {created} {_summarise(item.record.user_request)}")


@app.command()
def show(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Plan slug."),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Print a plan's markdown document."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "loaded")
    _load_existing(cli.plans, slug)
    bundle = cli.plans.load_plan_with_markdown(slug)
    if bundle is not None:
        typer.echo(bundle.markdown)


@app.command()
def delete(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Plan slug."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Delete a plan's markdown and JSON files."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "deleted")
    if not yes and not typer.confirm(f"Delete plan {slug}?"):
        raise typer.Exit(code=1)
    try:
        cli.plans.delete_plan(slug)
    except (OSError, ValueError) as error:
        typer.echo(f"Failed to delete plan '{slug}': {error}")
        raise typer.Exit(code=1) from error
    typer.echo(f"Deleted plan {slug}")


@app.command()
def stats(
    ctx: typer.Context,
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Summarise stored plans by phase and age."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "listed")
    summary = cli.plans.get_plan_stats()
    typer.echo(f"Total plans: {summary.total_plans}")
    for phase, count in sorted(summary.phases.items()):
        typer.echo(f"- {phase}: {count}")
    if summary.oldest_plan and summary.newest_plan:
        typer.echo(f"Oldest: {summary.oldest_plan.isoformat()}")
        typer.echo(f"Newest: {summary.newest_plan.isoformat()}")


@app.command()
def search(
    ctx: typer.Context,
    keyword: str = typer.Argument(..., help="Case-insensitive search term."),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Find plans whose request, body, or clarifications mention a keyword."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "searched")
    matches = cli.plans.search_plans(keyword)
    if not matches:
        typer.echo(f"No plans match '{keyword}'.")
        return
    for item in matches:
        typer.echo(f"- {item.slug} [{_phase_name(item.record)}] {_summarise(item.record.user_request)}")


@app.command()
def edit(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Plan slug."),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", "-c", help="Path to the configuration file."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to config project.root)."),
) -> None:
    """Open a plan's markdown in $VISUAL / $EDITOR."""
    cli = _resolve_context(ctx, config, root)
    _require_project_directory(cli.plans, "edited")
    _load_existing(cli.plans, slug)
    try:
        code = cli.plans.open_in_editor(slug)
    except EditorLaunchError as error:
        typer.echo(f"Failed to open editor: {error}")
        raise typer.Exit(code=1) from error
    if code != 0:
        typer.echo(f"Editor exited with code {code}.")
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
