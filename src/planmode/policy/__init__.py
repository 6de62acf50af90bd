"""Policy checks applied before tool execution."""

from .tool_gate import DevelopmentMode, ToolGate, ToolNotAllowedError

__all__ = ["DevelopmentMode", "ToolGate", "ToolNotAllowedError"]
