"""MCP tool implementations for the scss-guard server."""

from .lint_tools import register_lint_tools

__all__ = ["register_lint_tools"]
