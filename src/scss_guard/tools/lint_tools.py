"""MCP tools for linting and formatting SCSS."""

import asyncio
import time
from typing import Dict, Any, List, Optional

from ..config import ScssGuardConfig
from ..linter import Linter
from ..reporter import FileResult, Reporter
from ..utils.errors import ParseError, ToolExecutionError, format_parse_error
from ..utils.logging_config import log_tool_execution, log_tool_completion, get_logger


def _result_to_dict(result: FileResult) -> Dict[str, Any]:
    reporter = Reporter([result])
    return {
        "file": result.path,
        "parsed": result.ok,
        "parse_error": format_parse_error(result.parse_error) if result.parse_error else None,
        "violations": reporter.records(),
        "summary": reporter.summary(),
        "exit_code": reporter.exit_code,
    }


def register_lint_tools(mcp: Any, config: ScssGuardConfig) -> None:
    """Register all lint tools with the MCP server."""

    linter = Linter(config)
    logger = get_logger("lint_tools")

    @mcp.tool()
    async def lint_scss(content: str, filename: Optional[str] = None) -> Dict[str, Any]:
        """
        Lint SCSS content against the style guide.

        Args:
            content: The SCSS source to lint
            filename: Optional filename for error reporting

        Returns:
            Dictionary with violations, a summary and the CLI exit code
        """
        start_time = time.time()
        tool_name = "lint_scss"

        try:
            log_tool_execution(tool_name, {"content_length": len(content), "filename": filename})

            result = linter.lint_source(content, filename or "<string>")
            response = _result_to_dict(result)

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"SCSS linting failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def lint_scss_files(paths: List[str]) -> Dict[str, Any]:
        """
        Lint SCSS files, directories or glob patterns, including cross-file checks.

        Args:
            paths: Files, directories or glob patterns to lint

        Returns:
            Dictionary with all violation records, a summary and the exit code
        """
        start_time = time.time()
        tool_name = "lint_scss_files"

        try:
            log_tool_execution(tool_name, {"paths": paths})

            reporter = await asyncio.to_thread(linter.lint_paths, paths)
            response = {
                "files": [result.path for result in reporter.results],
                "violations": reporter.records(),
                "summary": reporter.summary(),
                "exit_code": reporter.exit_code,
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"SCSS linting failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def format_scss(content: str) -> Dict[str, Any]:
        """
        Format SCSS content canonically.

        Args:
            content: The SCSS source to format

        Returns:
            Dictionary with the formatted text and whether it changed
        """
        start_time = time.time()
        tool_name = "format_scss"

        try:
            log_tool_execution(tool_name, {"content_length": len(content)})

            try:
                sheet = linter.parse(content)
            except ParseError as e:
                logger.info(f"Cannot format unparseable content: {e}")
                response: Dict[str, Any] = {
                    "formatted": None,
                    "changed": False,
                    "error": format_parse_error(e),
                }
            else:
                formatted = linter.formatter.format(sheet)
                response = {
                    "formatted": formatted,
                    "changed": formatted != content,
                    "error": None,
                }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"SCSS formatting failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def list_rules() -> Dict[str, Any]:
        """
        List every lint rule with its severity and whether it is enabled.

        Returns:
            Dictionary with the rule catalog
        """
        start_time = time.time()
        tool_name = "list_rules"

        try:
            log_tool_execution(tool_name, {})

            rules = linter.engine.catalog()
            response = {
                "rules": rules,
                "enabled_count": sum(1 for rule in rules if rule["enabled"]),
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Listing rules failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)
