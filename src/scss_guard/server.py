"""MCP server exposing the linter and formatter, built on FastMCP."""

import asyncio
import os
import sys
from typing import Optional, Any

from fastmcp import FastMCP

from . import __version__
from .config import load_config, ScssGuardConfig
from .utils.logging_config import setup_logging, get_logger
from .utils.errors import ConfigurationError
from .tools.lint_tools import register_lint_tools

INSTRUCTIONS = (
    "Lint and format SCSS against the CSS/Sass style guide. Use lint_scss for "
    "source text, lint_scss_files for files on disk (adds cross-file checks), "
    "format_scss to get canonical formatting and list_rules for the rule catalog."
)


class ScssGuardServer:
    """Main scss-guard MCP server class."""

    def __init__(self, config: ScssGuardConfig):
        self.config = config
        self.logger = get_logger("server")

        self.mcp: Any = FastMCP(name="scss-guard", instructions=INSTRUCTIONS)

        self._register_tools()

        self.logger.info("scss-guard MCP server initialized")

    def _register_tools(self) -> None:
        """Register all MCP tools."""
        try:
            register_lint_tools(self.mcp, self.config)
            self.logger.info("Registered lint tools")

        except Exception as e:
            self.logger.error(f"Failed to register tools: {e}")
            raise ConfigurationError(f"Tool registration failed: {e}")

    async def start(self) -> None:
        """Start the MCP server."""
        try:
            self.logger.info("Starting scss-guard MCP server...")
            await self.mcp.run_async()
        except Exception as e:
            self.logger.error(f"Server failed to start: {e}")
            raise

    def run(self) -> None:
        """Run the server (blocking)."""
        try:
            asyncio.run(self.start())
        except KeyboardInterrupt:
            self.logger.info("Server stopped by user")
        except Exception as e:
            self.logger.error(f"Server error: {e}")
            sys.exit(1)


def create_server(config_path: Optional[str] = None) -> ScssGuardServer:
    """
    Create and configure the MCP server.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Configured ScssGuardServer instance
    """
    try:
        config = load_config(config_path)

        setup_logging(config.logging)

        server = ScssGuardServer(config)

        return server

    except Exception as e:
        print(f"Failed to create server: {e}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Main entry point for the server."""
    import argparse

    parser = argparse.ArgumentParser(description="scss-guard MCP server")
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level",
    )
    parser.add_argument("--version", action="version", version=__version__)

    args = parser.parse_args()

    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level

    server = create_server(args.config)
    server.run()


if __name__ == "__main__":
    main()
