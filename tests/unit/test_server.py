"""Tests for the ScssGuardServer class."""

import os

import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from scss_guard.server import ScssGuardServer, create_server, main
from scss_guard.config import ScssGuardConfig
from scss_guard.utils.errors import ConfigurationError


class TestScssGuardServer:
    """Test cases for ScssGuardServer."""

    def test_server_initialization(self, test_config: ScssGuardConfig):
        """Test server initialization with configuration."""
        server = ScssGuardServer(test_config)

        assert server.config == test_config
        assert server.mcp is not None
        assert server.logger is not None

    @patch("scss_guard.server.register_lint_tools")
    def test_tools_registered_with_config(self, mock_register, test_config: ScssGuardConfig):
        """Test the lint tools are registered against this server's config."""
        server = ScssGuardServer(test_config)

        mock_register.assert_called_once_with(server.mcp, test_config)

    @patch("scss_guard.server.register_lint_tools")
    def test_tool_registration_failure(self, mock_register, test_config: ScssGuardConfig):
        """Test server behavior when tool registration fails."""
        mock_register.side_effect = Exception("Registration failed")

        with pytest.raises(ConfigurationError) as exc_info:
            ScssGuardServer(test_config)

        assert "Tool registration failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_start(self, test_config: ScssGuardConfig):
        """Test server start method."""
        server = ScssGuardServer(test_config)

        with patch.object(server.mcp, "run_async", new_callable=AsyncMock) as mock_run:
            await server.start()
            mock_run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_server_start_failure(self, test_config: ScssGuardConfig):
        """Test server behavior when start fails."""
        server = ScssGuardServer(test_config)

        with patch.object(server.mcp, "run_async", side_effect=Exception("Start failed")):
            with pytest.raises(Exception) as exc_info:
                await server.start()

            assert "Start failed" in str(exc_info.value)

    def test_server_run_keyboard_interrupt(self, test_config: ScssGuardConfig):
        """Test server behavior on keyboard interrupt."""
        server = ScssGuardServer(test_config)

        with patch("scss_guard.server.asyncio.run", side_effect=KeyboardInterrupt()) as mock_run:
            server.run()

        mock_run.call_args[0][0].close()

    def test_server_run_exception(self, test_config: ScssGuardConfig):
        """Test server behavior on general exception."""
        server = ScssGuardServer(test_config)

        with patch("scss_guard.server.asyncio.run", side_effect=Exception("Runtime error")) as mock_run:
            with patch("sys.exit") as mock_exit:
                server.run()
                mock_exit.assert_called_once_with(1)

        mock_run.call_args[0][0].close()


class TestCreateServer:
    """Test cases for create_server function."""

    def test_create_server_default_config(self):
        """Test creating server with default configuration."""
        with patch("scss_guard.server.load_config") as mock_load:
            mock_load.return_value = ScssGuardConfig()

            server = create_server()

            assert isinstance(server, ScssGuardServer)
            mock_load.assert_called_once_with(None)

    def test_create_server_custom_config_path(self):
        """Test creating server with custom config path."""
        config_path = "/custom/scss-guard.yaml"

        with patch("scss_guard.server.load_config") as mock_load:
            mock_load.return_value = ScssGuardConfig()

            server = create_server(config_path)

            assert isinstance(server, ScssGuardServer)
            mock_load.assert_called_once_with(config_path)

    def test_create_server_failure(self):
        """Test create_server behavior on failure."""
        with patch("scss_guard.server.load_config", side_effect=ConfigurationError("Config error")):
            with patch("sys.exit") as mock_exit:
                with patch("builtins.print") as mock_print:
                    create_server()

                    mock_print.assert_called_once()
                    assert "Failed to create server" in mock_print.call_args[0][0]
                    mock_exit.assert_called_once_with(1)


class TestMain:
    """Test cases for main entry point."""

    def test_main_default_args(self):
        """Test main function with default arguments."""
        with patch("sys.argv", ["scss-guard-mcp"]):
            with patch("scss_guard.server.create_server") as mock_create:
                mock_server = MagicMock()
                mock_create.return_value = mock_server

                main()

                mock_create.assert_called_once_with(None)
                mock_server.run.assert_called_once()

    def test_main_with_config(self):
        """Test main function with config argument."""
        with patch("sys.argv", ["scss-guard-mcp", "--config", "/path/to/scss-guard.yaml"]):
            with patch("scss_guard.server.create_server") as mock_create:
                mock_server = MagicMock()
                mock_create.return_value = mock_server

                main()

                mock_create.assert_called_once_with("/path/to/scss-guard.yaml")
                mock_server.run.assert_called_once()

    def test_main_with_log_level(self):
        """Test main function with log level argument."""
        with patch("sys.argv", ["scss-guard-mcp", "--log-level", "DEBUG"]):
            with patch("scss_guard.server.create_server") as mock_create:
                with patch.dict("os.environ", {}, clear=True):
                    mock_create.return_value = MagicMock()

                    main()
                    assert os.environ["LOG_LEVEL"] == "DEBUG"

    def test_main_with_version(self):
        """Test main function with version argument."""
        with patch("sys.argv", ["scss-guard-mcp", "--version"]):
            with pytest.raises(SystemExit) as exc_info:
                main()

            assert exc_info.value.code == 0
