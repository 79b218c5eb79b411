"""Tests for the decadog command line interface."""

from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from decadog import __version__
from decadog.config.settings import DecadogSettings
from decadog.engine.orchestrator import SprintOrchestrator
from decadog.exceptions import ConfigurationError, RemoteClientError
from decadog.main import build_orchestrator, cli
from decadog.providers.github_rest import GitHubClient
from decadog.providers.zenhub_rest import ZenHubClient


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def settings():
    return DecadogSettings(
        owner="reinfer",
        repo="platform",
        github_token="github-token",
        zenhub_token="zenhub-token",
    )


@pytest.fixture
def orchestrator():
    return MagicMock(spec=SprintOrchestrator)


@pytest.fixture
def patched(settings, orchestrator):
    """Patch settings loading and orchestrator construction."""

    @contextmanager
    def fake_build(loaded, command):
        yield orchestrator

    with (
        patch("decadog.main.DecadogSettings.load", return_value=settings) as mock_load,
        patch("decadog.main.build_orchestrator", side_effect=fake_build) as mock_build,
    ):
        yield mock_load, mock_build


# =============================================================================
# Commands
# =============================================================================


class TestCommands:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_sprint_commands(self, runner):
        result = runner.invoke(cli, ["sprint", "--help"])

        assert result.exit_code == 0
        for command in ("create", "sync", "start", "finish"):
            assert command in result.output

    @pytest.mark.parametrize(
        "command,method",
        [("create", "create"), ("sync", "sync"), ("start", "sync"), ("finish", "finish")],
    )
    def test_command_runs_workflow(self, runner, patched, orchestrator, command, method):
        result = runner.invoke(cli, ["sprint", command])

        assert result.exit_code == 0
        getattr(orchestrator, method).assert_called_once_with()

    def test_config_path_is_passed(self, runner, patched, tmp_path):
        mock_load, _ = patched
        config = tmp_path / "team.yml"

        runner.invoke(cli, ["--config", str(config), "sprint", "sync"])

        mock_load.assert_called_once_with(config)

    def test_command_name_passed_to_builder(self, runner, patched, settings):
        _, mock_build = patched

        runner.invoke(cli, ["sprint", "finish"])

        mock_build.assert_called_once_with(settings, "finish")


# =============================================================================
# Error handling
# =============================================================================


class TestErrorHandling:
    def test_error_reported_exit_zero_by_default(self, runner, patched, orchestrator):
        orchestrator.finish.side_effect = RemoteClientError("Github error: Not Found", status_code=404)

        result = runner.invoke(cli, ["sprint", "finish"])

        assert result.exit_code == 0
        assert "Error: Github error: Not Found (HTTP 404)" in result.output

    def test_exit_on_error_flag(self, runner, patched, orchestrator):
        orchestrator.finish.side_effect = RemoteClientError("Github error: Not Found", status_code=404)

        result = runner.invoke(cli, ["--exit-on-error", "sprint", "finish"])

        assert result.exit_code == 1

    def test_exit_on_error_setting(self, runner, settings, orchestrator):
        strict = settings.model_copy(update={"exit_on_error": True})

        @contextmanager
        def fake_build(loaded, command):
            yield orchestrator

        orchestrator.sync.side_effect = ConfigurationError("Invalid Github base url github")
        with (
            patch("decadog.main.DecadogSettings.load", return_value=strict),
            patch("decadog.main.build_orchestrator", side_effect=fake_build),
        ):
            result = runner.invoke(cli, ["sprint", "sync"])

        assert result.exit_code == 1

    def test_configuration_error_while_loading(self, runner):
        with patch(
            "decadog.main.DecadogSettings.load",
            side_effect=ConfigurationError("Configuration file not found: missing.yml"),
        ):
            result = runner.invoke(cli, ["--exit-on-error", "sprint", "create"])

        assert result.exit_code == 1
        assert "Error: Configuration file not found: missing.yml" in result.output

    def test_interrupt(self, runner, patched, orchestrator):
        orchestrator.sync.side_effect = KeyboardInterrupt

        result = runner.invoke(cli, ["sprint", "sync"])

        assert result.exit_code == 130
        assert "Interrupted by user" in result.output

    def test_unexpected_error(self, runner, patched, orchestrator):
        orchestrator.create.side_effect = RuntimeError("boom")

        result = runner.invoke(cli, ["--exit-on-error", "sprint", "create"])

        assert result.exit_code == 1
        assert "Unexpected error: boom" in result.output


# =============================================================================
# Orchestrator construction
# =============================================================================


class TestBuildOrchestrator:
    def test_requires_zenhub_token(self, settings):
        without_zenhub = settings.model_copy(update={"zenhub_token": None})

        with pytest.raises(ConfigurationError, match="Zenhub token required to sync sprint."):
            with build_orchestrator(without_zenhub, "sync"):
                pass

    def test_missing_zenhub_token_reported(self, runner, settings):
        without_zenhub = settings.model_copy(update={"zenhub_token": None})

        with patch("decadog.main.DecadogSettings.load", return_value=without_zenhub):
            result = runner.invoke(cli, ["sprint", "finish"])

        assert result.exit_code == 0
        assert "Error: Zenhub token required to finish sprint." in result.output

    def test_wires_clients_from_settings(self, settings):
        with build_orchestrator(settings, "sync") as orchestrator:
            context = orchestrator.context
            assert isinstance(context.tracker, GitHubClient)
            assert isinstance(context.overlay, ZenHubClient)
            assert (context.owner, context.repo) == ("reinfer", "platform")
            assert orchestrator.estimates == settings.estimates

        assert context.tracker.http.is_closed
        assert context.overlay.http.is_closed
