"""Tests for CLI commands using Typer's CliRunner."""

from unittest.mock import MagicMock

import pytest

from vmfleet.cli import app
from vmfleet.dispatch import DispatchResult
from vmfleet.instance_requests import MountRequest, StopRequest


@pytest.fixture
def fake_dispatcher(monkeypatch):
    """Dispatcher that records requests instead of printing them."""
    dispatcher = MagicMock()
    dispatcher.dispatch.side_effect = lambda command, request, callbacks=None: DispatchResult(
        success=True, command=command
    )
    monkeypatch.setattr("vmfleet.cli.get_dispatcher", lambda: dispatcher)
    return dispatcher


@pytest.fixture
def no_primary_config(tmp_path):
    config_file = tmp_path / "no-primary.yaml"
    config_file.write_text('client:\n  primary_name: ""\nlogging:\n  level: ERROR\n')
    return config_file


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_option(self, cli_runner):
        """Test --version displays version."""
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_option(self, cli_runner):
        """Test --help displays help."""
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "vmfleet" in result.output
        assert "workflows" in result.output
        assert "mount" in result.output


class TestWorkflowsCommand:
    """Tests for workflows command."""

    def test_lists_workflows(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["workflows", "--config", str(sample_config)])
        assert result.exit_code == 0
        assert "test-workflow1" in result.output
        assert "test-workflow2" in result.output
        assert "arch-only" not in result.output

    def test_shows_bundle_update_time(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["workflows", "-c", str(sample_config)])
        assert result.exit_code == 0
        assert "Updated" in result.output
        assert "UTC" in result.output

    def test_no_workflows(self, cli_runner, sample_config, monkeypatch):
        catalog = MagicMock()
        catalog.all_workflows.return_value = []
        monkeypatch.setattr("vmfleet.cli.get_catalog", lambda config: catalog)

        result = cli_runner.invoke(app, ["workflows", "-c", str(sample_config)])

        assert result.exit_code == 0
        assert "No workflows available" in result.output


class TestInfoCommand:
    """Tests for info command."""

    def test_shows_workflow(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["info", "test-workflow1", "-c", str(sample_config)])
        assert result.exit_code == 0
        assert "The first test workflow" in result.output
        assert "600s" in result.output

    def test_unknown_workflow(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["info", "phony", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "Unknown workflow: phony" in result.output

    def test_invalid_workflow(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["info", "invalid-timeout-workflow", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "Invalid timeout given in workflow" in result.output

    def test_requires_name(self, cli_runner):
        result = cli_runner.invoke(app, ["info"])
        # Typer returns exit code 2 for missing required arguments
        assert result.exit_code == 2


class TestPlanCommand:
    """Tests for plan command."""

    def test_workflow_defaults(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["plan", "test-workflow1", "-c", str(sample_config)])
        assert result.exit_code == 0
        assert "25G" in result.output
        assert "runcmd" in result.output
        assert "600s" in result.output

    def test_requested_values_kept(self, cli_runner, sample_config):
        result = cli_runner.invoke(
            app, ["plan", "test-workflow1", "--cpus", "8", "-m", "16G", "-n", "big", "-c", str(sample_config)]
        )
        assert result.exit_code == 0
        assert "16G" in result.output
        assert "big" in result.output

    def test_remote_image(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["plan", "test-workflow2", "-c", str(sample_config)])
        assert result.exit_code == 0
        assert "daily:bionic" in result.output

    def test_below_minimum(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["plan", "test-workflow1", "--cpus", "1", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "minimum is 2" in result.output

    def test_invalid_memory(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["plan", "test-workflow1", "-m", "lots", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "Invalid memory value: lots" in result.output

    def test_incompatible_workflow(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["plan", "arch-only", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "arch-only" in result.output

    def test_shows_help(self, cli_runner):
        result = cli_runner.invoke(app, ["plan", "--help"])
        assert result.exit_code == 0
        assert "--cpus" in result.output
        assert "--memory" in result.output
        assert "--disk" in result.output


class TestStopCommand:
    """Tests for stop command."""

    def test_stop_names(self, cli_runner, sample_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["stop", "foo", "bar", "--config", str(sample_config)])

        assert result.exit_code == 0
        command, request = fake_dispatcher.dispatch.call_args.args[:2]
        assert command == "stop"
        assert request == StopRequest(instance_names=["foo", "bar"])

    def test_stop_primary(self, cli_runner, sample_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["stop", "--time", "+10", "--config", str(sample_config)])

        assert result.exit_code == 0
        request = fake_dispatcher.dispatch.call_args.args[1]
        assert request.instance_names == ["primary"]
        assert request.time_minutes == 10

    def test_default_dispatcher_prints(self, cli_runner, sample_config):
        result = cli_runner.invoke(app, ["stop", "foo", "--config", str(sample_config)])
        assert result.exit_code == 0
        assert "Stopping foo" in result.output

    def test_cancel_short_flag(self, cli_runner, sample_config, fake_dispatcher):
        """Test -c is the short form of --cancel for stop."""
        result = cli_runner.invoke(app, ["stop", "foo", "-c", "--config", str(sample_config)])

        assert result.exit_code == 0
        request = fake_dispatcher.dispatch.call_args.args[1]
        assert request.cancel_shutdown is True

    def test_name_and_all(self, cli_runner, sample_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["stop", "foo", "--all", "--config", str(sample_config)])
        assert result.exit_code == 1
        assert "Cannot specify name when --all option set" in result.output
        fake_dispatcher.dispatch.assert_not_called()

    def test_primary_disabled(self, cli_runner, no_primary_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["stop", "--config", str(no_primary_config)])
        assert result.exit_code == 1
        assert "Name argument or --all is required" in result.output
        assert "the primary instance is disabled" in result.output

    def test_time_and_cancel(self, cli_runner, sample_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["stop", "foo", "-t", "5", "--cancel", "--config", str(sample_config)])
        assert result.exit_code == 1
        assert "Cannot set 'time' and 'cancel' options" in result.output

    def test_dispatch_failure(self, cli_runner, sample_config, monkeypatch):
        dispatcher = MagicMock()
        dispatcher.dispatch.return_value = DispatchResult(success=False, command="stop", errors=["daemon unavailable"])
        monkeypatch.setattr("vmfleet.cli.get_dispatcher", lambda: dispatcher)

        result = cli_runner.invoke(app, ["stop", "foo", "--config", str(sample_config)])

        assert result.exit_code == 1
        assert "daemon unavailable" in result.output


class TestMountCommand:
    """Tests for mount command."""

    def test_mount(self, cli_runner, sample_config, fake_dispatcher, tmp_path):
        result = cli_runner.invoke(
            app, ["mount", str(tmp_path), "foo:/mnt/src", "-u", "1000:501", "-c", str(sample_config)]
        )

        assert result.exit_code == 0
        command, request = fake_dispatcher.dispatch.call_args.args[:2]
        assert command == "mount"
        assert isinstance(request, MountRequest)
        assert request.target_paths[0].target_path == "/mnt/src"
        assert request.gid_mappings == []

    def test_missing_source(self, cli_runner, sample_config, fake_dispatcher):
        result = cli_runner.invoke(app, ["mount", "/nonexistent", "foo", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert 'Source path "/nonexistent" does not exist' in result.output

    def test_invalid_map(self, cli_runner, sample_config, fake_dispatcher, tmp_path):
        result = cli_runner.invoke(app, ["mount", str(tmp_path), "foo", "-g", "x", "-c", str(sample_config)])
        assert result.exit_code == 1
        assert "Invalid GID map given: x" in result.output

    def test_requires_target(self, cli_runner):
        result = cli_runner.invoke(app, ["mount", "/tmp"])
        assert result.exit_code == 2
