"""Tests for request dispatchers."""

from unittest.mock import MagicMock

import pytest
from rich.console import Console

from vmfleet.dispatch import ConsoleDispatcher, DispatchCallbacks, DispatcherProtocol, DispatchResult
from vmfleet.instance_requests import IdMapping, MountRequest, StopRequest, TargetPath


@pytest.fixture
def console():
    return Console(record=True, width=120)


class TestDispatchResult:
    """Tests for DispatchResult dataclass."""

    def test_defaults(self):
        result = DispatchResult(success=True, command="stop")
        assert result.instance_names == []
        assert result.errors == []


class TestConsoleDispatcher:
    """Tests for ConsoleDispatcher."""

    def test_implements_protocol(self, console):
        dispatcher: DispatcherProtocol = ConsoleDispatcher(console)
        assert hasattr(dispatcher, "dispatch")

    def test_stop_request(self, console):
        dispatcher = ConsoleDispatcher(console)
        request = StopRequest(instance_names=["foo", "bar"], time_minutes=5)

        result = dispatcher.dispatch("stop", request)

        assert result.success is True
        assert result.command == "stop"
        assert result.instance_names == ["foo", "bar"]
        output = console.export_text()
        assert "foo, bar" in output
        assert "5" in output

    def test_stop_all(self, console):
        ConsoleDispatcher(console).dispatch("stop", StopRequest(all_instances=True))
        assert "all instances" in console.export_text()

    def test_mount_request(self, console):
        request = MountRequest(
            source_path="/home/user/src",
            target_paths=[TargetPath("foo", "/mnt/src")],
            uid_mappings=[IdMapping(1000, 1000)],
        )

        result = ConsoleDispatcher(console).dispatch("mount", request)

        assert result.instance_names == ["foo"]
        output = console.export_text()
        assert "foo:/mnt/src" in output
        assert "1000:1000" in output

    def test_callbacks(self, console):
        """Test progress callbacks are called."""
        on_start = MagicMock()
        on_complete = MagicMock()

        result = ConsoleDispatcher(console).dispatch(
            "stop", StopRequest(instance_names=["foo"]), DispatchCallbacks(on_start=on_start, on_complete=on_complete)
        )

        on_start.assert_called_once_with("Stopping foo")
        on_complete.assert_called_once_with(result)

    def test_unsupported_request(self, console):
        with pytest.raises(TypeError, match="Unsupported request type"):
            ConsoleDispatcher(console).dispatch("launch", object())
