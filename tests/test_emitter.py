"""Unit tests for the typed event emitter."""
import pytest
from unittest.mock import Mock

from core.exceptions import InvalidEventPayload, UnknownEvent
from events.emitter import EVENTS, Emitter


class TestEmitter:
    """Tests for subscribing, emitting and catalog validation."""

    def test_emit_with_empty_payload(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        emitter.on("app.booting", listener)

        # Act
        had_listeners = emitter.emit("app.booting", {})

        # Assert
        listener.assert_called_once_with({})
        assert had_listeners is True

    def test_emit_without_listeners_returns_false(self):
        assert Emitter().emit("app.booted", {}) is False

    def test_container_resolving_payload_is_delivered(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        payload = {"abstract": "LoggerService", "instance": {"foo": "bar"}}
        emitter.on("container.resolving", listener)

        # Act
        emitter.emit("container.resolving", payload)

        # Assert
        listener.assert_called_once_with(payload)

    def test_dispatch_is_alias_for_emit(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        payload = {"method": "GET", "url": "/api/users"}
        emitter.on("request.received", listener)

        # Act
        result = emitter.dispatch("request.received", payload)

        # Assert
        listener.assert_called_once_with(payload)
        assert result is None

    def test_exception_thrown_carries_error(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        error = RuntimeError("Something went wrong")
        emitter.on("exception.thrown", listener)

        # Act
        emitter.emit("exception.thrown", {"error": error})

        # Assert
        delivered = listener.call_args[0][0]["error"]
        assert delivered is error
        assert str(delivered) == "Something went wrong"

    def test_multiple_listeners_run_in_registration_order(self):
        # Arrange
        emitter = Emitter()
        calls = []
        emitter.on("app.booted", lambda payload: calls.append("first"))
        emitter.on("app.booted", lambda payload: calls.append("second"))

        # Act
        emitter.dispatch("app.booted", {})

        # Assert
        assert calls == ["first", "second"]
        assert emitter.listener_count("app.booted") == 2

    def test_once_listener_runs_a_single_time(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        emitter.once("app.terminating", listener)

        # Act
        emitter.emit("app.terminating", {})
        emitter.emit("app.terminating", {})

        # Assert
        listener.assert_called_once_with({})
        assert emitter.listener_count("app.terminating") == 0

    def test_off_removes_listener(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        emitter.on("app.booted", listener)

        # Act
        emitter.off("app.booted", listener)
        emitter.emit("app.booted", {})

        # Assert
        listener.assert_not_called()

    def test_off_removes_once_listener_by_original_callable(self):
        # Arrange
        emitter = Emitter()
        listener = Mock()
        emitter.once("app.booted", listener)

        # Act
        emitter.off("app.booted", listener)

        # Assert
        assert emitter.listeners("app.booted") == []

    def test_remove_all_listeners(self):
        # Arrange
        emitter = Emitter()
        emitter.on("app.booted", Mock())
        emitter.on("app.booting", Mock())

        # Act
        emitter.remove_all_listeners("app.booted")

        # Assert
        assert emitter.listener_count("app.booted") == 0
        assert emitter.listener_count("app.booting") == 1
    def test_remove_all_listeners_without_event_clears_everything(self):
        # Arrange
        emitter = Emitter()
        emitter.on("app.booted", Mock())
        emitter.on("app.booting", Mock())

        # Act
        emitter.remove_all_listeners()

        # Assert
        assert emitter.listener_count("app.booted") == 0
        assert emitter.listener_count("app.booting") == 0


    def test_listener_errors_propagate(self):
        # Arrange
        emitter = Emitter()
        emitter.on("app.booted", Mock(side_effect=ValueError("listener failed")))

        # Assert
        with pytest.raises(ValueError):
            emitter.emit("app.booted", {})

    def test_unknown_event_is_rejected(self):
        # Arrange
        emitter = Emitter()

        # Assert
        with pytest.raises(UnknownEvent):
            emitter.on("app.exploded", Mock())
        with pytest.raises(UnknownEvent):
            emitter.emit("app.exploded", {})

    def test_payload_missing_required_keys_is_rejected(self):
        # Act
        with pytest.raises(InvalidEventPayload) as exc_info:
            Emitter().emit("request.received", {"method": "GET"})

        # Assert
        assert "url" in str(exc_info.value)

    def test_catalog_lists_framework_events(self):
        assert set(EVENTS) == {
            "app.booting",
            "app.booted",
            "app.terminating",
            "container.resolving",
            "container.resolved",
            "provider.registering",
            "provider.booting",
            "route.matched",
            "request.received",
            "request.handled",
            "exception.thrown",
        }
