"""Unit tests for core error handling decorators and exceptions."""
import pytest
from unittest.mock import Mock

from core.error_handler import handle_exceptions, log_execution_time
from core.exceptions import (
    CircularDependency,
    ContainerError,
    DoubleInvocation,
    FoundationException,
    InvalidPipe,
    MissingDependency,
    PipelineError,
    UnregisteredProvider,
    describe_identifier,
)


class TestErrorHandlingDecorators:
    """Tests for error handling decorators."""

    def test_handle_exceptions_success(self):
        # Arrange
        @handle_exceptions()
        def test_func():
            return "success"

        # Act
        result = test_func()

        # Assert
        assert result == "success"

    def test_handle_exceptions_with_error(self):
        # Arrange
        mock_logger = Mock()

        @handle_exceptions("Shutdown failed", default="default", log=mock_logger)
        def test_func():
            raise ValueError("test error")

        # Act
        result = test_func()

        # Assert
        assert result == "default"
        mock_logger.error.assert_called_once()
        args = mock_logger.error.call_args[0]
        assert args[1] == "Shutdown failed"
        assert str(args[2]) == "test error"

    def test_handle_exceptions_default_prefix_uses_function_name(self):
        # Arrange
        mock_logger = Mock()

        @handle_exceptions(log=mock_logger)
        def close_files():
            raise OSError("disk gone")

        # Act
        close_files()

        # Assert
        args = mock_logger.error.call_args[0]
        assert args[1].endswith("close_files failed")
        assert str(args[2]) == "disk gone"

    def test_handle_exceptions_reraise(self):
        # Arrange
        @handle_exceptions(reraise=True, log=Mock())
        def test_func():
            raise ValueError("test error")

        # Assert
        with pytest.raises(ValueError):
            test_func()

    def test_unlisted_exceptions_propagate(self):
        # Arrange
        mock_logger = Mock()

        @handle_exceptions(exceptions=(OSError,), log=mock_logger)
        def test_func():
            raise KeyError("other")

        # Assert
        with pytest.raises(KeyError):
            test_func()
        mock_logger.error.assert_not_called()

    def test_log_execution_time_logs_at_level(self):
        # Arrange
        mock_logger = Mock()

        @log_execution_time(level="INFO", log=mock_logger)
        def boot():
            return 42

        # Act
        result = boot()

        # Assert
        assert result == 42
        args = mock_logger.info.call_args[0]
        assert args[0] == "{} took {:.1f}ms"
        assert args[1].endswith("boot")

    def test_log_execution_time_logs_even_on_error(self):
        # Arrange
        mock_logger = Mock()

        @log_execution_time(log=mock_logger)
        def boot():
            raise RuntimeError("boom")

        # Act
        with pytest.raises(RuntimeError):
            boot()

        # Assert
        mock_logger.debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_execution_time_awaits_coroutines(self):
        # Arrange
        mock_logger = Mock()

        @log_execution_time(log=mock_logger)
        async def flush_records():
            return "flushed"

        # Act
        result = await flush_records()

        # Assert
        assert result == "flushed"
        mock_logger.debug.assert_called_once()


class TestExceptions:
    """Tests for the exception hierarchy and messages."""

    def test_hierarchy(self):
        assert issubclass(MissingDependency, ContainerError)
        assert issubclass(CircularDependency, ContainerError)
        assert issubclass(DoubleInvocation, PipelineError)
        assert issubclass(InvalidPipe, TypeError)
        assert issubclass(UnregisteredProvider, FoundationException)

    def test_missing_dependency_without_owner(self):
        assert str(MissingDependency("mailer")) == 'Cannot resolve dependency: "mailer"'

    def test_circular_dependency_message(self):
        class Service:
            pass

        error = CircularDependency(["a", Service, "a"])

        assert "a -> " in str(error)
        assert "Service" in str(error)

    def test_unregistered_provider_message(self):
        error = UnregisteredProvider("billing")

        assert error.provider == "billing"
        assert str(error) == "Service provider [billing] is not registered."

    def test_describe_identifier(self):
        assert describe_identifier("mailer") == "mailer"
        assert describe_identifier(dict) == "dict"
        assert describe_identifier(42) == "42"
