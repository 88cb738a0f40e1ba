"""Unit tests for the application file logger."""
import re
from datetime import datetime, timezone

import pytest
from loguru import logger as loguru_logger

from core.exceptions import DoubleInvocation, LoggingError
from logger.file_logger import Logger, LogPayload, utc_timestamp


def read_lines(app_logger: Logger) -> list:
    with open(app_logger.log_path, encoding="utf-8") as f:
        return f.read().splitlines()


@pytest.fixture
def app_logger(tmp_path):
    instance = Logger(str(tmp_path / "logs"))
    yield instance
    instance.close()


class TestLoggerSetup:
    """Tests for directory and file handling."""

    def test_creates_log_directory(self, tmp_path):
        # Arrange
        log_dir = tmp_path / "nested" / "logs"

        # Act
        instance = Logger(str(log_dir))
        instance.close()

        # Assert
        assert log_dir.is_dir()

    def test_existing_directory_is_reused(self, tmp_path):
        # Arrange
        (tmp_path / "logs").mkdir()

        # Act
        instance = Logger(str(tmp_path / "logs"))
        instance.close()

        # Assert
        assert (tmp_path / "logs").is_dir()

    def test_daily_file_name_uses_utc_date(self):
        # Act
        name = Logger.get_date_filename(datetime(2025, 6, 28, 23, 30, tzinfo=timezone.utc))

        # Assert
        assert name == "app-2025-06-28.log"

    def test_timestamp_is_iso_utc_with_milliseconds(self):
        # Act
        stamp = utc_timestamp(datetime(2025, 6, 28, 10, 15, 0, 123456, tzinfo=timezone.utc))

        # Assert
        assert stamp == "2025-06-28T10:15:00.123Z"


class TestLoggerWriting:
    """Tests for record formatting and pipes."""

    @pytest.mark.asyncio
    async def test_writes_entry_with_context(self, app_logger):
        # Act
        await app_logger.info("Hello", {"user": "sulman"})

        # Assert
        lines = read_lines(app_logger)
        assert len(lines) == 1
        assert lines[0].endswith('INFO: Hello | {"user":"sulman"}')
        assert re.match(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\] ", lines[0])

    @pytest.mark.asyncio
    async def test_skips_context_when_empty(self, app_logger):
        # Act
        await app_logger.info("Hello")

        # Assert
        assert read_lines(app_logger)[0].endswith("INFO: Hello")

    @pytest.mark.asyncio
    async def test_all_levels_are_written(self, app_logger):
        # Act
        await app_logger.info("info")
        await app_logger.error("error")
        await app_logger.warning("warn")
        await app_logger.debug("debug")
        await app_logger.notice("note")

        # Assert
        content = "\n".join(read_lines(app_logger))
        assert "INFO: info" in content
        assert "ERROR: error" in content
        assert "WARNING: warn" in content
        assert "DEBUG: debug" in content
        assert "NOTICE: note" in content

    @pytest.mark.asyncio
    async def test_unknown_level_raises_logging_error(self, app_logger):
        with pytest.raises(LoggingError):
            await app_logger.log("fatal", "nope")

    @pytest.mark.asyncio
    async def test_handler_object_pipes_modify_payload(self, app_logger):
        # Arrange
        class Redact:
            async def handle(self, payload: LogPayload, next_):
                payload.message = "modified"
                return await next_(payload)

        app_logger.pipe_through([Redact()])

        # Act
        await app_logger.error("original")

        # Assert
        assert read_lines(app_logger)[0].endswith("ERROR: modified")

    @pytest.mark.asyncio
    async def test_function_pipes_modify_payload(self, app_logger):
        # Arrange
        async def upper(payload: LogPayload, next_):
            payload.message = payload.message.upper()
            return await next_(payload)

        app_logger.pipe_through([upper])

        # Act
        await app_logger.notice("lowercase")

        # Assert
        assert read_lines(app_logger)[0].endswith("NOTICE: LOWERCASE")

    @pytest.mark.asyncio
    async def test_pipe_can_drop_records(self, app_logger):
        # Arrange
        async def drop_debug(payload: LogPayload, next_):
            if payload.level == "debug":
                return None
            return await next_(payload)

        app_logger.pipe_through([drop_debug])

        # Act
        await app_logger.debug("hidden")
        await app_logger.info("shown")

        # Assert
        lines = read_lines(app_logger)
        assert len(lines) == 1
        assert lines[0].endswith("INFO: shown")

    @pytest.mark.asyncio
    async def test_pipe_forwarding_twice_is_rejected(self, app_logger):
        # Arrange
        async def twice(payload, next_):
            await next_(payload)
            return await next_(payload)

        app_logger.pipe_through([twice])

        # Act
        with pytest.raises(DoubleInvocation):
            await app_logger.info("once")

        # Assert
        assert len(read_lines(app_logger)) == 1

    @pytest.mark.asyncio
    async def test_non_serialisable_context_is_stringified(self, app_logger):
        # Act
        await app_logger.info("when", {"at": datetime(2025, 1, 1)})

        # Assert
        assert read_lines(app_logger)[0].endswith('| {"at":"2025-01-01 00:00:00"}')


class TestLoguruSink:
    """Tests for mirroring framework logs into the file."""

    def test_attach_and_detach_loguru_sink(self, app_logger):
        # Act
        app_logger.attach_loguru_sink()
        loguru_logger.info("framework message")
        app_logger.detach_loguru_sink()
        loguru_logger.info("not mirrored")

        # Assert
        content = "\n".join(read_lines(app_logger))
        assert "INFO: framework message" in content
        assert "not mirrored" not in content
