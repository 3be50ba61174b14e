"""Tests for logger cleanup cascade via BaseCloseable."""

import pytest

from testbundler.core.log import ConsoleSink, FileSink, Logger


def _file_logger(tmp_path, name="test.log"):
    return Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(tmp_path / name)),
    )


def test_logger_closes_file_via_context_manager(tmp_path):
    logger = _file_logger(tmp_path)
    logger.setup(log_root=tmp_path, run_name="test")

    assert logger.file._file is not None
    assert not logger.file._file.closed

    with logger:
        logger.info("test message")

    assert logger.file._file.closed


def test_logger_closes_on_exception(tmp_path):
    logger = _file_logger(tmp_path)
    logger.setup(log_root=tmp_path, run_name="test")

    with pytest.raises(ValueError), logger:
        logger.info("before exception")
        raise ValueError("test exception")

    assert logger.file._file.closed


def test_config_cascade_closes_logger(tmp_path):
    """Config.close() cascades to Logger then Sink.close()."""
    from testbundler.core.config import Config

    config = Config(
        logger=_file_logger(tmp_path, "cascade.log"),
        log_root=tmp_path,
    )

    # The validator set up the global logger with these sinks
    assert not config.logger.file._file.closed

    config.close()

    assert config.logger.file._file.closed


def test_file_written_and_flushed_on_close(tmp_path):
    log_file = tmp_path / "written.log"
    logger = _file_logger(tmp_path, "written.log")
    logger.setup(log_root=tmp_path, run_name="write-test")

    with logger:
        logger.info("test message to file")

    assert "test message to file" in log_file.read_text()
