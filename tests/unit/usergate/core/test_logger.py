import logging

from usergate.core.logging.logger import get_logger, setup_logger


class TestLogger:
    def test_setup_logger_creates_log_file_and_handlers(self, tmp_path):
        logger = setup_logger(
            name="test_logger",
            log_dir=tmp_path,
            logger_level=logging.INFO,
            stream_level=logging.WARNING,
            file_level=logging.INFO,
            file_mode="w",
            max_bytes=1024,
            backup_count=1,
            use_structlog=False,
        )
        assert logger.name == "test_logger"
        assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
        assert any("RotatingFileHandler" in str(type(h)) for h in logger.handlers)

        log_file = tmp_path / "modules" / "test_logger.log"
        assert log_file.exists()
        logger.info("Test log message")
        for handler in logger.handlers:
            handler.flush()
        assert "Test log message" in log_file.read_text()

    def test_get_logger_roots_name_under_usergate(self, tmp_path):
        logger = get_logger("unit.test_get_logger", log_dir=tmp_path, use_structlog=False)
        assert logger.name == "usergate.unit.test_get_logger"
        assert logger.propagate is True

    def test_get_logger_keeps_usergate_prefix(self, tmp_path):
        logger = get_logger("usergate.already_rooted", log_dir=tmp_path, use_structlog=False)
        assert logger.name == "usergate.already_rooted"

    def test_structlog_renders_json(self, tmp_path, caplog):
        logger = get_logger("unit.structured", log_dir=tmp_path, use_structlog=True)
        logger.info("structured_event", request_id="abc")
        assert '"event": "structured_event"' in caplog.text
        assert '"request_id": "abc"' in caplog.text
