"""Tests for logging configuration."""

import structlog


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_json_output(self) -> None:
        """Configured logger should use the JSON renderer."""
        from post_exporter.config.logging import configure_logging

        configure_logging(json_logs=True)

        config = structlog.get_config()
        processor_names = [p.__class__.__name__ for p in config["processors"]]

        assert structlog.is_configured()
        assert processor_names[-1] == "JSONRenderer"

    def test_configure_logging_console_output(self) -> None:
        """json_logs=False should use the console renderer."""
        from post_exporter.config.logging import configure_logging

        configure_logging(json_logs=False)

        config = structlog.get_config()
        assert config["processors"][-1].__class__.__name__ == "ConsoleRenderer"

    def test_configure_logging_adds_timestamp(self) -> None:
        """Logs should include timestamp."""
        from post_exporter.config.logging import configure_logging

        configure_logging(json_logs=True)

        config = structlog.get_config()
        processor_names = [p.__class__.__name__ for p in config["processors"]]

        assert "TimeStamper" in processor_names

    def test_configure_logging_adds_log_level(self) -> None:
        """Logs should include log level."""
        from post_exporter.config.logging import configure_logging

        configure_logging(json_logs=True)

        config = structlog.get_config()
        processor_names = [str(p) for p in config["processors"]]

        assert any("add_log_level" in name for name in processor_names)

    def test_configure_logging_invalid_level_falls_back(self) -> None:
        """알 수 없는 레벨 이름은 INFO로 처리."""
        from post_exporter.config.logging import configure_logging, get_logger

        configure_logging(json_logs=False, level="NOT_A_LEVEL")

        # Should not raise
        get_logger().info("still logging")

    def test_get_logger_returns_bound_logger(self) -> None:
        """get_logger should return a logger that can be used."""
        from post_exporter.config.logging import configure_logging, get_logger

        configure_logging(json_logs=False)
        logger = get_logger(__name__)

        # Should not raise
        logger.info("test message", extra_field="value")

    def test_get_logger_binds_initial_context(self) -> None:
        """initial_context가 바인딩된 로거 반환."""
        from post_exporter.config.logging import configure_logging, get_logger

        configure_logging(json_logs=False)
        logger = get_logger(job_id="job-123")

        # Should not raise
        logger.bind(post_id="p1").info("test with context")
