"""
Unit tests for the error taxonomy and logging setup.
"""

import logging

from config import LoggingConfig
from skill_engine.errors import (
    BudgetTooSmallForIdentityError,
    CatalogLoadError,
    EngineError,
    EphemeralStateError,
    ErrorCode,
    InvalidSkillError,
    MalformedDescriptorError,
    SkillNotFoundError,
)
from skill_engine.logging_config import setup_logging, setup_logging_from_config


class TestErrors:
    """Structured error payloads."""

    def test_to_dict(self):
        error = MalformedDescriptorError("bad weight", descriptor_id="p/a", pack_id="p")
        assert error.to_dict() == {
            "code": ErrorCode.MALFORMED_DESCRIPTOR,
            "message": "bad weight",
            "details": {"descriptor_id": "p/a", "pack_id": "p"},
        }

    def test_hierarchy(self):
        for error in [
            SkillNotFoundError("p/a"),
            BudgetTooSmallForIdentityError(10, 20),
            EphemeralStateError("key"),
            InvalidSkillError("broken"),
        ]:
            assert isinstance(error, EngineError)
        assert isinstance(InvalidSkillError("broken"), CatalogLoadError)

    def test_str_is_message(self):
        assert str(SkillNotFoundError("p/a")) == "Skill 'p/a' not found"


class TestSetupLogging:
    """Logging configuration."""

    def test_console_only(self):
        logger = setup_logging("debug")
        assert logger.name == "skill_engine"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        logger.handlers.clear()

    def test_rotating_file(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        logger = setup_logging("INFO", log_file=str(log_file))

        logging.getLogger("skill_engine.session").info("turn handled")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert "turn handled" in log_file.read_text(encoding="utf-8")

        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_from_config(self, tmp_path):
        log_file = tmp_path / "engine.log"
        logger = setup_logging_from_config(LoggingConfig(level="warning", file=str(log_file)))

        assert logger.level == logging.WARNING
        assert log_file.exists()

        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
