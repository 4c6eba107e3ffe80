"""
Tests for logging setup and the seed script.
"""
import io
import logging

import create_database
from ulingo.logger import LOGGER_NAME, setup_logging
from ulingo.services import level_service


def test_setup_logging_installs_one_handler():
    stream = io.StringIO()
    logger = setup_logging("debug", stream=stream)
    setup_logging("info", stream=stream)

    handlers = [h for h in logger.handlers if getattr(h, "_ulingo_handler", False)]
    assert len(handlers) == 1
    assert logger.level == logging.INFO


def test_module_loggers_share_the_handler():
    stream = io.StringIO()
    logger = setup_logging("info", stream=stream)
    handler = next(h for h in logger.handlers if getattr(h, "_ulingo_handler", False))
    handler.setStream(stream)

    logging.getLogger(f"{LOGGER_NAME}.services.test").info("streak moved")
    assert "streak moved" in stream.getvalue()
    assert "[INFO ]" in stream.getvalue()


def test_seed_levels_load(run):
    inserted = run(lambda db: create_database.load_levels(db, create_database.DEFAULT_LEVELS))
    assert inserted == 3

    # running again skips what is already there
    assert run(lambda db: create_database.load_levels(db, create_database.DEFAULT_LEVELS)) == 0

    content = run(lambda db: level_service.get_level_content(db, 1))
    assert content.title == "Greetings"
    assert all(quiz.correct in quiz.options for quiz in content.quizzes)


def test_seed_admin(run):
    run(lambda db: create_database.create_admin(db, "laoshi", "secret123"))
    run(lambda db: create_database.create_admin(db, "laoshi", "secret123"))

    async def admins(db):
        user = await create_database.auth_service.authenticate_user(db, "laoshi", "secret123")
        return user.is_admin

    assert run(admins) is True
