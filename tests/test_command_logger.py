"""CommandLogger tests."""

from __future__ import annotations

import logging

import pytest

from execwrap.runtime import CommandLogger

LOGGER_NAME = "execwrap.tests.command_logger"


@pytest.fixture
def base_logger(caplog: pytest.LogCaptureFixture) -> logging.Logger:
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    return logging.getLogger(LOGGER_NAME)


class TestCommandLogger:
    def test_prefix_and_extra(self, base_logger, caplog):
        log = CommandLogger(base_logger, "build", verbosity=2)

        log.info("Running command")

        record = caplog.records[-1]
        assert record.getMessage() == "[build] Running command"
        assert record.command_name == "build"

    def test_caller_extra_is_merged(self, base_logger, caplog):
        log = CommandLogger(base_logger, "build", verbosity=4)

        log.debug("step", extra={"step": 3})

        record = caplog.records[-1]
        assert record.step == 3
        assert record.command_name == "build"

    @pytest.mark.parametrize(
        ("verbosity", "enabled", "disabled"),
        [
            (0, logging.ERROR, logging.WARNING),
            (1, logging.WARNING, logging.INFO),
            (3, logging.INFO, logging.DEBUG),
        ],
    )
    def test_verbosity_filters(self, base_logger, caplog, verbosity, enabled, disabled):
        log = CommandLogger(base_logger, "n", verbosity=verbosity)

        log.log(disabled, "hidden")
        log.log(enabled, "shown")

        messages = [r.getMessage() for r in caplog.records]
        assert "[n] shown" in messages
        assert "[n] hidden" not in messages
        assert log.isEnabledFor(enabled)
        assert not log.isEnabledFor(disabled)

    def test_underlying_logger_level_still_applies(self, caplog):
        caplog.set_level(logging.ERROR, logger=LOGGER_NAME)
        log = CommandLogger(logging.getLogger(LOGGER_NAME), "n", verbosity=9)

        assert not log.isEnabledFor(logging.DEBUG)
