"""
Tests for scoped timing.
"""
import logging

import pytest

from app.utils.timing import timed


def test_logs_elapsed_time(caplog):
    logger = logging.getLogger("test.timing")
    with caplog.at_level(logging.DEBUG, logger="test.timing"):
        with timed("load_home_page", logger):
            pass
    assert "load_home_page took" in caplog.text


def test_logs_even_when_body_raises(caplog):
    with caplog.at_level(logging.DEBUG, logger="timing"):
        with pytest.raises(RuntimeError):
            with timed("broken"):
                raise RuntimeError("boom")
    assert "broken took" in caplog.text
