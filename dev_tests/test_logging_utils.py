"""
Tests for the phase logger used by the edit pipeline.

Output is captured with caplog; messages carry colorama codes, so checks
use substrings.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from logging_utils import Phase, PhaseLogger, TimingTracker, create_phase_logger, setup_logging


LOGGER_NAME = "page_edit.tests.phase_logger"


def _messages(caplog):
    return [record.getMessage() for record in caplog.records if record.name == LOGGER_NAME]


@pytest.fixture
def capture(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    return caplog


def _logger(verbose=False, extra_verbose=False):
    return PhaseLogger(
        session_id="abc123",
        verbose=verbose,
        extra_verbose=extra_verbose,
        logger=logging.getLogger(LOGGER_NAME),
    )


class TestPhases:
    """Banners and timing."""

    def test_banner_when_verbose(self, capture):
        log = _logger(verbose=True)
        with log.phase(Phase.MERGE, sub_label="section 1/3"):
            pass

        messages = _messages(capture)
        assert any("[MRG] MERGE [abc123] - section 1/3" in m for m in messages)
        assert any("MERGE COMPLETED" in m for m in messages)

    def test_silent_when_not_verbose(self, capture):
        log = _logger()
        with log.phase(Phase.CLASSIFY):
            pass
        assert _messages(capture) == []

    def test_info_inside_phase_is_tagged(self, capture):
        log = _logger()
        with log.phase(Phase.VALIDATE):
            log.info("2 issues")
        assert any("[VAL]" in m and "2 issues" in m for m in _messages(capture))

    def test_repeated_phases_accumulate(self):
        log = _logger()
        with log.phase(Phase.MERGE):
            pass
        with log.phase(Phase.MERGE):
            pass
        timings = log.timing_tracker.get_all()
        assert set(timings) == {Phase.MERGE}
        assert timings[Phase.MERGE] >= 0.0

    def test_phase_closed_on_exception(self):
        log = _logger()
        with pytest.raises(RuntimeError):
            with log.phase(Phase.GENERATION):
                raise RuntimeError("service down")
        assert Phase.GENERATION in log.timing_tracker.get_all()


class TestDecisionsAndDumps:
    def test_rejection_with_reason(self, capture):
        _logger().log_decision("REJECTED", reason="integrity-rejected: Scripts lost")
        messages = _messages(capture)
        assert any("[REJECT] EDIT REJECTED" in m for m in messages)
        assert any("Reason: integrity-rejected: Scripts lost" in m for m in messages)

    def test_acceptance(self, capture):
        _logger().log_decision("accepted")
        assert any("[OK] EDIT ACCEPTED" in m for m in _messages(capture))

    def test_prompt_dump_needs_extra_verbose(self, capture):
        _logger(verbose=True).log_prompt("model-x", "PROMPT BODY", temperature=0.2)
        assert not any("PROMPT BODY" in m for m in _messages(capture))

        _logger(extra_verbose=True).log_prompt("model-x", "PROMPT BODY", temperature=0.2)
        messages = _messages(capture)
        assert any("PROMPT TO model-x" in m for m in messages)
        assert "PROMPT BODY" in messages
        assert any("temperature: 0.2" in m for m in messages)

    def test_timing_summary_in_pipeline_order(self, capture):
        log = _logger(extra_verbose=True)
        with log.phase(Phase.VALIDATE):
            pass
        with log.phase(Phase.CLASSIFY):
            pass
        capture.clear()

        log.log_timing_summary()
        rows = [m for m in _messages(capture) if "[CLS]" in m or "[VAL]" in m]
        assert "[CLS]" in rows[0]
        assert "[VAL]" in rows[1]
        assert any("TOTAL TIME" in m for m in _messages(capture))


def test_timing_tracker_unknown_key():
    assert TimingTracker().end("never-started") == 0.0


def test_create_phase_logger_extra_verbose_implies_verbose():
    log = create_phase_logger("s1", extra_verbose=True)
    assert log.verbose is True
    assert log.session_id == "s1"


class TestSetupLogging:
    """LOG_LEVEL handling."""

    NAME = "page_edit.tests.setup"

    def test_named_level_applied(self):
        assert setup_logging("debug", logger_name=self.NAME) == logging.DEBUG
        assert logging.getLogger(self.NAME).level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("chatty", logger_name=self.NAME) == logging.INFO
        assert logging.getLogger(self.NAME).level == logging.INFO
