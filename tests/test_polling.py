"""Tests for the poll scheduler."""

import math
from unittest.mock import MagicMock, patch

import pytest

from ingressdomain.errors import PollTimeoutError
from ingressdomain.polling import PollState, poll_until


def ready_after(failures: int) -> MagicMock:
    """A probe returning False ``failures`` times, then True."""
    return MagicMock(side_effect=[False] * failures + [True])


class TestPollUntil:
    """Tests for poll_until."""

    def test_ready_immediately(self, fake_clock):
        """Test a ready probe returns without sleeping."""
        probe = ready_after(0)

        assert poll_until(10, 1, probe, clock=fake_clock, sleep=fake_clock.sleep) is True
        assert probe.call_count == 1
        assert fake_clock.sleeps == []

    @pytest.mark.parametrize("failures", [1, 3, 20])
    def test_ready_after_failures_logs_notice_once(self, fake_clock, failures):
        """Test a probe ready on call N+1 returns True with a single notice."""
        probe = ready_after(failures)

        with patch("ingressdomain.polling.logger") as mock_logger:
            result = poll_until(failures * 3 + 10, 3, probe, clock=fake_clock, sleep=fake_clock.sleep)

        assert result is True
        assert probe.call_count == failures + 1
        assert mock_logger.info.call_count == 1
        assert fake_clock.sleeps == [3] * failures

    @pytest.mark.parametrize("timeout,interval", [(10, 3), (9, 3), (300, 3), (1, 5)])
    def test_timeout(self, fake_clock, timeout, interval):
        """Test a never ready probe times out within the call bound."""
        probe = MagicMock(return_value=False)

        with pytest.raises(PollTimeoutError) as exc_info:
            poll_until(timeout, interval, probe, clock=fake_clock, sleep=fake_clock.sleep)

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.timeout == timeout
        assert probe.call_count <= math.ceil(timeout / interval) + 1
        assert fake_clock.now == timeout

    def test_probe_error_propagates(self, fake_clock):
        """Test a probe error stops polling immediately."""
        probe = MagicMock(side_effect=[False, RuntimeError("boom"), True])

        with pytest.raises(RuntimeError, match="boom"):
            poll_until(60, 1, probe, clock=fake_clock, sleep=fake_clock.sleep)

        assert probe.call_count == 2

    def test_notice_fields_are_logged(self, fake_clock):
        """Test the notice carries the given structured fields."""
        with patch("ingressdomain.polling.logger") as mock_logger:
            poll_until(10, 1, ready_after(1), notice="waiting for host",
                       notice_fields={"service": "nginx"}, clock=fake_clock, sleep=fake_clock.sleep)

        args, kwargs = mock_logger.info.call_args
        assert args == ("waiting for host",)
        assert kwargs["service"] == "nginx"

    def test_invalid_interval(self):
        """Test a non positive interval is rejected."""
        with pytest.raises(ValueError):
            poll_until(10, 0, MagicMock(return_value=True))


class TestPollState:
    """Tests for PollState."""

    def test_defaults(self):
        state = PollState(started_at=5.0)

        assert state.attempts == 0
        assert state.logged_wait is False
        assert state.elapsed(7.5) == 2.5
