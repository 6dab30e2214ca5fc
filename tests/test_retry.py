"""Tests for retrying external commands."""

from unittest.mock import patch

import pytest

from photoshop_linux.retry import COMMAND_NOT_FOUND, retry_simple, retry_with_backoff, run_command


class Counter:
    """Callable command returning queued exit codes."""

    def __init__(self, *codes):
        self.codes = list(codes)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.codes.pop(0) if len(self.codes) > 1 else self.codes[0]


@pytest.fixture(autouse=True)
def no_sleep():
    """Make the delays between attempts instant."""
    with patch("photoshop_linux.retry.time.sleep") as sleep:
        yield sleep


class TestRunCommand:
    """Test running a single command."""

    def test_true_and_false(self):
        assert run_command("true") == 0
        assert run_command(["false"]) != 0

    def test_missing_command(self):
        assert run_command("definitely-not-a-real-command-xyz") == COMMAND_NOT_FOUND

    def test_empty_command(self):
        assert run_command("") == COMMAND_NOT_FOUND


class TestRetry:
    """Test the retry loops."""

    def test_false_fails_after_three_attempts(self):
        assert retry_simple("false", 3, 0) != 0

    def test_counts_attempts(self):
        command = Counter(1)
        assert retry_simple(command, 3, 0) == 1
        assert command.calls == 3

    def test_stops_on_success(self):
        command = Counter(1, 0)
        assert retry_with_backoff(command, max_attempts=5) == 0
        assert command.calls == 2

    def test_returns_last_exit_code(self):
        assert retry_with_backoff(Counter(2, 3, 4), max_attempts=3) == 4

    def test_backoff_delays_are_capped(self, no_sleep):
        retry_with_backoff(Counter(1), max_attempts=5, initial_delay=1, max_delay=3, multiplier=2)
        assert [c.args[0] for c in no_sleep.call_args_list] == [1, 2, 3, 3]

    def test_simple_uses_fixed_delay(self, no_sleep):
        retry_simple(Counter(1), max_attempts=3, delay=5)
        assert [c.args[0] for c in no_sleep.call_args_list] == [5, 5]

    def test_no_sleep_after_last_attempt(self, no_sleep):
        retry_simple(Counter(1), max_attempts=1, delay=5)
        no_sleep.assert_not_called()
