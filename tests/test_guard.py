"""Tests for the resource guard and deadline."""

import pytest

from format_shapeshifter.guard import Deadline, ResourceGuard
from format_shapeshifter.options import ResourceLimits
from format_shapeshifter.types import (
    ConversionDepthError,
    ConversionSizeError,
    ConversionTimeoutError,
    EmptyInputError,
    ErrorType,
    SecurityError,
)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestDeadline:
    """Tests for Deadline."""

    def test_unbounded_never_expires(self):
        deadline = Deadline.unbounded()

        assert not deadline.expired()
        assert deadline.remaining_ms() is None
        deadline.check()

    def test_expires_after_timeout(self):
        clock = FakeClock()
        deadline = Deadline(50, clock=clock)

        assert deadline.remaining_ms() == pytest.approx(50.0)
        clock.now += 0.051
        assert deadline.expired()
        with pytest.raises(ConversionTimeoutError) as exc_info:
            deadline.check()
        assert exc_info.value.error_type == ErrorType.TIMEOUT

    def test_tick_checks_at_interval(self):
        """Test that tick only consults the clock every CHECK_INTERVAL calls."""
        clock = FakeClock()
        deadline = Deadline(10, clock=clock)
        clock.now += 1

        for _ in range(Deadline.CHECK_INTERVAL - 1):
            deadline.tick()
        with pytest.raises(ConversionTimeoutError):
            deadline.tick()


class TestResourceGuard:
    """Tests for ResourceGuard."""

    def setup_method(self):
        """Set up test fixtures."""
        self.guard = ResourceGuard(ResourceLimits(
            max_input_bytes=100,
            max_output_bytes=50,
            max_depth=3,
            max_repeated_chars=20,
        ))

    def test_empty_input(self):
        for text in ("", "   \n\t", None):
            with pytest.raises(EmptyInputError):
                self.guard.check_not_empty(text)

    def test_input_size_in_utf8_bytes(self):
        """Test that multi-byte characters count as bytes, not characters."""
        assert self.guard.check_input_size("a" * 100) == 100
        with pytest.raises(ConversionSizeError) as exc_info:
            self.guard.check_input_size("\u00e9" * 51)
        assert exc_info.value.size == 102
        assert exc_info.value.limit == 100
        assert exc_info.value.stage == "input"

    def test_output_size(self):
        with pytest.raises(ConversionSizeError) as exc_info:
            self.guard.check_output_size("x" * 51)
        assert exc_info.value.stage == "output"

    def test_depth(self):
        assert self.guard.check_depth({"a": [{"b": 1}]}) == 3
        with pytest.raises(ConversionDepthError) as exc_info:
            self.guard.check_depth([[[[1]]]])
        assert exc_info.value.limit == 3

    def test_repetition_run_rejected(self):
        with pytest.raises(SecurityError) as exc_info:
            self.guard.scan_for_abuse('{"a": "' + "z" * 21 + '"}')
        assert exc_info.value.pattern == "repetition"

    def test_layout_runs_allowed(self):
        """Test that indentation and bracket runs are not treated as abuse."""
        self.guard.scan_for_abuse(" " * 60 + "[" * 30 + "]" * 30)

    @pytest.mark.parametrize("payload", [
        "<SCRIPT>alert(1)</script>",
        "javascript:void(0)",
        '<img onerror = "x">',
        "eval(data)",
        "setTimeout(run, 1)",
    ])
    def test_denied_patterns(self, payload):
        with pytest.raises(SecurityError) as exc_info:
            self.guard.scan_for_abuse(payload)
        assert exc_info.value.error_type == ErrorType.SECURITY

    def test_pre_check_returns_size(self):
        assert self.guard.pre_check('{"a": 1}') == 8

    def test_pre_check_checks_size_before_content(self):
        with pytest.raises(ConversionSizeError):
            self.guard.pre_check("<script>" * 20)
