"""Resource guard: size, depth, timeout and abuse-pattern checks."""

import logging
import re
import time
from functools import lru_cache
from typing import Any, Callable, Optional, Pattern, Tuple

from .options import ResourceLimits
from .types import (
    ConversionDepthError,
    ConversionSizeError,
    ConversionTimeoutError,
    EmptyInputError,
    SecurityError,
)
from .utils.size_calculator import SizeCalculator
from .values import nesting_depth


class Deadline:
    """
    Cooperative cancellation token for one conversion.

    Hot loops call ``tick()`` once per unit of work; the clock is only
    consulted every ``CHECK_INTERVAL`` ticks so the overhead stays small
    while the worst-case overshoot stays bounded.
    """

    CHECK_INTERVAL = 256

    def __init__(self, timeout_ms: Optional[float],
                 clock: Callable[[], float] = time.monotonic):
        self.timeout_ms = timeout_ms
        self._clock = clock
        self._started = clock()
        self._expires_at = None if timeout_ms is None else self._started + timeout_ms / 1000.0
        self._ticks = 0

    @classmethod
    def unbounded(cls) -> "Deadline":
        """A deadline that never expires."""
        return cls(None)

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining_ms(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, (self._expires_at - self._clock()) * 1000.0)

    def elapsed_ms(self) -> float:
        return (self._clock() - self._started) * 1000.0

    def check(self) -> None:
        """
        Raise if the deadline has passed.

        Raises:
            ConversionTimeoutError: If the deadline expired
        """
        if self.expired():
            raise ConversionTimeoutError(self.timeout_ms)

    def tick(self) -> None:
        """Count one unit of work and check the clock at a bounded cadence."""
        self._ticks += 1
        if self._ticks % self.CHECK_INTERVAL == 0:
            self.check()


@lru_cache(maxsize=32)
def _compile_denied(patterns: Tuple[str, ...]) -> Tuple[Tuple[str, Pattern], ...]:
    return tuple((pattern, re.compile(pattern, re.IGNORECASE)) for pattern in patterns)


@lru_cache(maxsize=8)
def _repetition_pattern(threshold: int) -> Pattern:
    # Bracket and whitespace runs are layout; nesting is left to the depth check
    return re.compile(r"([^\s\[\]{}])\1{%d,}" % threshold, re.DOTALL)


class ResourceGuard:
    """
    Enforces resource limits before, during and after a conversion.

    Every check raises a typed ConversionError; none of them sanitizes or
    truncates the payload.
    """

    def __init__(self, limits: Optional[ResourceLimits] = None,
                 logger: Optional[logging.Logger] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the guard.

        Args:
            limits: Limits to enforce (defaults to ResourceLimits())
            logger: Optional logger instance
            clock: Monotonic clock used for deadlines
        """
        self.limits = limits or ResourceLimits()
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.size_calculator = SizeCalculator(self.logger)

    def new_deadline(self) -> Deadline:
        """Start a deadline for the configured timeout."""
        return Deadline(self.limits.timeout_ms, clock=self.clock)

    def check_not_empty(self, text: Any) -> None:
        """
        Reject empty or whitespace-only input.

        Raises:
            EmptyInputError: If there is nothing to convert
        """
        if text is None or not str(text).strip():
            raise EmptyInputError()

    def check_input_size(self, text: str, limit: Optional[int] = None) -> int:
        """
        Check input text against the input byte limit.

        Args:
            text: Input text
            limit: Override for the configured limit

        Returns:
            Input size in bytes

        Raises:
            ConversionSizeError: If the input is too large
        """
        limit = self.limits.max_input_bytes if limit is None else limit
        size = self.size_calculator.exceeds(text, limit)
        if size is not None:
            self.logger.warning(
                f"Input of {self.size_calculator.format_size(size)} rejected "
                f"(limit {self.size_calculator.format_size(limit)})"
            )
            raise ConversionSizeError(size, limit, stage="input")
        return self.size_calculator.utf8_length(text)

    def check_output_size(self, text: str, limit: Optional[int] = None) -> int:
        """
        Check serialized text against the output byte limit.

        Args:
            text: Serialized output
            limit: Override for the configured limit

        Returns:
            Output size in bytes

        Raises:
            ConversionSizeError: If the output is too large
        """
        limit = self.limits.max_output_bytes if limit is None else limit
        size = self.size_calculator.exceeds(text, limit)
        if size is not None:
            self.logger.warning(f"Output of {size} bytes exceeds limit of {limit} bytes")
            raise ConversionSizeError(size, limit, stage="output")
        return self.size_calculator.utf8_length(text)

    def check_depth(self, value: Any, limit: Optional[int] = None,
                    deadline: Optional[Deadline] = None) -> int:
        """
        Check the nesting depth of a parsed tree.

        Args:
            value: Parsed tree
            limit: Override for the configured depth limit
            deadline: Optional deadline ticked during the walk

        Returns:
            The tree depth

        Raises:
            ConversionDepthError: If the tree is nested too deeply
        """
        limit = self.limits.max_depth if limit is None else limit
        depth = nesting_depth(value, limit=limit, deadline=deadline)
        if depth > limit:
            raise ConversionDepthError(depth, limit)
        return depth

    def check_timeout(self, deadline: Deadline) -> None:
        """
        Check a deadline.

        Raises:
            ConversionTimeoutError: If the deadline expired
        """
        deadline.check()

    def scan_for_abuse(self, text: str) -> None:
        """
        Reject degenerate or dangerous payloads before parsing.

        Args:
            text: Input text

        Raises:
            SecurityError: If a repetition run or a denied pattern is found
        """
        match = _repetition_pattern(self.limits.max_repeated_chars).search(text)
        if match:
            run = match.end() - match.start()
            self.logger.warning(f"Rejected input with a run of {run} repeated characters")
            raise SecurityError(
                f"Suspicious content detected: {run} repeated characters at offset {match.start()}",
                pattern="repetition",
            )

        for pattern, compiled in _compile_denied(self.limits.denied_patterns):
            if compiled.search(text):
                self.logger.warning(f"Rejected input matching denied pattern {pattern!r}")
                raise SecurityError(
                    f"Suspicious content detected: matches {pattern!r}",
                    pattern=pattern,
                )

    def pre_check(self, text: str) -> int:
        """
        Run every check that applies to raw input.

        Returns:
            Input size in bytes
        """
        self.check_not_empty(text)
        size = self.check_input_size(text)
        self.scan_for_abuse(text)
        return size
