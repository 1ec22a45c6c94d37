"""Per-conversion phase timing and memory sampling."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

import psutil


@dataclass
class PhaseMetrics:
    """Timing and memory figures for one phase of a conversion."""
    name: str
    duration_ms: float
    memory_start_mb: float
    memory_end_mb: float

    @property
    def memory_delta_mb(self) -> float:
        return max(0.0, self.memory_end_mb - self.memory_start_mb)


@dataclass
class ConversionProfile:
    """All phases measured during one conversion."""
    phases: Dict[str, PhaseMetrics] = field(default_factory=dict)
    total_ms: float = 0.0
    memory_peak_mb: float = 0.0
    memory_start_mb: float = 0.0

    def duration_ms(self, name: str) -> float:
        phase = self.phases.get(name)
        return phase.duration_ms if phase else 0.0

    @property
    def memory_usage_mb(self) -> float:
        """Resident memory growth observed over the conversion."""
        return max(0.0, self.memory_peak_mb - self.memory_start_mb)


class ConversionProfiler:
    """
    Lightweight profiler created fresh for every conversion.

    Durations use the monotonic ``perf_counter`` clock; memory figures are
    resident set size samples taken with psutil at phase boundaries.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the profiler and take the starting sample.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._process = self._current_process()
        self._started = time.perf_counter()
        self.profile = ConversionProfile()
        self.profile.memory_start_mb = self.sample_memory()
        self.profile.memory_peak_mb = self.profile.memory_start_mb

    def _current_process(self) -> Optional[psutil.Process]:
        try:
            return psutil.Process()
        except (psutil.Error, OSError) as e:
            self.logger.warning(f"Memory sampling unavailable: {e}")
            return None

    def sample_memory(self) -> float:
        """
        Sample resident memory of the current process.

        Returns:
            Resident set size in MB, or 0.0 when sampling fails
        """
        if self._process is None:
            return 0.0
        try:
            memory = self._process.memory_info().rss / 1024 / 1024
        except (psutil.Error, OSError) as e:
            self.logger.warning(f"Memory sampling failed: {e}")
            return 0.0
        self.profile.memory_peak_mb = max(self.profile.memory_peak_mb, memory)
        return memory

    @contextmanager
    def phase(self, name: str) -> Iterator["ConversionProfiler"]:
        """
        Context manager measuring one phase.

        Args:
            name: Phase name (parse, serialize, ...)
        """
        memory_start = self.sample_memory()
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            memory_end = self.sample_memory()
            self.profile.phases[name] = PhaseMetrics(name, duration_ms, memory_start, memory_end)
            self.logger.debug(f"Phase {name} took {duration_ms:.2f}ms")

    def finish(self) -> ConversionProfile:
        """
        Stop the overall clock.

        Returns:
            The completed ConversionProfile
        """
        self.profile.total_ms = (time.perf_counter() - self._started) * 1000.0
        self.sample_memory()
        return self.profile
