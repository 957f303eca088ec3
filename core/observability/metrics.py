"""
Metrics Collection for the Activity Ingestion Pipeline

Collects and exposes in-process metrics for:
- Submissions by outcome (committed, queued, needs_clarification, rejected)
- Error codes seen on rejected or clarification responses
- Approval decisions (approved, auto_approved, rejected)
- Stage processing times (average, p95)
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class SubmissionMetrics:
    """Counts of processed submissions."""
    total: int = 0
    by_outcome: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    by_error_code: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    by_activity_type: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class ApprovalMetrics:
    """Counts of review decisions."""
    queued: int = 0
    by_status: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time samples per stage."""
    max_samples: int = 1000
    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str):
        samples = self.by_stage[stage]
        samples.append(duration_ms)
        if len(samples) > self.max_samples:
            self.by_stage[stage] = samples[-self.max_samples:]

    def get_average(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for the ingestion pipeline.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_submission("committed", activity_types=["milking"])
        metrics.record_processing_time("resolve_feed", 12.5)
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.submissions = SubmissionMetrics()
        self.approvals = ApprovalMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def record_submission(
        self,
        outcome: str,
        error_code: Optional[str] = None,
        activity_types: Optional[List[str]] = None,
    ):
        """Record one processed submission."""
        with self._lock:
            self.submissions.total += 1
            self.submissions.by_outcome[outcome] += 1
            if error_code:
                self.submissions.by_error_code[error_code] += 1
            for activity_type in activity_types or []:
                self.submissions.by_activity_type[activity_type] += 1

    def record_queued(self, count: int = 1):
        """Record activities placed in the approval queue."""
        with self._lock:
            self.approvals.queued += count

    def record_review(self, status: str):
        """Record an approval decision."""
        with self._lock:
            self.approvals.by_status[status] += 1

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, [])),
            }

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "submissions": {
                    "total": self.submissions.total,
                    "by_outcome": dict(self.submissions.by_outcome),
                    "by_error_code": dict(self.submissions.by_error_code),
                    "by_activity_type": dict(self.submissions.by_activity_type),
                },
                "approvals": {
                    "queued": self.approvals.queued,
                    "by_status": dict(self.approvals.by_status),
                },
                "timings": {
                    stage: {
                        "average_ms": self.timings.get_average(stage),
                        "p95_ms": self.timings.get_p95(stage),
                    }
                    for stage in self.timings.by_stage.keys()
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_submission(outcome: str, error_code: Optional[str] = None, activity_types: Optional[List[str]] = None):
    """Record one processed submission."""
    get_metrics().record_submission(outcome, error_code, activity_types)


def record_review(status: str):
    """Record an approval decision."""
    get_metrics().record_review(status)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
