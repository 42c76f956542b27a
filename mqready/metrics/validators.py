"""
Metric shape validators.

Pure functions over a scraped sample list. Each check returns every
violation it finds rather than stopping at the first, so a failing run
names exactly which metric or label set offended.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from mqready.core.exceptions import MetricShapeError
from mqready.metrics.exposition import MetricSample

DEFAULT_APPROVED_SUFFIXES = ("bytes", "seconds", "percentage", "count", "total")
DEFAULT_REQUIRED_LABELS = ("qmgr",)


@dataclass(frozen=True)
class Violation:
    """A single rule broken by a single sample (or by the scrape as a whole)."""

    rule: str
    message: str
    key: str | None = None
    labels: dict[str, str] | None = None

    def __str__(self) -> str:
        return f"[{self.rule}] {self.message}"


@dataclass
class ValidationReport:
    """All violations found in one scrape."""

    sample_count: int
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def by_rule(self, rule: str) -> list[Violation]:
        return [v for v in self.violations if v.rule == rule]

    def offending_keys(self, rule: str) -> list[str]:
        return [v.key for v in self.by_rule(rule) if v.key is not None]

    def format(self) -> str:
        if self.ok:
            return f"{self.sample_count} sample(s), no violations"
        lines = [f"{self.sample_count} sample(s), {len(self.violations)} violation(s):"]
        lines.extend(f"  - {v}" for v in self.violations)
        return "\n".join(lines)

    def raise_for_violations(self) -> None:
        if self.violations:
            raise MetricShapeError(self.violations)


def check_non_empty(samples: Sequence[MetricSample]) -> list[Violation]:
    if len(samples) > 0:
        return []
    return [Violation(rule="non_empty", message="Expected some metrics to be returned but had none")]


def check_approved_suffixes(
    samples: Iterable[MetricSample],
    suffixes: Iterable[str] = DEFAULT_APPROVED_SUFFIXES,
) -> list[Violation]:
    """One violation per sample whose key ends with none of ``suffixes``."""
    suffixes = tuple(suffixes)
    violations = []
    for sample in samples:
        if not sample.key.endswith(suffixes):
            violations.append(
                Violation(
                    rule="approved_suffix",
                    message=f"Metric '{sample.key}' does not have an approved suffix {list(suffixes)}",
                    key=sample.key,
                )
            )
    return violations


def check_required_labels(
    samples: Iterable[MetricSample],
    required: Iterable[str] = DEFAULT_REQUIRED_LABELS,
) -> list[Violation]:
    """One violation per sample carrying none of the ``required`` labels."""
    required = tuple(required)
    violations = []
    for sample in samples:
        if not sample.has_any_label(required):
            violations.append(
                Violation(
                    rule="required_label",
                    message=(
                        f"Metric '{sample.key}' with labels {dict(sample.labels)} "
                        f"does not have one or more required labels - {list(required)}"
                    ),
                    key=sample.key,
                    labels=dict(sample.labels),
                )
            )
    return violations


def validate_samples(
    samples: Sequence[MetricSample],
    suffixes: Iterable[str] = DEFAULT_APPROVED_SUFFIXES,
    required_labels: Iterable[str] = DEFAULT_REQUIRED_LABELS,
) -> ValidationReport:
    """Run every shape check and collect the results."""
    report = ValidationReport(sample_count=len(samples))
    report.violations.extend(check_non_empty(samples))
    report.violations.extend(check_approved_suffixes(samples, suffixes))
    report.violations.extend(check_required_labels(samples, required_labels))
    return report
