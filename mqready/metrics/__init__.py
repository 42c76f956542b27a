"""Metrics scraping, exposition parsing and shape validation."""

from mqready.metrics.exposition import MetricSample, parse_exposition, parse_line
from mqready.metrics.scraper import MetricsScraper
from mqready.metrics.validators import (
    DEFAULT_APPROVED_SUFFIXES,
    DEFAULT_REQUIRED_LABELS,
    ValidationReport,
    Violation,
    check_approved_suffixes,
    check_non_empty,
    check_required_labels,
    validate_samples,
)

__all__ = [
    "DEFAULT_APPROVED_SUFFIXES",
    "DEFAULT_REQUIRED_LABELS",
    "MetricSample",
    "MetricsScraper",
    "ValidationReport",
    "Violation",
    "check_approved_suffixes",
    "check_non_empty",
    "check_required_labels",
    "parse_exposition",
    "parse_line",
    "validate_samples",
]
