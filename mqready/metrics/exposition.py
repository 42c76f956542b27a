"""
Text exposition parser.

Turns a metrics scrape body into MetricSample objects, one per sample line.
Comment lines (``# HELP``, ``# TYPE``) and blank lines are skipped. Only the
key, labels and value are read; timestamps are accepted and dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from mqready.core.exceptions import ExpositionParseError


@dataclass(frozen=True)
class MetricSample:
    """One sample from a scrape."""

    key: str
    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0

    def has_any_label(self, names) -> bool:
        """True if at least one of ``names`` is present."""
        return any(name in self.labels for name in names)

    def __str__(self) -> str:
        if not self.labels:
            return self.key
        rendered = ",".join(f'{k}="{v}"' for k, v in sorted(self.labels.items()))
        return f"{self.key}{{{rendered}}}"


# name{labels} value [timestamp]
_SAMPLE_LINE = re.compile(
    r"^(?P<name>[a-zA-Z_:][a-zA-Z0-9_:]*)"
    r"(?:\{(?P<labels>.*)\})?"
    r"\s+(?P<value>\S+)"
    r"(?:\s+(?P<timestamp>-?\d+))?\s*$"
)
_LABEL_PAIR = re.compile(
    r'\s*(?P<name>[a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*"(?P<value>(?:[^"\\]|\\.)*)"\s*(?:,|$)'
)
_ESCAPE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", '"': '"', "\\": "\\"}


def _unescape(value: str) -> str:
    return _ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), "\\" + m.group(1)), value)


def _parse_labels(text: str, line: str, line_number: int) -> dict[str, str]:
    labels: dict[str, str] = {}
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _LABEL_PAIR.match(text, pos)
        if not match or match.end() == pos:
            raise ExpositionParseError(line, line_number, "invalid label set")
        name = match.group("name")
        if name in labels:
            raise ExpositionParseError(line, line_number, f"duplicate label '{name}'")
        labels[name] = _unescape(match.group("value"))
        pos = match.end()
    return labels


def parse_line(line: str, line_number: int = 1) -> MetricSample | None:
    """Parse a single exposition line. Returns None for comments and blanks."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    match = _SAMPLE_LINE.match(stripped)
    if not match:
        raise ExpositionParseError(line, line_number, "not a sample line")

    labels = {}
    if match.group("labels"):
        labels = _parse_labels(match.group("labels"), line, line_number)

    try:
        value = float(match.group("value"))
    except ValueError:
        raise ExpositionParseError(
            line, line_number, f"invalid value '{match.group('value')}'"
        )

    return MetricSample(key=match.group("name"), labels=labels, value=value)


def parse_exposition(text: str) -> list[MetricSample]:
    """Parse a whole scrape body, preserving line order."""
    samples = []
    for number, line in enumerate(text.splitlines(), start=1):
        sample = parse_line(line, number)
        if sample is not None:
            samples.append(sample)
    return samples
