"""
Scenario Report - structured failure reports for lifecycle scenarios.

Written when a scenario fails so the run can be diagnosed after the
container is gone: what steps ran, what the last scrape looked like, which
shape rules were broken, and the tail of the container log.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass
class ScenarioStep:
    """One step of a scenario, in the order it ran."""

    name: str
    at: datetime
    detail: str = ""


@dataclass
class ScenarioReport:
    """Everything known about a scenario run."""

    scenario: str
    started_at: datetime
    finished_at: datetime
    container_id: str | None = None
    image: str | None = None
    steps: list[ScenarioStep] = field(default_factory=list)
    scrape_count: int = 0
    last_sample_keys: list[str] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)
    error: dict[str, Any] | None = None
    container_logs: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.error is None and not self.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "passed": self.passed,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_seconds": (self.finished_at - self.started_at).total_seconds(),
            "summary": self.summary(),
            "container_id": self.container_id,
            "image": self.image,
            "steps": [
                {"name": s.name, "at": s.at.isoformat(), "detail": s.detail}
                for s in self.steps
            ],
            "scrape_count": self.scrape_count,
            "last_sample_keys": self.last_sample_keys,
            "violations": self.violations,
            "error": self.error,
            "container_logs": self.container_logs,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def summary(self) -> str:
        """One line for quick triage."""
        parts = []
        if self.error:
            parts.append(f"{self.error.get('error', 'ERROR')}: {str(self.error.get('message', ''))[:100]}")
        if self.violations:
            parts.append(f"{len(self.violations)} metric shape violation(s)")
        if self.steps:
            parts.append(f"last step: {self.steps[-1].name}")
        return " | ".join(parts) if parts else "passed"

    def save(self, directory: Path | str = "test-results/scenario-reports") -> Path:
        """Save the report as JSON and return the path."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        safe_name = self.scenario.replace("/", "_").replace("::", "_")
        timestamp = self.started_at.strftime("%Y%m%d_%H%M%S")
        filepath = directory / f"{safe_name}_{timestamp}.json"
        filepath.write_text(self.to_json())
        return filepath

    def to_markdown(self) -> str:
        """Render for human review."""
        duration = (self.finished_at - self.started_at).total_seconds()

        md = f"""# Scenario Report

## Scenario: `{self.scenario}`

**Container:** `{self.container_id or '-'}`
**Duration:** {duration:.2f}s
**Summary:** {self.summary()}

---
"""
        if self.error:
            md += f"\n## Error\n\n```\n{json.dumps(self.error, indent=2, default=str)}\n```\n"

        if self.violations:
            md += "\n## Metric Shape Violations\n\n"
            for violation in self.violations[:50]:
                md += f"- `{violation}`\n"

        if self.steps:
            md += "\n## Steps\n\n"
            for step in self.steps:
                detail = f" - {step.detail}" if step.detail else ""
                md += f"1. {step.at.strftime('%H:%M:%S')} **{step.name}**{detail}\n"

        if self.container_logs:
            md += "\n## Container Logs\n\n```\n"
            md += "\n".join(self.container_logs[-20:])
            md += "\n```\n"

        return md
