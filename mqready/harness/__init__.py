"""Lifecycle-aware metrics verification harness."""

from mqready.harness.report import ScenarioReport, ScenarioStep
from mqready.harness.scenario import MetricsScenario, run_scenario

__all__ = [
    "MetricsScenario",
    "ScenarioReport",
    "ScenarioStep",
    "run_scenario",
]
