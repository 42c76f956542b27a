"""
Scrape Load Workflows - the exporter copes with fast and slow polling.
"""

from __future__ import annotations

from mqready.harness.scenario import MetricsScenario
from system_tests.config import SystemTestConfig


class TestScrapeLoad:
    """Unusual scrape cadences."""

    def test_rapid_fire_scrapes(
        self,
        metrics_scenario: MetricsScenario,
        system_config: SystemTestConfig,
    ):
        """Many scrapes a second apart, then a settled scrape still has data."""
        metrics_scenario.bring_up(settle=0)

        metrics_scenario.rapid_fire(
            count=system_config.rapid_fire_count,
            pause=system_config.rapid_fire_pause,
        )
        metrics_scenario.scraper.settle(system_config.rapid_fire_cooldown)

        samples = metrics_scenario.assert_non_empty()
        assert len(samples) > 0

    def test_slow_scrapes(
        self,
        metrics_scenario: MetricsScenario,
        system_config: SystemTestConfig,
    ):
        """Scrapes far apart each return data."""
        metrics_scenario.bring_up(settle=0)

        results = metrics_scenario.slow_poll(
            count=system_config.slow_poll_count,
            pause=system_config.slow_poll_pause,
        )

        assert len(results) == system_config.slow_poll_count
        assert all(len(samples) > 0 for samples in results)
