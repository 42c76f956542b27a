"""Queue manager container readiness probe and metrics verification harness."""

__version__ = "1.0.0"
