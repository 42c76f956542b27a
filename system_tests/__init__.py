"""
Container-level verification of the queue manager image.

These tests start real containers through the docker SDK and check what
a monitoring system would see:

- the in-container readiness command (chkmqready)
- metric names and labels on the exporter endpoint
- metrics recovery after container and queue manager restarts
- behaviour under rapid and slow scraping

Scenario reports are written to test-results/scenario-reports/ on failure.
"""
