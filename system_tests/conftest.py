"""
System Test Configuration - pytest fixtures for container-backed scenarios.

Every test gets its own freshly created container from the image under
test. Containers are removed when the test ends, whether it passed, failed
an assertion or timed out waiting for the metrics endpoint. Tests share
nothing but the docker client, so they are independent of each other.

CRITICAL: This file must be in system_tests/ to apply only to system tests.
The unit tests in tests/ never talk to a docker daemon.
"""

from __future__ import annotations

from typing import Generator

import docker
import pytest
from docker.errors import DockerException

from mqready.container.docker_runtime import DockerContainerRuntime
from mqready.container.runtime import ContainerSpec
from mqready.core.config import Settings, get_settings
from mqready.core.logging import setup_logging
from mqready.harness.scenario import MetricsScenario, run_scenario
from system_tests.config import SystemTestConfig, get_config


# =============================================================================
# CONFIGURATION
# =============================================================================


@pytest.fixture(scope="session")
def system_config() -> SystemTestConfig:
    """Load system test configuration from environment."""
    return get_config()


@pytest.fixture(scope="session")
def harness_settings() -> Settings:
    """Harness settings (poll interval, settle interval, shape rules)."""
    setup_logging()
    return get_settings()


# =============================================================================
# DOCKER CLIENT AND RUNTIME
# =============================================================================


@pytest.fixture(scope="session")
def docker_client() -> Generator[docker.DockerClient, None, None]:
    """Create Docker client for container interaction."""
    try:
        client = docker.from_env()
        client.ping()
    except DockerException as e:
        pytest.skip(f"Docker daemon not available: {e}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def runtime(docker_client: docker.DockerClient) -> DockerContainerRuntime:
    """Container runtime shared by every scenario."""
    return DockerContainerRuntime(docker_client)


# =============================================================================
# SCENARIOS (Per-test)
# =============================================================================


@pytest.fixture
def container_spec(
    request: pytest.FixtureRequest,
    system_config: SystemTestConfig,
    harness_settings: Settings,
) -> ContainerSpec:
    """Image, environment and ports for the container backing the current test."""
    return ContainerSpec(
        image=system_config.image,
        environment=dict(system_config.container_env),
        ports=[harness_settings.metrics_port],
        labels={"mqready.test": request.node.nodeid},
    )


@pytest.fixture
def metrics_scenario(
    request: pytest.FixtureRequest,
    runtime: DockerContainerRuntime,
    container_spec: ContainerSpec,
    system_config: SystemTestConfig,
    harness_settings: Settings,
) -> Generator[MetricsScenario, None, None]:
    """
    A started container wrapped in a MetricsScenario.

    Usage in tests:
        def test_something(metrics_scenario):
            metrics_scenario.bring_up()
            metrics_scenario.assert_metrics()

    The container is removed after the test. A failing test leaves a JSON
    report in ``system_config.report_dir`` with the steps that ran and the
    container's log tail.
    """
    with run_scenario(
        runtime,
        container_spec,
        name=request.node.name,
        settings=harness_settings,
        host=system_config.metrics_host,
        report_dir=system_config.report_dir,
        qmgr_name=system_config.qmgr_name,
        service_user=system_config.service_user,
        readiness_command=system_config.readiness_command,
        readiness_interval=system_config.readiness_interval,
        readiness_deadline=system_config.readiness_deadline,
    ) as scenario:
        yield scenario

        # === AFTER TEST (container still present) ===
        # pytest does not raise test failures into fixtures, so look at the
        # call report recorded by pytest_runtest_makereport below.
        call_report = getattr(request.node, "rep_call", None)
        if call_report is not None and call_report.failed:
            failure = AssertionError(call_report.longreprtext[-2000:])
            path = scenario.build_report(failure).save(system_config.report_dir)
            print(f"\n  Scenario report: {path}")


# =============================================================================
# PYTEST HOOKS
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "workflow: Lifecycle scenario that disrupts the container or queue manager",
    )
    config.addinivalue_line(
        "markers",
        "smoke: Quick sanity check against a single container start",
    )
    config.addinivalue_line(
        "markers",
        "slow: Test that takes more than 10 seconds",
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "/smoke/" in str(item.path):
            item.add_marker(pytest.mark.smoke)

        if "/workflows/" in str(item.path):
            item.add_marker(pytest.mark.workflow)
            item.add_marker(pytest.mark.slow)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item so fixtures can see the outcome."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
