"""
Shared fixtures: a compose runner that records commands instead of running docker.
"""
from typing import Dict, List, Optional

import pytest

from composeready.MODELS.environment_descriptor import EnvironmentDescriptor, ServiceDescriptor
from composeready.MODELS.errors import (
    DiagnosticsFailure,
    ReadinessTimeout,
    StartupFailure,
    TeardownFailure,
)


class FakeComposeRunner:
    """Stands in for ComposeRunner; each call is appended to ``calls``."""

    def __init__(self, environment: EnvironmentDescriptor):
        self.environment = environment
        self.calls: List[str] = []
        self.fail_up = False
        self.fail_down = False
        self.service_logs: Dict[str, str] = {}
        self.health: Dict[str, str] = {}
        self.exec_results: List[int] = []
        self.exec_commands: List[tuple] = []

    def up(self):
        self.calls.append("up")
        if self.fail_up:
            raise StartupFailure(["docker", "compose", "up", "-d"], 1, "boom")

    def down(self, volumes: bool = False, quiet: bool = True):
        self.calls.append("down-v" if volumes else "down")
        if self.fail_down:
            raise TeardownFailure(["docker", "compose", "down"], 1, "boom")

    def logs(self, service_name: str) -> str:
        self.calls.append(f"logs:{service_name}")
        if service_name not in self.service_logs:
            raise DiagnosticsFailure(["docker", "compose", "logs", service_name], 1)
        return self.service_logs[service_name]

    def inspect_health(self, service_name: str) -> str:
        self.calls.append(f"inspect:{service_name}")
        if service_name not in self.health:
            raise DiagnosticsFailure(["docker", "inspect", service_name], 1)
        return self.health[service_name]

    def exec(self, service_name: str, command) -> int:
        self.exec_commands.append((service_name, list(command)))
        return self.exec_results.pop(0) if self.exec_results else 1


class RecordingProber:
    """Prober whose verdict per service is set by the test."""

    def __init__(self, failing: Optional[str] = None):
        self.failing = failing
        self.waited: List[str] = []

    def wait_for(self, service: ServiceDescriptor):
        self.waited.append(service.name)
        if service.name == self.failing:
            raise ReadinessTimeout(service.name, 3.0)


@pytest.fixture
def environment():
    return EnvironmentDescriptor(
        project="unit-test",
        compose_file="docker-compose.test.yml",
        services=[
            ServiceDescriptor(name="svcA", port=4001, health_check="http://localhost:4001/health"),
            ServiceDescriptor(name="svcB", port=4002),
        ],
    )


@pytest.fixture
def fake_runner(environment):
    return FakeComposeRunner(environment)


@pytest.fixture
def make_prober():
    return RecordingProber
