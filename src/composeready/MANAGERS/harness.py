"""
Suite-level setup and teardown for test harnesses.

global_setup() returns the context that global_teardown() needs, so the
running manager is passed explicitly instead of being parked in a global.
"""
from dataclasses import dataclass
from typing import Optional, Protocol

from ..MODELS.environment_descriptor import EnvironmentDescriptor
from ..MODELS.federation_environment import FEDERATION_TEST_ENVIRONMENT
from .orchestration_manager import OrchestrationManager


class Stoppable(Protocol):
    """Anything teardown can stop."""

    def stop(self) -> None:
        ...


@dataclass(frozen=True)
class EnvironmentContext:
    """Handle produced by setup and consumed by teardown."""

    environment: EnvironmentDescriptor
    manager: Stoppable


def global_setup(environment: EnvironmentDescriptor = FEDERATION_TEST_ENVIRONMENT,
                 manager: Optional[OrchestrationManager] = None,
                 base_dir: str = ".") -> EnvironmentContext:
    """
    Starts an environment for a test suite.

    :param environment: The environment to start.
    :param manager: Manager to use; one is created for ``environment`` if omitted.
    :param base_dir: Directory the compose file is resolved against.
    :return: The context to hand to global_teardown().
    """
    print("Setting up global E2E test environment...")
    manager = manager or OrchestrationManager(environment, base_dir=base_dir)
    manager.start()
    return EnvironmentContext(environment=manager.environment, manager=manager)


def global_teardown(context: Optional[EnvironmentContext]):
    """
    Stops the environment started by global_setup(). Accepts None so a
    teardown hook can run even when setup failed before producing a context.
    """
    print("Tearing down global E2E test environment...")
    if context is not None:
        context.manager.stop()
