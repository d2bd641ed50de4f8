# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Lifecycle of one compose environment: bring it up, wait for it, take it down.
"""
from typing import Optional

from ..MODELS.environment_descriptor import EnvironmentDescriptor
from ..MODELS.errors import TeardownFailure
from ..RUNNERS.compose_runner import ComposeRunner
from ..RUNNERS.readiness_prober import ReadinessProber
from .diagnostics import DiagnosticsFacade


class OrchestrationManager:
    """
    Owns a single environment and whether it is currently up.

    Startup failures propagate so tests never run against a half-ready
    stack. Teardown failures are reported and swallowed so that one suite's
    cleanup cannot fail another.

    Not safe for concurrent start()/stop() calls on the same instance.
    """
    def __init__(self,
                 environment: EnvironmentDescriptor,
                 base_dir: str = ".",
                 runner: Optional[ComposeRunner] = None,
                 prober: Optional[ReadinessProber] = None):
        """
        Initializes the manager.

        :param environment: The environment to manage.
        :param base_dir: Directory the compose file is resolved against.
        :param runner: Compose runner; built from the environment if omitted.
        :param prober: Readiness prober; defaults to 60 attempts, 2s apart.
        """
        self.environment = environment
        self.runner = runner or ComposeRunner(environment, base_dir=base_dir)
        self.prober = prober or ReadinessProber()
        self.diagnostics = DiagnosticsFacade(self.runner)
        self._running = False

    @property
    def running(self) -> bool:
        """True once start() has brought every service to readiness."""
        return self._running

    def start(self):
        """
        Starts the environment and waits until every service is ready.
        Does nothing if it is already running.

        :raises StartupFailure: If the group could not be brought up.
        :raises ReadinessTimeout: If a service never became ready. Containers
            that did start are left running.
        """
        if self._running:
            print(f"[{self.environment.project}] Services already running")
            return

        print(f"[{self.environment.project}] Starting services...")

        # Leftovers from an aborted run under the same project
        try:
            self.runner.down(quiet=True)
        except TeardownFailure as e:
            print(f"[{self.environment.project}] Ignoring stale environment cleanup failure: {e}")

        self.runner.up()

        print(f"[{self.environment.project}] Waiting for services to be ready...")
        for service in self.environment.services:
            self.prober.wait_for(service)

        self._running = True
        print(f"[{self.environment.project}] All services are running and ready")

    def stop(self):
        """
        Stops the environment if it is running. Never raises.
        """
        if not self._running:
            return

        print(f"[{self.environment.project}] Stopping services...")
        try:
            self.runner.down(quiet=True)
            print(f"[{self.environment.project}] Services stopped")
        except TeardownFailure as e:
            print(f"[{self.environment.project}] Failed to stop services: {e}")
        finally:
            self._running = False

    def cleanup(self):
        """
        Removes the environment and its volumes, whether or not it was started.
        Never raises.
        """
        print(f"[{self.environment.project}] Cleaning up services and volumes...")
        try:
            self.runner.down(volumes=True, quiet=False)
            print(f"[{self.environment.project}] Services and volumes cleaned up")
        except TeardownFailure as e:
            print(f"[{self.environment.project}] Failed to clean up services: {e}")

    def get_logs(self, service_name: str) -> str:
        """
        Returns the logs of a service, or '' if they cannot be read.
        """
        return self.diagnostics.get_logs(service_name)

    def is_service_healthy(self, service_name: str) -> bool:
        """
        Returns True iff the container runtime reports the service as healthy.
        """
        return self.diagnostics.is_service_healthy(service_name)
