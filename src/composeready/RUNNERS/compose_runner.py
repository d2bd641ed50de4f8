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
Execution of docker compose commands against a single project.
"""
import subprocess
from typing import List, Optional, Sequence, Type

from ..MODELS.environment_descriptor import EnvironmentDescriptor
from ..MODELS.errors import (
    ComposeCommandError,
    DiagnosticsFailure,
    StartupFailure,
    TeardownFailure,
)

HEALTHY = "healthy"


class ComposeRunner:
    """
    Runs compose commands scoped to one project and compose file.
    """
    def __init__(self,
                 environment: EnvironmentDescriptor,
                 base_dir: str = ".",
                 compose_command: Sequence[str] = ("docker", "compose"),
                 docker_command: Sequence[str] = ("docker",),
                 timeout: Optional[float] = None):
        """
        Initializes the runner.

        Args:
            environment (EnvironmentDescriptor): The project to address.
            base_dir (str): Directory the compose file is resolved against.
            compose_command (Sequence[str]): Compose executable, e.g. ("docker-compose",).
            docker_command (Sequence[str]): Docker executable used for inspect.
            timeout (Optional[float]): Seconds before a command is abandoned.
        """
        self.environment = environment
        self.base_dir = base_dir
        self.compose_command = list(compose_command)
        self.docker_command = list(docker_command)
        self.timeout = timeout

    def compose_args(self, *args: str) -> List[str]:
        """
        Builds a compose command line for this project.
        """
        return self.compose_command + [
            "-p", self.environment.project,
            "-f", self.environment.compose_file,
        ] + list(args)

    def up(self):
        """
        Brings the group up detached, streaming output to the console.

        Raises:
            StartupFailure: If the command fails or cannot be executed.
        """
        self._run(self.compose_args("up", "-d"), StartupFailure, capture=False)

    def down(self, volumes: bool = False, quiet: bool = True):
        """
        Brings the group down.

        Args:
            volumes (bool): Also remove named volumes.
            quiet (bool): Suppress command output.

        Raises:
            TeardownFailure: If the command fails or cannot be executed.
        """
        args = ["down", "-v"] if volumes else ["down"]
        self._run(self.compose_args(*args), TeardownFailure, capture=quiet)

    def logs(self, service_name: str) -> str:
        """
        Returns the captured output of one service.

        Raises:
            DiagnosticsFailure: If the logs cannot be read.
        """
        return self._run(self.compose_args("logs", "--no-color", service_name), DiagnosticsFailure)

    def container_id(self, service_name: str) -> str:
        """
        Resolves the container id of a service.

        Raises:
            DiagnosticsFailure: If the service has no container.
        """
        command = self.compose_args("ps", "-q", service_name)
        output = self._run(command, DiagnosticsFailure).strip()
        if not output:
            raise DiagnosticsFailure(command, 0, f"no container for service {service_name}")
        return output.splitlines()[0]

    def inspect_health(self, service_name: str) -> str:
        """
        Returns the health status reported by the container runtime
        (e.g. 'starting', 'healthy', 'unhealthy').

        Raises:
            DiagnosticsFailure: If the container cannot be inspected.
        """
        container = self.container_id(service_name)
        command = self.docker_command + [
            "inspect", "--format", "{{.State.Health.Status}}", container,
        ]
        return self._run(command, DiagnosticsFailure).strip()

    def exec(self, service_name: str, command: Sequence[str]) -> int:
        """
        Runs a command inside a service container without a TTY.

        Returns:
            int: The exit status of the command, or -1 if it could not run.
        """
        full = self.compose_args("exec", "-T", service_name, *command)
        try:
            result = subprocess.run(
                full,
                cwd=self.base_dir,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired):
            return -1
        return result.returncode

    def _run(self, command: List[str], error: Type[ComposeCommandError], capture: bool = True) -> str:
        """
        Executes a command and translates failures into ``error``.
        """
        try:
            result = subprocess.run(
                command,
                cwd=self.base_dir,
                capture_output=capture,
                text=True,
                errors="replace",
                timeout=self.timeout,
                # Avoid shell=True, arguments come from descriptors (CWE-78)
                shell=False,
            )
        except OSError as e:
            raise error(command, None, str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise error(command, None, f"timed out after {e.timeout}s") from e

        if result.returncode != 0:
            raise error(command, result.returncode, result.stderr or "")
        return result.stdout or ""
