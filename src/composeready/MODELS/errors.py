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
Exceptions raised while provisioning, probing and tearing down environments.

Only StartupFailure and ReadinessTimeout ever reach harness code; the others
are raised by the compose runner and handled inside the manager, the
diagnostics facade or the seeding helper.
"""
from typing import List, Optional


class ComposeReadyError(Exception):
    """Base class for all composeready errors."""


class ComposeCommandError(ComposeReadyError):
    """
    A container-group command failed.

    :param command: The command line that was executed.
    :param returncode: Exit status, or None if the command never ran.
    :param output: Captured stderr/stdout, if any.
    """

    def __init__(self, command: List[str], returncode: Optional[int] = None, output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            detail = "could not be executed"
        else:
            detail = f"exited with status {returncode}"
        message = f"Command '{' '.join(self.command)}' {detail}"
        if output:
            message = f"{message}: {output.strip()}"
        super().__init__(message)


class StartupFailure(ComposeCommandError):
    """The group could not be brought up."""


class TeardownFailure(ComposeCommandError):
    """The group could not be brought down."""


class DiagnosticsFailure(ComposeCommandError):
    """Logs or container health could not be retrieved."""


class ReadinessTimeout(ComposeReadyError):
    """
    A service never satisfied its readiness predicate within its retry budget.
    """

    def __init__(self, service_name: str, total_wait_seconds: float, attempts: Optional[int] = None):
        self.service_name = service_name
        self.total_wait_seconds = total_wait_seconds
        self.attempts = attempts
        message = f"Service {service_name} failed to become ready after {total_wait_seconds:g} seconds"
        if attempts is not None:
            message = f"{message} ({attempts} attempts)"
        super().__init__(message)


class SeedFailure(ComposeReadyError):
    """Loading test data into a service failed."""
