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
Models declaring a test environment: its compose project and the services to wait for.
"""
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceDescriptor(BaseModel):
    """
    A service that must become reachable before the environment is usable.

    When ``health_check`` is omitted the service is probed at
    ``http://localhost:{port}`` and any status below 500 counts as ready,
    so a 404 from a process that is up but has no root route is accepted.
    Supply an explicit health check URL when that is too lenient.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    port: int = Field(gt=0, le=65535)
    health_check: Optional[str] = None


class EnvironmentDescriptor(BaseModel):
    """
    A compose project and the ordered services it exposes.
    The order of ``services`` is the order they are probed in.
    """
    model_config = ConfigDict(frozen=True)

    project: str = Field(min_length=1)
    compose_file: str = Field(min_length=1)
    services: Tuple[ServiceDescriptor, ...] = ()

    @field_validator('services')
    @classmethod
    def _unique_names(cls, services: Tuple[ServiceDescriptor, ...]) -> Tuple[ServiceDescriptor, ...]:
        seen = set()
        for svc in services:
            if svc.name in seen:
                raise ValueError(f"Duplicate service name: {svc.name}")
            seen.add(svc.name)
        return services

    def service(self, name: str) -> ServiceDescriptor:
        """
        Looks up a declared service by name.

        :param name: The service name.
        :return: The matching descriptor.
        :raises KeyError: If no service with that name is declared.
        """
        for svc in self.services:
            if svc.name == name:
                return svc
        raise KeyError(f"Service {name} is not declared in project {self.project}")
