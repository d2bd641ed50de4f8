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
Parsers for environment descriptor files.

A descriptor names the compose project and file and lists the services to
wait for. When it lists no services they are taken from the compose file.
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..MODELS.environment_descriptor import EnvironmentDescriptor, ServiceDescriptor
from ..UTILS.string_interpolation import interpolate

HEALTH_CHECK_LABEL = "composeready.health_check"


class DescriptorParser:
    """
    Parser for composeready.yml descriptor files.
    """
    def __init__(self, context: Optional[Mapping[str, str]] = None):
        """
        Initializes the parser.

        :param context: Variables available to ${VAR} placeholders. Nothing is
                        read from the process environment unless passed here.
        """
        self.context = dict(context or {})

    def parse(self, descriptor_path: str) -> EnvironmentDescriptor:
        """
        Parses a descriptor file. A compose file it references is resolved
        relative to the descriptor's directory.

        :param descriptor_path: Path to the descriptor file.
        :return: Parsed environment.
        """
        with open(descriptor_path, 'r') as f:
            content = f.read()
        base_dir = os.path.dirname(os.path.abspath(descriptor_path))
        return self.parse_from_string(content, base_dir=base_dir)

    def parse_from_string(self, content: str, base_dir: str = ".") -> EnvironmentDescriptor:
        """
        Parses a descriptor from a string.

        :param content: YAML content of the descriptor.
        :param base_dir: Directory a referenced compose file is resolved against.
        :return: Parsed environment.
        :raises ValueError: If required keys are missing or invalid.
        """
        data = self._load(content)
        if not isinstance(data, dict):
            raise ValueError("Descriptor must be a mapping")

        project = data.get('project')
        compose_file = data.get('compose_file')
        if not project or not compose_file:
            raise ValueError("Descriptor requires 'project' and 'compose_file'")

        if data.get('services') is not None:
            if not isinstance(data['services'], list):
                raise ValueError("'services' must be a list")
            services = [self._parse_service(s) for s in data['services']]
        else:
            services = self.services_from_compose(os.path.join(base_dir, compose_file))

        return EnvironmentDescriptor(project=str(project),
                                     compose_file=str(compose_file),
                                     services=services)

    def services_from_compose(self, compose_path: str) -> List[ServiceDescriptor]:
        """
        Derives service descriptors from a compose file: every service that
        publishes a port is waited for on its first published port.

        :param compose_path: Path to the compose file.
        :return: Services in compose file order.
        """
        with open(compose_path, 'r') as f:
            data = self._load(f.read()) or {}

        services = []
        for name, spec in (data.get('services') or {}).items():
            spec = spec or {}
            port = self._first_published_port(spec.get('ports', []))
            if port is None:
                continue
            labels = self._labels(spec.get('labels'))
            services.append(ServiceDescriptor(
                name=name,
                port=port,
                health_check=labels.get(HEALTH_CHECK_LABEL),
            ))
        return services

    def _load(self, content: str) -> Any:
        missing: List[str] = []
        content = interpolate(content, self.context, missing)
        for name in missing:
            print(f"Warning: variable {name} is not set, substituting an empty string")
        return yaml.safe_load(content)

    def _parse_service(self, spec: Dict[str, Any]) -> ServiceDescriptor:
        """
        Parses a single service entry.

        :param spec: The service mapping from the descriptor.
        :return: A ServiceDescriptor instance.
        """
        if not isinstance(spec, dict) or 'name' not in spec or 'port' not in spec:
            raise ValueError(f"Service entry needs 'name' and 'port': {spec!r}")
        return ServiceDescriptor(
            name=str(spec['name']),
            port=int(spec['port']),
            health_check=spec.get('health_check') or None,
        )

    def _first_published_port(self, ports: List[Any]) -> Optional[int]:
        """
        Returns the host side of the first published port mapping.
        Handles "8080:80", "127.0.0.1:8080:80", "80" and the long dict syntax.
        """
        for p in ports or []:
            if isinstance(p, dict):
                if p.get('published'):
                    return int(str(p['published']).split('-')[0])
                continue
            parts = str(p).split('/')[0].split(':')
            if len(parts) >= 2 and parts[-2]:
                return int(parts[-2].split('-')[0])
        return None

    def _labels(self, labels: Any) -> Dict[str, str]:
        if isinstance(labels, dict):
            return {str(k): str(v) for k, v in labels.items()}
        result = {}
        for label in labels or []:
            if '=' in label:
                k, v = label.split('=', 1)
                result[k] = v
        return result
