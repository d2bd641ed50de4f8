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
Protocol-specific readiness probes and post-start helpers.
"""
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

from ..MODELS.environment_descriptor import EnvironmentDescriptor
from ..MODELS.errors import ReadinessTimeout, SeedFailure
from ..UTILS.http_probe import post_json
from .compose_runner import ComposeRunner
from .readiness_prober import poll_until_ready

PROBE_MAX_RETRIES = 30
PROBE_RETRY_INTERVAL = 2.0

INTROSPECTION_QUERY = "{ __schema { queryType { name } } }"

# Seeding mutation per published port of the federation subgraphs
SEED_MUTATIONS: Dict[int, str] = {
    4001: "mutation { seedProducts { id name } }",
    4002: "mutation { seedReviews { id productId } }",
}


def get_service_url(port: int, path: str = "") -> str:
    """
    Builds the URL of a service published on localhost.
    """
    return f"http://localhost:{port}{path}"


def wait_for_database(environment: EnvironmentDescriptor,
                      service: str = "federation_postgres",
                      host: str = "localhost",
                      username: str = "postgres",
                      max_retries: int = PROBE_MAX_RETRIES,
                      retry_interval: float = PROBE_RETRY_INTERVAL,
                      runner: Optional[ComposeRunner] = None,
                      sleep: Callable[[float], None] = time.sleep):
    """
    Waits until PostgreSQL inside a service container accepts connections.

    ``pg_isready`` runs inside the container against the in-container port
    5432, so the published port of the service does not matter here.

    Args:
        environment (EnvironmentDescriptor): The project the database belongs to.
        service (str): Compose service running PostgreSQL.
        host (str): Host passed to pg_isready.
        username (str): Role passed to pg_isready.
        max_retries (int): Attempts before giving up.
        retry_interval (float): Seconds between attempts.
        runner (Optional[ComposeRunner]): Runner to execute through.
        sleep (Callable): Function used to wait between attempts.

    Raises:
        ReadinessTimeout: If the database never became ready.
    """
    runner = runner or ComposeRunner(environment)
    command = ["pg_isready", "-h", host, "-p", "5432", "-U", username]
    print(f"Waiting for PostgreSQL in {service}...")

    ready = poll_until_ready(
        lambda: runner.exec(service, command) == 0,
        max_retries,
        retry_interval,
        sleep=sleep,
        on_retry=lambda n: print(f"PostgreSQL not ready, retrying... ({n}/{max_retries})"),
    )
    if not ready:
        raise ReadinessTimeout(service, max_retries * retry_interval, attempts=max_retries)
    print("PostgreSQL is ready")


def _schema_ready(url: str, timeout: float) -> bool:
    status, body = post_json(url, {"query": INTROSPECTION_QUERY}, timeout=timeout)
    if status is None or not 200 <= status < 300:
        return False
    # A body that is not a JSON object cannot be a GraphQL response
    if not isinstance(body, dict):
        return False
    return not body.get("errors")


def wait_for_schema_service(url: str,
                            max_retries: int = PROBE_MAX_RETRIES,
                            retry_interval: float = PROBE_RETRY_INTERVAL,
                            request_timeout: float = 5.0,
                            sleep: Callable[[float], None] = time.sleep):
    """
    Waits until a GraphQL endpoint answers an introspection query without errors.

    Args:
        url (str): GraphQL endpoint.
        max_retries (int): Attempts before giving up.
        retry_interval (float): Seconds between attempts.
        request_timeout (float): Seconds to wait for each response.
        sleep (Callable): Function used to wait between attempts.

    Raises:
        ReadinessTimeout: If the endpoint never answered cleanly.
    """
    print(f"Waiting for GraphQL service at {url}...")
    ready = poll_until_ready(
        lambda: _schema_ready(url, request_timeout),
        max_retries,
        retry_interval,
        sleep=sleep,
        on_retry=lambda n: print(f"GraphQL service not ready, retrying... ({n}/{max_retries})"),
    )
    if not ready:
        raise ReadinessTimeout(url, max_retries * retry_interval, attempts=max_retries)
    print(f"GraphQL service at {url} is ready")


def _seed(service_url: str, mutation: str, timeout: float):
    endpoint = f"{service_url.rstrip('/')}/graphql"
    status, body = post_json(endpoint, {"query": mutation}, timeout=timeout)
    if status is None:
        raise SeedFailure(f"No response from {endpoint}")
    if not 200 <= status < 300:
        raise SeedFailure(f"{endpoint} answered {status}")
    if isinstance(body, dict) and body.get("errors"):
        raise SeedFailure(f"{endpoint} returned errors: {body['errors']}")


def seed_test_data(service_url: str,
                   mutations: Optional[Dict[int, str]] = None,
                   timeout: float = 10.0) -> bool:
    """
    Loads fixture data into a running service, best effort.

    The seeding mutation is picked by the port of ``service_url``. Failures
    are reported as warnings and never raised.

    :param service_url: Base URL of the service, e.g. http://localhost:4001.
    :param mutations: Mutation per port; defaults to the federation subgraphs.
    :param timeout: Seconds to wait for the response.
    :return: True if data was seeded.
    """
    mutations = SEED_MUTATIONS if mutations is None else mutations
    print(f"Seeding test data for {service_url}...")

    try:
        port = urlsplit(service_url).port
    except ValueError:
        port = None
    mutation = mutations.get(port) if port is not None else None
    if mutation is None:
        print(f"No seed data registered for {service_url}")
        return False

    try:
        _seed(service_url, mutation, timeout)
    except SeedFailure as e:
        print(f"Warning: failed to seed data for {service_url}: {e}")
        return False

    print(f"Seeded {service_url}")
    return True
