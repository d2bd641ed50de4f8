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
Readiness polling for services, with a fixed retry budget and fixed backoff.
"""
import time
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from ..MODELS.environment_descriptor import ServiceDescriptor
from ..MODELS.errors import ReadinessTimeout
from ..UTILS.http_probe import get_status

DEFAULT_MAX_RETRIES = 60
DEFAULT_RETRY_INTERVAL = 2.0


def _not_ready(ready: bool) -> bool:
    return not ready


def poll_until_ready(check: Callable[[], bool],
                     max_retries: int,
                     retry_interval: float,
                     sleep: Callable[[float], None] = time.sleep,
                     on_retry: Optional[Callable[[int], None]] = None) -> bool:
    """
    Calls ``check`` until it returns True or ``max_retries`` attempts are spent.
    Every failed attempt is followed by a wait, the last one included, so an
    exhausted budget takes ``max_retries * retry_interval`` seconds.

    A False result is an ordinary outcome, not an error; ``check`` is expected
    to turn transport failures into False itself.

    :param check: One readiness attempt.
    :param max_retries: Maximum number of attempts.
    :param retry_interval: Seconds to wait after each failed attempt.
    :param sleep: Function used for the wait.
    :param on_retry: Called with the failed attempt number before each retry.
    :return: True if an attempt succeeded, False if the budget ran out.
    """
    if max_retries < 1:
        return False

    def before_sleep(state: RetryCallState):
        if on_retry:
            on_retry(state.attempt_number)

    def exhausted(state: RetryCallState) -> bool:
        sleep(retry_interval)
        return False

    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_fixed(retry_interval),
        retry=retry_if_result(_not_ready),
        retry_error_callback=exhausted,
        before_sleep=before_sleep,
        sleep=sleep,
    )
    return bool(retrying(check))


class ReadinessProber:
    """
    Waits for a single service to become reachable.

    With a health check URL the service is ready once that URL answers 2xx.
    Without one, ``http://localhost:{port}`` is requested and any status
    below 500 counts: a 4xx shows the process is up and serving.
    """

    def __init__(self,
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 retry_interval: float = DEFAULT_RETRY_INTERVAL,
                 request_timeout: float = 5.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the prober.

        :param max_retries: Attempts per service before giving up.
        :param retry_interval: Seconds between attempts.
        :param request_timeout: Seconds to wait for each HTTP response.
        :param sleep: Function used to wait between attempts.
        """
        self.max_retries = max_retries
        self.retry_interval = retry_interval
        self.request_timeout = request_timeout
        self.sleep = sleep

    @property
    def total_wait_seconds(self) -> float:
        """The retry budget of one service, in seconds."""
        return self.max_retries * self.retry_interval

    def check(self, service: ServiceDescriptor) -> bool:
        """
        Performs one readiness attempt.

        :param service: The service to probe.
        :return: True if the service is ready.
        """
        if service.health_check:
            status = get_status(service.health_check, timeout=self.request_timeout)
            return status is not None and 200 <= status < 300

        status = get_status(f"http://localhost:{service.port}", timeout=self.request_timeout)
        return status is not None and status < 500

    def wait_for(self, service: ServiceDescriptor):
        """
        Blocks until the service is ready.

        :param service: The service to wait for.
        :raises ReadinessTimeout: If every attempt in the budget failed.
        """
        print(f"Checking {service.name} on port {service.port}...")
        ready = poll_until_ready(
            lambda: self.check(service),
            self.max_retries,
            self.retry_interval,
            sleep=self.sleep,
            on_retry=lambda n: print(f"{service.name} not ready, retrying... ({n}/{self.max_retries})"),
        )
        if not ready:
            raise ReadinessTimeout(service.name, self.total_wait_seconds)
        print(f"{service.name} is ready")
