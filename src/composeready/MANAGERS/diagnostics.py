"""
Best-effort inspection of a running environment.
"""
from ..MODELS.errors import DiagnosticsFailure
from ..RUNNERS.compose_runner import HEALTHY, ComposeRunner


class DiagnosticsFacade:
    """
    Reads logs and container health. Never raises: a failed lookup yields
    an empty log or an unhealthy verdict.
    """
    def __init__(self, runner: ComposeRunner):
        self.runner = runner

    def get_logs(self, service_name: str) -> str:
        """
        Returns the captured output of a service, or '' if it cannot be read.
        """
        try:
            return self.runner.logs(service_name)
        except DiagnosticsFailure as e:
            print(f"Failed to get logs for {service_name}: {e}")
            return ""

    def is_service_healthy(self, service_name: str) -> bool:
        """
        Returns True iff the runtime reports the service container as healthy.
        """
        try:
            return self.runner.inspect_health(service_name) == HEALTHY
        except DiagnosticsFailure:
            return False
