import os
import subprocess

import pytest
import yaml

from composeready.MODELS.environment_descriptor import EnvironmentDescriptor
from composeready.MODELS.errors import DiagnosticsFailure
from composeready.PARSERS.descriptor_parser import DescriptorParser
from composeready.RUNNERS.compose_runner import ComposeRunner


def test_command_injection_attempt(monkeypatch, tmp_path):
    """
    Shell metacharacters in names must reach docker as literal arguments.
    """
    injected_file = tmp_path / "injected.txt"
    environment = EnvironmentDescriptor(
        project=f"p; touch {injected_file}",
        compose_file="c.yml",
    )
    seen = []

    def fake_run(command, **kwargs):
        seen.append((command, kwargs))
        return subprocess.CompletedProcess(command, 1, "", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    runner = ComposeRunner(environment)
    with pytest.raises(DiagnosticsFailure):
        runner.logs(f"svc && touch {injected_file}")
    runner.exec("db", ["pg_isready", ";", "touch", str(injected_file)])

    for command, kwargs in seen:
        assert kwargs.get("shell", False) is False
        assert f"p; touch {injected_file}" in command
    assert f"svc && touch {injected_file}" in seen[0][0]
    assert not os.path.exists(injected_file)


def test_descriptor_uses_safe_yaml():
    """
    Python object tags must not be constructed from descriptor files.
    """
    content = "project: !!python/object/apply:os.system ['echo pwned']\ncompose_file: c.yml\n"
    with pytest.raises(yaml.YAMLError) as excinfo:
        DescriptorParser().parse_from_string(content)
    assert "python/object" in str(excinfo.value)


def test_missing_descriptor_file():
    with pytest.raises(FileNotFoundError):
        DescriptorParser().parse("non_existent_file_12345.yml")
