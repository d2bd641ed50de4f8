import pytest
import yaml
from pydantic import ValidationError

from composeready.MODELS.environment_descriptor import EnvironmentDescriptor, ServiceDescriptor
from composeready.MODELS.federation_environment import FEDERATION_TEST_ENVIRONMENT
from composeready.PARSERS.descriptor_parser import DescriptorParser


def test_parse(tmp_path):
    descriptor = {
        'project': 'federation-e2e',
        'compose_file': 'docker-compose.federation.yml',
        'services': [
            {'name': 'federation_postgres', 'port': 5433},
            {'name': 'products_service', 'port': 4001,
             'health_check': 'http://localhost:4001/graphql'},
        ],
    }
    path = tmp_path / "composeready.yml"
    with open(path, 'w') as f:
        yaml.dump(descriptor, f)

    env = DescriptorParser().parse(str(path))

    assert env.project == 'federation-e2e'
    assert env.compose_file == 'docker-compose.federation.yml'
    assert [s.name for s in env.services] == ['federation_postgres', 'products_service']
    assert env.services[0].health_check is None
    assert env.service('products_service').health_check == 'http://localhost:4001/graphql'


def test_interpolation():
    content = """
project: ${PROJECT:-local}
compose_file: compose.yml
services:
  - name: api
    port: ${API_PORT}
    health_check: http://localhost:${API_PORT}/health
"""
    env = DescriptorParser({'API_PORT': '8081'}).parse_from_string(content)
    assert env.project == 'local'
    assert env.services[0].port == 8081
    assert env.services[0].health_check == 'http://localhost:8081/health'


def test_unset_variable_warns(capsys):
    content = "project: p${SUFFIX}\ncompose_file: c.yml\nservices: []\n"
    env = DescriptorParser({}).parse_from_string(content)
    assert env.project == 'p'
    assert 'SUFFIX' in capsys.readouterr().out


def test_services_from_compose(tmp_path):
    compose = {
        'services': {
            'db': {'image': 'postgres:15', 'ports': ['5433:5432']},
            'worker': {'image': 'worker'},
            'api': {
                'image': 'api',
                'ports': [{'target': 80, 'published': 8080}],
                'labels': {'composeready.health_check': 'http://localhost:8080/health'},
            },
            'web': {'image': 'web', 'ports': ['127.0.0.1:3000:3000/tcp'],
                    'labels': ['other=1']},
        }
    }
    with open(tmp_path / "docker-compose.yml", 'w') as f:
        yaml.dump(compose, f, sort_keys=False)
    (tmp_path / "composeready.yml").write_text(
        "project: derived\ncompose_file: docker-compose.yml\n")

    env = DescriptorParser().parse(str(tmp_path / "composeready.yml"))

    assert [(s.name, s.port) for s in env.services] == [('db', 5433), ('api', 8080), ('web', 3000)]
    assert env.service('api').health_check == 'http://localhost:8080/health'
    assert env.service('db').health_check is None


@pytest.mark.parametrize("content", [
    "compose_file: c.yml\n",
    "project: p\n",
    "- just\n- a list\n",
    "project: p\ncompose_file: c.yml\nservices:\n  - name: api\n",
])
def test_invalid_descriptor(content):
    with pytest.raises(ValueError):
        DescriptorParser().parse_from_string(content)


class TestModels:
    """Tests for the descriptor models."""

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValidationError):
            EnvironmentDescriptor(project="p", compose_file="c.yml", services=[
                ServiceDescriptor(name="a", port=1),
                ServiceDescriptor(name="a", port=2),
            ])

    @pytest.mark.parametrize("port", [0, -1, 70000])
    def test_invalid_port_rejected(self, port):
        with pytest.raises(ValidationError):
            ServiceDescriptor(name="a", port=port)

    def test_immutable(self):
        svc = ServiceDescriptor(name="a", port=1)
        with pytest.raises(ValidationError):
            svc.port = 2

    def test_unknown_service(self):
        with pytest.raises(KeyError):
            FEDERATION_TEST_ENVIRONMENT.service("nope")

    def test_federation_preset(self):
        env = FEDERATION_TEST_ENVIRONMENT
        assert env.project == "federation-e2e"
        assert [s.port for s in env.services] == [5433, 4001, 4002, 3000]
        assert env.service("gateway_service").health_check == "http://localhost:3000/health"
