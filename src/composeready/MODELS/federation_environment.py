"""
Preconfigured environment for the federation example stack.
"""
from .environment_descriptor import EnvironmentDescriptor, ServiceDescriptor

FEDERATION_TEST_ENVIRONMENT = EnvironmentDescriptor(
    project="federation-e2e",
    compose_file="docker-compose.federation.yml",
    services=(
        # No HTTP endpoint, falls back to the port check
        ServiceDescriptor(name="federation_postgres", port=5433),
        ServiceDescriptor(name="products_service", port=4001,
                          health_check="http://localhost:4001/graphql"),
        ServiceDescriptor(name="reviews_service", port=4002,
                          health_check="http://localhost:4002/graphql"),
        ServiceDescriptor(name="gateway_service", port=3000,
                          health_check="http://localhost:3000/health"),
    ),
)
