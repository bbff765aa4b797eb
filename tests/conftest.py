"""Pytest configuration and shared fixtures for resource prototype tests."""

import pytest
from prometheus_client import CollectorRegistry

from resource_proto.domain.entities.resource_graph import ResourceGraph
from resource_proto.domain.entities.resource_spec import SpecUnit, SubsystemSpec
from resource_proto.domain.services.graph_builder import build_graph
from resource_proto.domain.services.spec_catalog import build_scale_spec
from resource_proto.domain.value_objects.scale import ScaleTier
from resource_proto.infrastructure.config import Config, get_config
from resource_proto.infrastructure.container import Container


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container and cached configuration before each test."""
    Container.reset()
    get_config.cache_clear()
    yield
    Container.reset()
    get_config.cache_clear()


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config()


@pytest.fixture
def two_node_spec() -> list[SubsystemSpec]:
    """Containment only: one cluster, two nodes, four cores per node."""
    return [
        SubsystemSpec(
            subsystem="containment",
            relation="contains",
            root=SpecUnit(
                "cluster",
                children=(SpecUnit("node", count=2, children=(SpecUnit("core", count=4),)),),
            ),
        )
    ]


@pytest.fixture
def two_node_graph(two_node_spec) -> ResourceGraph:
    return build_graph(two_node_spec)


@pytest.fixture
def mini_graph() -> ResourceGraph:
    """The five-subsystem test graph at the smallest scale."""
    return build_graph(build_scale_spec(ScaleTier.MINI))


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """A fresh Prometheus registry, so series never collide across tests."""
    return CollectorRegistry()


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "benchmark: mark test as benchmark test")
