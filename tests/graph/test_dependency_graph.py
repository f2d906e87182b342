"""Tests for dependency graph."""

import pytest
from converge.graph.dependency_graph import DependencyGraph
from converge.utils.errors import (
    DependencyCycle,
    DuplicateResourceAddress,
    UnknownReference,
    UnsupportedResourceKind,
)


@pytest.fixture
def sample_resources(build_desired):
    """Network <- subnet <- compute, with an explicit dependency on a firewall."""
    return build_desired([
        {"type": "network", "name": "main", "attributes": {"cidr": "10.0.0.0/16"}},
        {"type": "subnet", "name": "public", "attributes": {"network_id": "${network.main.id}"}},
        {"type": "firewall", "name": "web", "attributes": {"network_id": "${network.main.id}"}},
        {
            "type": "compute",
            "name": "web",
            "attributes": {"subnet_id": "${subnet.public.id}"},
            "depends_on": ["firewall.web"],
        },
    ]).resources


class TestDependencyGraph:
    """Test dependency graph construction."""
    
    def test_build_graph_from_resources(self, sample_resources):
        """Implicit and explicit edges are both added."""
        graph = DependencyGraph()
        graph.build_from_resources(sample_resources)
        
        assert graph.graph.number_of_nodes() == 4
        assert graph.graph.number_of_edges() == 4
        assert graph.graph.edges["compute.web", "firewall.web"]["origins"] == {"explicit"}
        assert graph.graph.edges["compute.web", "subnet.public"]["origins"] == {"reference"}
    
    def test_dependency_order(self, sample_resources):
        """Every dependency precedes its dependents."""
        graph = DependencyGraph()
        graph.build_from_resources(sample_resources)
        
        order = graph.dependency_order()
        for dependent, dependency in graph.graph.edges:
            assert order.index(dependency) < order.index(dependent)
    
    def test_get_downstream_resources(self, sample_resources):
        """Downstream means everything that transitively depends on a resource."""
        graph = DependencyGraph()
        graph.build_from_resources(sample_resources)
        
        assert graph.get_downstream_resources("network.main") == {"subnet.public", "firewall.web", "compute.web"}
        assert graph.get_downstream_resources("compute.web") == set()
    
    def test_get_upstream_resources(self, sample_resources):
        """Upstream means everything a resource transitively depends on."""
        graph = DependencyGraph()
        graph.build_from_resources(sample_resources)
        
        assert graph.get_upstream_resources("compute.web") == {"subnet.public", "firewall.web", "network.main"}
        assert graph.get_dependencies("compute.web") == {"subnet.public", "firewall.web"}
        assert graph.get_dependents("network.main") == {"subnet.public", "firewall.web"}
    
    def test_get_resource(self, sample_resources):
        """Test getting resource by address."""
        graph = DependencyGraph()
        graph.build_from_resources(sample_resources)
        
        resource = graph.get_resource("network.main")
        assert resource is not None
        assert resource.type == "network"
        assert "network.main" in graph
        assert graph.get_resource("network.other") is None


class TestGraphBuildErrors:
    """Test build-time failures."""
    
    def test_duplicate_address(self, build_desired):
        """The same address twice is rejected."""
        resources = build_desired([
            {"type": "network", "name": "main"},
            {"type": "network", "name": "main"},
        ]).resources
        
        with pytest.raises(DuplicateResourceAddress, match="network.main"):
            DependencyGraph().build_from_resources(resources)
    
    def test_unsupported_kind(self, build_desired):
        """Kinds outside the provider's table are rejected."""
        resources = build_desired([{"type": "database", "name": "db"}]).resources
        
        with pytest.raises(UnsupportedResourceKind) as exc_info:
            DependencyGraph(supported_kinds=["network"]).build_from_resources(resources)
        assert exc_info.value.kind == "database"
    
    def test_unknown_reference(self, build_desired):
        """References to undeclared resources are rejected."""
        resources = build_desired([
            {"type": "subnet", "name": "a", "attributes": {"network_id": "${network.missing.id}"}},
        ]).resources
        
        with pytest.raises(UnknownReference, match="network.missing"):
            DependencyGraph().build_from_resources(resources)
    
    def test_cycle_detected(self, build_desired):
        """A reference cycle fails with the cycle path."""
        resources = build_desired([
            {"type": "network", "name": "a", "attributes": {"peer": "${subnet.b.id}"}},
            {"type": "subnet", "name": "b", "depends_on": ["compute.c"]},
            {"type": "compute", "name": "c", "attributes": {"net": "${network.a.id}"}},
        ]).resources
        
        with pytest.raises(DependencyCycle) as exc_info:
            DependencyGraph().build_from_resources(resources)
        
        path = exc_info.value.path
        assert path[0] == path[-1]
        assert set(path) == {"network.a", "subnet.b", "compute.c"}
    
    def test_self_reference(self, build_desired):
        """A resource referring to itself is a cycle."""
        resources = build_desired([
            {"type": "network", "name": "a", "attributes": {"name": "${network.a.id}"}},
        ]).resources
        
        with pytest.raises(DependencyCycle):
            DependencyGraph().build_from_resources(resources)
