"""Tests for the differ."""

import pytest
from converge.diff.differ import Differ
from converge.diff.models import DiffAction
from converge.graph.dependency_graph import DependencyGraph
from converge.providers.base import ReplaceStrategy
from converge.state.models import ActualStateRecord
from converge.state.store import MemoryStateStore


def _graph(desired):
    graph = DependencyGraph()
    graph.build_from_resources(desired.resources)
    return graph


@pytest.fixture
def applied_store():
    """State after N and C from network_and_compute were applied."""
    return MemoryStateStore([
        ActualStateRecord(
            address="network.main", type="network", identifier="network-1",
            applied={"cidr": "10.0.0.0/16"},
            attributes={"cidr": "10.0.0.0/16", "id": "network-1"},
        ),
        ActualStateRecord(
            address="compute.web", type="compute", identifier="compute-2",
            applied={"image": "ami-1", "size": "small", "network_id": "network-1"},
            dependencies=["network.main"],
        ),
    ])


class TestDiffer:
    """Test action classification."""
    
    def test_empty_store_creates_everything(self, provider, store, build_desired, network_and_compute):
        """Without records every resource is created; references are unknown."""
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), store)
        
        assert diff.get("network.main").action == DiffAction.CREATE
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.CREATE
        assert entry.changes["network_id"].unknown is True
        assert entry.changes["image"].new == "ami-1"
    
    def test_matching_state_is_noop(self, provider, applied_store, build_desired, network_and_compute):
        """Recorded values equal to resolved desired values mean no-op."""
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store)
        
        assert [entry.action for entry in diff.entries.values()] == [DiffAction.NO_OP, DiffAction.NO_OP]
        assert diff.changed() == []
    
    def test_updatable_change(self, provider, applied_store, build_desired, network_and_compute):
        """A change to an attribute outside the replacement table is an update."""
        network_and_compute[1]["attributes"]["size"] = "large"
        
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store)
        
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.UPDATE
        assert list(entry.changes) == ["size"]
        assert entry.changes["size"].old == "small"
        assert entry.changes["size"].new == "large"
    
    def test_replacement_change(self, provider, applied_store, build_desired, network_and_compute):
        """A change to a replacement attribute forces replace."""
        network_and_compute[1]["attributes"]["image"] = "ami-2"
        
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store)
        
        assert diff.get("network.main").action == DiffAction.NO_OP
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.REPLACE
        assert entry.changes["image"].forces_replacement is True
        assert "image" in entry.reason
        assert entry.prior.identifier == "compute-2"
    
    def test_replacement_cascades_to_referencing_dependents(self, provider, applied_store, build_desired, network_and_compute):
        """Dependents referencing a replaced resource's id are re-applied too."""
        network_and_compute[0]["attributes"]["cidr"] = "10.1.0.0/16"
        
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store)
        
        assert diff.get("network.main").action == DiffAction.REPLACE
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.UPDATE
        assert entry.changes["network_id"].unknown is True
    
    def test_removed_resource_is_destroyed(self, provider, applied_store, build_desired, network_and_compute):
        """Recorded addresses missing from the document are destroyed."""
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute[:1])), applied_store)
        
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.DESTROY
        assert entry.prior.identifier == "compute-2"
    
    def test_destroy_all(self, provider, applied_store, build_desired, network_and_compute):
        """destroy_all ignores the desired state."""
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store, destroy_all=True)
        
        assert {entry.action for entry in diff.entries.values()} == {DiffAction.DESTROY}
        assert len(diff.entries) == 2
    
    def test_type_change_replaces(self, provider, build_desired):
        """A record of another kind at the same address is replaced."""
        store = MemoryStateStore([
            ActualStateRecord(address="disk.data", type="network", identifier="network-9"),
        ])
        
        diff = Differ(provider).diff(_graph(build_desired([{"type": "disk", "name": "data"}])), store)
        assert diff.get("disk.data").action == DiffAction.REPLACE
    
    def test_replace_strategy_from_schema(self, provider, build_desired):
        """The replace strategy comes from the provider's schema table."""
        store = MemoryStateStore([
            ActualStateRecord(address="firewall.web", type="firewall", identifier="fw-1", applied={"name": "a"}),
        ])
        
        diff = Differ(provider).diff(_graph(build_desired([
            {"type": "firewall", "name": "web", "attributes": {"name": "b"}},
        ])), store)
        
        entry = diff.get("firewall.web")
        assert entry.action == DiffAction.REPLACE
        assert entry.replace_strategy == ReplaceStrategy.CREATE_BEFORE_DESTROY
    
    def test_removed_attribute_is_a_change(self, provider, applied_store, build_desired, network_and_compute):
        """Dropping an attribute from the declaration is detected."""
        del network_and_compute[1]["attributes"]["size"]
        
        diff = Differ(provider).diff(_graph(build_desired(network_and_compute)), applied_store)
        
        entry = diff.get("compute.web")
        assert entry.action == DiffAction.UPDATE
        assert entry.changes["size"].old == "small"
        assert entry.changes["size"].new is None
