"""Tests for output resolution."""

import pytest
from converge.ingest.references import parse_value
from converge.outputs import resolve_outputs
from converge.state.models import ActualStateRecord
from converge.state.store import MemoryStateStore
from converge.utils.errors import ReferenceResolutionError


@pytest.fixture
def recorded():
    store = MemoryStateStore()
    store.put("network.main", ActualStateRecord(
        address="network.main",
        type="network",
        identifier="net-1",
        applied={"cidr": "10.0.0.0/16"},
        attributes={"arn": "arn:net-1"},
    ))
    return store


class TestResolveOutputs:
    """Test output resolution against recorded state."""
    
    def test_values(self, recorded):
        outputs = {
            "id": parse_value("${network.main.id}"),
            "arn": parse_value("${network.main.arn}"),
            "cidr": parse_value("${network.main.cidr}"),
            "both": parse_value(["${network.main.id}", "static"]),
            "region": parse_value("us-east-1"),
        }
        
        assert resolve_outputs(outputs, recorded) == {
            "id": "net-1",
            "arn": "arn:net-1",
            "cidr": "10.0.0.0/16",
            "both": ["net-1", "static"],
            "region": "us-east-1",
        }
    
    def test_unrecorded_resource(self, recorded):
        with pytest.raises(ReferenceResolutionError, match="compute.web"):
            resolve_outputs({"ip": parse_value("${compute.web.ip}")}, recorded)
    
    def test_unknown_attribute(self, recorded):
        with pytest.raises(ReferenceResolutionError, match="network.main.mtu"):
            resolve_outputs({"mtu": parse_value("${network.main.mtu}")}, recorded)
