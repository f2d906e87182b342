"""Tests for reference resolution."""

from datetime import date, datetime, timezone
import pytest
from converge.ingest.models import LiteralValue, MapValue
from converge.ingest.references import UNKNOWN, iter_references, parse_value, resolve_value


def _lookup(values):
    return lambda address, attribute: values[(address, attribute)]


class TestResolveValue:
    """Test substitution of references with actual values."""
    
    def test_resolve_reference_and_template(self):
        """References and interpolations read from the lookup."""
        values = {("network.main", "id"): "net-1"}
        
        assert resolve_value(parse_value("${network.main.id}"), _lookup(values)) == "net-1"
        assert resolve_value(parse_value("in-${network.main.id}"), _lookup(values)) == "in-net-1"
    
    def test_resolve_nested(self):
        """Nested collections resolve element by element."""
        values = {("firewall.a", "id"): "fw-1", ("network.main", "arn"): "arn:1"}
        value = parse_value({"ids": ["${firewall.a.id}", "fw-static"], "arn": "${network.main.arn}"})
        
        assert resolve_value(value, _lookup(values)) == {"ids": ["fw-1", "fw-static"], "arn": "arn:1"}
    
    def test_unknown_propagates(self):
        """One unknown reference makes the whole value unknown."""
        lookup = lambda address, attribute: UNKNOWN
        
        assert resolve_value(parse_value("x-${network.main.id}"), lookup) is UNKNOWN
        assert resolve_value(parse_value(["a", "${network.main.id}"]), lookup) is UNKNOWN
    
    def test_iter_references(self):
        """All references are found regardless of nesting."""
        value = parse_value({"a": ["${network.main.id}"], "b": "${subnet.x.cidr}-${subnet.y.cidr}"})
        
        found = sorted(f"{r.address}.{r.attribute}" for r in iter_references(value))
        assert found == ["network.main.id", "subnet.x.cidr", "subnet.y.cidr"]
    
    def test_missing_value_raises(self):
        """Lookup errors propagate to the caller."""
        with pytest.raises(KeyError):
            resolve_value(parse_value("${network.main.id}"), _lookup({}))


class TestParseLiterals:
    """Test that literals are held in their JSON form."""
    
    def test_dates_become_iso_strings(self):
        assert parse_value(date(2024, 1, 1)) == LiteralValue(value="2024-01-01")
        assert parse_value(datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)).value.startswith("2024-01-01T12:30:00")
    
    def test_mapping_keys_become_strings(self):
        assert parse_value({1: "a", "b": [date(2024, 1, 2)]}) == LiteralValue(value={"1": "a", "b": ["2024-01-02"]})
    
    def test_tuples_become_lists(self):
        assert parse_value((1, 2)) == LiteralValue(value=[1, 2])
    
    def test_references_keep_structure(self):
        value = parse_value({2: "${network.main.id}", "at": date(2024, 1, 1)})
        
        assert isinstance(value, MapValue)
        assert value.entries["at"] == LiteralValue(value="2024-01-01")
        assert set(value.entries) == {"2", "at"}
