"""Attribute reference parsing and resolution."""

import re
from typing import Any, Callable, Dict, Iterator, List, Union
from pydantic import TypeAdapter
from .models import AttributeValue, ListValue, LiteralValue, MapValue, Reference, Template

ADDRESS_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_-]*\.[A-Za-z0-9_-]+")
REFERENCE_PATTERN = re.compile(
    r"\$\{([A-Za-z][A-Za-z0-9_-]*\.[A-Za-z0-9_-]+)\.([A-Za-z0-9_][A-Za-z0-9_.-]*)\}"
)

# Reference lookup: (address, attribute) -> actual value
Lookup = Callable[[str, str], Any]


class _Unknown:
    """Placeholder for a value that only exists once a pending change is applied."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "(known after apply)"

    __str__ = __repr__


UNKNOWN = _Unknown()

_JSON_VALUE = TypeAdapter(Any)


def parse_value(raw: Any) -> AttributeValue:
    """
    Turn a raw document value into the attribute value union.
    
    Literals are kept in their JSON form (dates become ISO strings, mapping
    keys become strings) so they compare equal to what the state file reloads.
    """
    if isinstance(raw, str):
        return _parse_string(raw)
    
    if isinstance(raw, list):
        items = [parse_value(item) for item in raw]
        if all(isinstance(item, LiteralValue) for item in items):
            return LiteralValue(value=[item.value for item in items])
        return ListValue(items=items)
    
    if isinstance(raw, dict):
        entries = {str(key): parse_value(item) for key, item in raw.items()}
        if all(isinstance(item, LiteralValue) for item in entries.values()):
            return LiteralValue(value={key: item.value for key, item in entries.items()})
        return MapValue(entries=entries)
    
    if isinstance(raw, tuple):
        return parse_value(list(raw))
    
    return LiteralValue(value=_JSON_VALUE.dump_python(raw, mode="json"))


def _parse_string(raw: str) -> AttributeValue:
    matches = list(REFERENCE_PATTERN.finditer(raw))
    if not matches:
        return LiteralValue(value=raw)
    
    if len(matches) == 1 and matches[0].span() == (0, len(raw)):
        return Reference(address=matches[0].group(1), attribute=matches[0].group(2))
    
    parts: List[Union[str, Reference]] = []
    cursor = 0
    for match in matches:
        if match.start() > cursor:
            parts.append(raw[cursor:match.start()])
        parts.append(Reference(address=match.group(1), attribute=match.group(2)))
        cursor = match.end()
    if cursor < len(raw):
        parts.append(raw[cursor:])
    return Template(parts=parts)


def iter_references(value: AttributeValue) -> Iterator[Reference]:
    """Yield every reference contained in a value."""
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, Template):
        for part in value.parts:
            if isinstance(part, Reference):
                yield part
    elif isinstance(value, ListValue):
        for item in value.items:
            yield from iter_references(item)
    elif isinstance(value, MapValue):
        for item in value.entries.values():
            yield from iter_references(item)


def resolve_value(value: AttributeValue, lookup: Lookup) -> Any:
    """
    Substitute references with actual values.
    
    If the lookup returns UNKNOWN for any reference, the whole value is UNKNOWN.
    """
    if isinstance(value, LiteralValue):
        return value.value
    
    if isinstance(value, Reference):
        return lookup(value.address, value.attribute)
    
    if isinstance(value, Template):
        rendered = []
        for part in value.parts:
            if isinstance(part, Reference):
                resolved = lookup(part.address, part.attribute)
                if resolved is UNKNOWN:
                    return UNKNOWN
                rendered.append(str(resolved))
            else:
                rendered.append(part)
        return "".join(rendered)
    
    if isinstance(value, ListValue):
        items = [resolve_value(item, lookup) for item in value.items]
        return UNKNOWN if any(item is UNKNOWN for item in items) else items
    
    if isinstance(value, MapValue):
        entries = {key: resolve_value(item, lookup) for key, item in value.entries.items()}
        return UNKNOWN if any(item is UNKNOWN for item in entries.values()) else entries
    
    raise TypeError(f"Unsupported attribute value: {value!r}")


def resolve_attributes(attributes: Dict[str, AttributeValue], lookup: Lookup) -> Dict[str, Any]:
    """Resolve every attribute of a declaration."""
    return {name: resolve_value(value, lookup) for name, value in attributes.items()}
