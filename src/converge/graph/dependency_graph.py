"""Build directed dependency graph from resource declarations."""

import networkx as nx
from typing import Iterable, List, Dict, Optional, Set
from ..ingest.models import ResourceDeclaration
from ..ingest.references import iter_references
from ..utils.errors import (
    DependencyCycle,
    DuplicateResourceAddress,
    UnknownReference,
    UnsupportedResourceKind,
)
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")

EXPLICIT = "explicit"
REFERENCE = "reference"


class DependencyGraph:
    """Directed dependency graph: nodes=resources, edges=dependent -> dependency."""
    
    def __init__(self, supported_kinds: Optional[Iterable[str]] = None):
        self.graph = nx.DiGraph()
        self._resource_map: Dict[str, ResourceDeclaration] = {}
        self._supported_kinds = set(supported_kinds) if supported_kinds is not None else None
    
    def add_resource(self, resource: ResourceDeclaration) -> None:
        """Add a resource node. Edges are added once every node is known."""
        address = resource.address
        if address in self._resource_map:
            raise DuplicateResourceAddress(address)
        if self._supported_kinds is not None and resource.type not in self._supported_kinds:
            raise UnsupportedResourceKind(address, resource.type)
        
        self.graph.add_node(address, resource=resource)
        self._resource_map[address] = resource
    
    def _add_edges(self, resource: ResourceDeclaration) -> None:
        address = resource.address
        
        for dep_address in resource.depends_on:
            self._add_edge(address, dep_address, EXPLICIT)
        
        for value in resource.attributes.values():
            for reference in iter_references(value):
                self._add_edge(address, reference.address, REFERENCE)
    
    def _add_edge(self, address: str, dep_address: str, origin: str) -> None:
        if dep_address not in self._resource_map:
            raise UnknownReference(address, dep_address)
        if dep_address == address:
            raise DependencyCycle([address, address])
        
        if self.graph.has_edge(address, dep_address):
            origins = self.graph.edges[address, dep_address]["origins"]
            origins.add(origin)
        else:
            self.graph.add_edge(address, dep_address, origins={origin})
            logger.debug(f"Added dependency edge: {address} -> {dep_address} ({origin})")
    
    def build_from_resources(self, resources: List[ResourceDeclaration]) -> None:
        """
        Build complete dependency graph from list of resources.
        
        Raises:
            BuildError: On duplicate addresses, unsupported kinds, unknown
                references or dependency cycles
        """
        for resource in resources:
            self.add_resource(resource)
        
        for resource in resources:
            self._add_edges(resource)
        
        cycle = self.find_cycle()
        if cycle:
            raise DependencyCycle(cycle)
        
        logger.info(f"Built dependency graph with {self.graph.number_of_nodes()} nodes and {self.graph.number_of_edges()} edges")
    
    def find_cycle(self) -> Optional[List[str]]:
        """
        Depth-first search for a back edge.
        
        Returns:
            The cycle as a closed path (first == last), or None
        """
        done: Set[str] = set()
        
        for root in sorted(self.graph.nodes):
            if root in done:
                continue
            in_progress = [root]
            on_path = {root}
            iterators = [iter(sorted(self.graph.successors(root)))]
            
            while iterators:
                child = next(iterators[-1], None)
                if child is None:
                    finished = in_progress.pop()
                    on_path.discard(finished)
                    done.add(finished)
                    iterators.pop()
                    continue
                if child in on_path:
                    start = in_progress.index(child)
                    return in_progress[start:] + [child]
                if child not in done:
                    in_progress.append(child)
                    on_path.add(child)
                    iterators.append(iter(sorted(self.graph.successors(child))))
        
        return None
    
    def get_dependencies(self, address: str) -> Set[str]:
        """Direct dependencies of a resource."""
        if address not in self.graph:
            return set()
        return set(self.graph.successors(address))
    
    def get_dependents(self, address: str) -> Set[str]:
        """Resources that directly depend on the given resource."""
        if address not in self.graph:
            return set()
        return set(self.graph.predecessors(address))
    
    def get_downstream_resources(self, address: str) -> Set[str]:
        """Get all resources that depend on the given resource (downstream)."""
        if address not in self.graph:
            return set()
        return nx.ancestors(self.graph, address)
    
    def get_upstream_resources(self, address: str) -> Set[str]:
        """Get all resources that the given resource depends on (upstream)."""
        if address not in self.graph:
            return set()
        return nx.descendants(self.graph, address)
    
    def dependency_order(self) -> List[str]:
        """Addresses ordered so every dependency comes before its dependents."""
        return list(reversed(list(nx.lexicographical_topological_sort(self.graph))))
    
    def get_resource(self, address: str) -> Optional[ResourceDeclaration]:
        """Get resource declaration by address."""
        return self._resource_map.get(address)
    
    def __contains__(self, address: str) -> bool:
        return address in self._resource_map
