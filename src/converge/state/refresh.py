"""Bring recorded provider attributes up to date before diffing."""

from typing import List
from .store import MemoryStateStore, StateStore
from ..providers.base import Provider
from ..utils.errors import ProviderError, ProviderErrorKind
from ..utils.logging import get_logger

logger = get_logger("state.refresh")


def refresh_state(store: StateStore, provider: Provider) -> List[str]:
    """
    Read every recorded resource from the provider.
    
    Resources the provider no longer knows are dropped from the store so the
    differ schedules them for creation. Applied attributes are left untouched.
    
    Returns:
        Addresses that were dropped
    """
    dropped = []
    for record in store.records():
        try:
            attributes = provider.read(record.type, record.identifier)
        except ProviderError as e:
            if e.kind != ProviderErrorKind.NOT_FOUND:
                raise
            logger.warning(f"{record.address} ({record.identifier}) no longer exists, dropping it from state")
            store.remove(record.address)
            dropped.append(record.address)
            continue
        
        if attributes != record.attributes:
            store.put(record.address, record.model_copy(update={"attributes": attributes}))
            logger.info(f"Refreshed attributes of {record.address}")
    
    return dropped


class RefreshedState:
    """
    A refreshed copy of a store.
    
    Planning reads the copy; the recorded store only changes when commit is
    called, which apply does once planning succeeded.
    """
    
    def __init__(self, snapshot: MemoryStateStore, dropped: List[str]):
        self.snapshot = snapshot
        self.dropped = dropped
    
    def commit(self, store: StateStore) -> None:
        """Write refreshed records and drop vanished ones in the given store."""
        for address in self.dropped:
            store.remove(address)
        for record in self.snapshot.records():
            if store.get(record.address) != record:
                store.put(record.address, record)
        logger.debug(f"Committed refresh: {len(self.dropped)} dropped")


def refresh_snapshot(store: StateStore, provider: Provider) -> RefreshedState:
    """Refresh a copy of the store, leaving the store itself untouched."""
    snapshot = MemoryStateStore(store.records())
    dropped = refresh_state(snapshot, provider)
    return RefreshedState(snapshot, dropped)
