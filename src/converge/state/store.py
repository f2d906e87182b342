"""Durable address -> ActualStateRecord storage."""

import hashlib
import json
import os
import shutil
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from .models import ActualStateRecord
from ..utils.errors import StateStoreCorrupt
from ..utils.logging import get_logger

logger = get_logger("state.store")

FORMAT_VERSION = 1


class StateStore(ABC):
    """Mapping from resource address to its recorded actual state."""
    
    @abstractmethod
    def get(self, address: str) -> Optional[ActualStateRecord]:
        pass
    
    @abstractmethod
    def put(self, address: str, record: ActualStateRecord) -> None:
        """Insert or overwrite the record for an address."""
        pass
    
    @abstractmethod
    def remove(self, address: str) -> None:
        pass
    
    @abstractmethod
    def addresses(self) -> List[str]:
        pass
    
    def records(self) -> List[ActualStateRecord]:
        return [record for record in (self.get(a) for a in self.addresses()) if record is not None]
    
    def __contains__(self, address: str) -> bool:
        return self.get(address) is not None


class MemoryStateStore(StateStore):
    """Process-local store."""
    
    def __init__(self, records: Optional[List[ActualStateRecord]] = None):
        self._lock = threading.Lock()
        self._records: Dict[str, ActualStateRecord] = {}
        for record in records or []:
            self._records[record.address] = record
    
    def get(self, address: str) -> Optional[ActualStateRecord]:
        with self._lock:
            record = self._records.get(address)
            return record.model_copy(deep=True) if record else None
    
    def put(self, address: str, record: ActualStateRecord) -> None:
        with self._lock:
            self._records[address] = record.model_copy(deep=True)
    
    def remove(self, address: str) -> None:
        with self._lock:
            self._records.pop(address, None)
    
    def addresses(self) -> List[str]:
        with self._lock:
            return sorted(self._records)


def _checksum(resources: Dict[str, Any]) -> str:
    canonical = json.dumps(resources, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class JsonStateStore(MemoryStateStore):
    """
    State kept in a JSON file.
    
    Every write replaces the whole file atomically and keeps the previous
    version next to it as '<name>.backup'. The file carries a checksum over
    its resources so a damaged file is detected on load.
    """
    
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.serial = 0
        self._load()
    
    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".backup")
    
    def _load(self) -> None:
        if not self.path.exists():
            logger.info(f"No state at {self.path}, starting empty")
            return
        
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateStoreCorrupt(f"State file {self.path} is not valid JSON: {e}")
        except OSError as e:
            raise StateStoreCorrupt(f"State file {self.path} cannot be read: {e}")
        
        if not isinstance(data, dict):
            raise StateStoreCorrupt(f"State file {self.path} must contain a mapping")
        
        if data.get("format_version") != FORMAT_VERSION:
            raise StateStoreCorrupt(
                f"State file {self.path} has unsupported format_version {data.get('format_version')!r}"
            )
        
        resources = data.get("resources")
        if not isinstance(resources, dict):
            raise StateStoreCorrupt(f"State file {self.path} has no 'resources' mapping")
        
        if data.get("checksum") != _checksum(resources):
            raise StateStoreCorrupt(f"State file {self.path} failed its checksum")
        
        for address, raw in resources.items():
            try:
                record = ActualStateRecord.model_validate(raw)
            except ValidationError as e:
                raise StateStoreCorrupt(f"Invalid record for {address} in {self.path}: {e}")
            if record.address != address:
                raise StateStoreCorrupt(f"Record key {address} does not match address {record.address}")
            self._records[address] = record
        
        serial = data.get("serial", 0)
        if isinstance(serial, bool) or not isinstance(serial, int) or serial < 0:
            raise StateStoreCorrupt(f"State file {self.path} has invalid serial {serial!r}")
        self.serial = serial
        logger.info(f"Loaded {len(self._records)} records from {self.path} (serial {self.serial})")
    
    def put(self, address: str, record: ActualStateRecord) -> None:
        with self._lock:
            previous = self._records.get(address)
            self._records[address] = record.model_copy(deep=True)
            try:
                self._persist()
            except BaseException:
                self._restore(address, previous)
                raise
    
    def remove(self, address: str) -> None:
        with self._lock:
            previous = self._records.pop(address, None)
            if previous is None:
                return
            try:
                self._persist()
            except BaseException:
                self._restore(address, previous)
                raise
    
    def _restore(self, address: str, previous: Optional[ActualStateRecord]) -> None:
        """Undo an in-memory change whose write failed. Caller holds the lock."""
        if previous is None:
            self._records.pop(address, None)
        else:
            self._records[address] = previous
        logger.error(f"Writing state for {address} to {self.path} failed, change discarded")
    
    def _persist(self) -> None:
        """Write the current records. Caller holds the lock."""
        resources = {
            address: record.model_dump(mode="json")
            for address, record in sorted(self._records.items())
        }
        serial = self.serial + 1
        document = {
            "format_version": FORMAT_VERSION,
            "serial": serial,
            "checksum": _checksum(resources),
            "resources": resources,
        }
        
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists():
            shutil.copyfile(self.path, self.backup_path)
        
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        
        self.serial = serial
        logger.debug(f"Wrote state serial {serial} to {self.path}")
