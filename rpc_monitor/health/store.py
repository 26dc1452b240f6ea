"""
Health store - Bounded per-endpoint history with JSON persistence.

This module keeps the probe history of every endpoint in memory and
snapshots it to a JSON file after each sweep.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from rpc_monitor.core.entities import Registry, Sample
from rpc_monitor.core.errors import LoadCorruptionError, PersistenceError

logger = logging.getLogger(__name__)


# Snapshot file structure
# {
#   "chain": {
#     "node_name": [
#       {"ts": int, "status": int | str},  # oldest first, at most max_entries
#     ]
#   }
# }

# Number of trailing samples needed by the alert decider
ALERT_TAIL = 3


class HistoryStore:
    """
    In-memory store of chain -> node name -> history.

    Every read and write goes through a single lock and reads return
    copies, so readers never observe a history in the middle of an update.
    """

    def __init__(
        self,
        max_entries: int = 1008,
        data_file: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize an empty store.

        Args:
            max_entries: Maximum number of samples kept per endpoint
            data_file: Path of the JSON snapshot. If None, persistence is
                       disabled and snapshot_to_disk() is a no-op
        """
        if max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self.max_entries = max_entries
        self.data_file = Path(data_file) if data_file is not None else None
        self._data: Dict[str, Dict[str, List[Sample]]] = {}
        self._lock = threading.Lock()

    def append(self, chain: str, name: str, sample: Sample) -> List[Sample]:
        """
        Append a sample, dropping the oldest ones beyond max_entries.

        Args:
            chain: Chain identifier
            name: Node name
            sample: New sample

        Returns:
            The newest samples (up to three, the new one last), taken
            before truncation so the alert decider sees them even for
            very small windows
        """
        with self._lock:
            history = self._data.setdefault(chain, {}).setdefault(name, [])
            history.append(sample)
            tail = history[-ALERT_TAIL:]
            overflow = len(history) - self.max_entries
            if overflow > 0:
                del history[:overflow]
            return tail

    def history(self, chain: str, name: str) -> List[Sample]:
        """Return a copy of the full history of an endpoint."""
        with self._lock:
            return list(self._data.get(chain, {}).get(name, []))

    def window(self, chain: str, name: str, limit: Any = None) -> List[Sample]:
        """
        Return the most recent samples of an endpoint, oldest first.

        Args:
            chain: Chain identifier
            name: Node name
            limit: Number of samples. None, non-integer or negative values
                   return the whole history

        Returns:
            Up to limit samples
        """
        with self._lock:
            history = self._data.get(chain, {}).get(name, [])
            return _tail(history, limit)

    def snapshot(
        self, registry: Optional[Registry] = None, limit: Any = None
    ) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        """
        Build a JSON-ready projection of the store.

        Args:
            registry: If given, the projection follows the registry order
                      and includes never-probed endpoints as empty lists;
                      stored endpoints missing from the registry are left out
            limit: Per-endpoint window, as in window()

        Returns:
            Dict chain -> node name -> list of {"ts", "status"}
        """
        with self._lock:
            if registry is None:
                return {
                    chain: {
                        name: [s.to_dict() for s in _tail(history, limit)]
                        for name, history in nodes.items()
                    }
                    for chain, nodes in self._data.items()
                }

            result: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
            for chain, endpoints in registry.items():
                nodes = self._data.get(chain, {})
                result[chain] = {
                    endpoint.name: [
                        s.to_dict() for s in _tail(nodes.get(endpoint.name, []), limit)
                    ]
                    for endpoint in endpoints
                }
            return result

    def to_dict(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        """Serialize the whole store to its snapshot structure."""
        return self.snapshot()

    def from_dict(self, data: Any) -> None:
        """
        Replace the store content with a decoded snapshot.

        Histories longer than max_entries keep their newest samples.

        Args:
            data: Decoded snapshot structure

        Raises:
            LoadCorruptionError: If any part of the structure is malformed;
                                 the store is left unchanged
        """
        loaded = _decode_snapshot(data)
        for nodes in loaded.values():
            for name, history in nodes.items():
                overflow = len(history) - self.max_entries
                if overflow > 0:
                    nodes[name] = history[overflow:]
        with self._lock:
            self._data = loaded

    def snapshot_to_disk(self) -> None:
        """
        Write the store to data_file.

        The snapshot goes to a temporary file in the same directory which
        then replaces data_file, so a crash mid-write leaves the previous
        snapshot intact.

        Raises:
            PersistenceError: If the snapshot cannot be written
        """
        if self.data_file is None:
            logger.debug("No data file configured, skipping snapshot")
            return

        data = self.to_dict()
        directory = self.data_file.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.data_file.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.data_file)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise PersistenceError(f"Failed to write {self.data_file}: {e}") from e

        logger.debug("Saved history for %d chains to %s", len(data), self.data_file)

    def load_from_disk(self) -> None:
        """
        Load the store from data_file.

        A missing file leaves the store empty. An unreadable or malformed
        file is logged and also leaves the store empty; this never raises.
        """
        if self.data_file is None:
            return

        if not self.data_file.exists():
            logger.debug("Data file not found: %s. Starting fresh.", self.data_file)
            return

        try:
            try:
                with open(self.data_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise LoadCorruptionError(str(e)) from e
            self.from_dict(data)
        except LoadCorruptionError as e:
            logger.warning(
                "Failed to load %s, starting fresh: %s", self.data_file, e
            )
            with self._lock:
                self._data = {}
            return

        logger.info(
            "Loaded history for %d endpoints from %s",
            self.endpoint_count(),
            self.data_file,
        )

    def endpoint_count(self) -> int:
        with self._lock:
            return sum(len(nodes) for nodes in self._data.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HistoryStore):
            return NotImplemented
        return self.to_dict() == other.to_dict()


def _tail(history: List[Sample], limit: Any) -> List[Sample]:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        return list(history)
    if limit == 0:
        return []
    return history[-limit:]


def _decode_snapshot(data: Any) -> Dict[str, Dict[str, List[Sample]]]:
    if not isinstance(data, dict):
        raise LoadCorruptionError("snapshot must be a JSON object")

    decoded: Dict[str, Dict[str, List[Sample]]] = {}
    for chain, nodes in data.items():
        if not isinstance(nodes, dict):
            raise LoadCorruptionError(f"chain {chain!r} must map node names to lists")
        decoded[chain] = {}
        for name, items in nodes.items():
            if not isinstance(items, list):
                raise LoadCorruptionError(f"history of {chain}/{name} must be a list")
            decoded[chain][name] = [_decode_sample(chain, name, item) for item in items]
    return decoded


def _decode_sample(chain: str, name: str, item: Any) -> Sample:
    if not isinstance(item, dict):
        raise LoadCorruptionError(f"invalid sample in {chain}/{name}: {item!r}")
    ts = item.get("ts")
    status = item.get("status")
    if isinstance(ts, bool) or not isinstance(ts, int):
        raise LoadCorruptionError(f"invalid timestamp in {chain}/{name}: {ts!r}")
    if isinstance(status, bool) or not isinstance(status, (int, str)):
        raise LoadCorruptionError(f"invalid status in {chain}/{name}: {status!r}")
    return Sample(timestamp=ts, status=status)
