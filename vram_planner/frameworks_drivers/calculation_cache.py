"""
Memoization of computed plans keyed by a digest of the normalized input.
"""
import hashlib
import json
import threading
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from vram_planner.entities.accelerator import HardwareInventory
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.shared.logger import Logger
from vram_planner.shared.quantization_table import QuantizationTable

logger = Logger.get(__name__)

T = TypeVar("T")


def _quantization_key(quantization_format: str) -> str:
    # Aliases share a key; unknown tags keep their own
    if QuantizationTable.is_supported(quantization_format):
        return QuantizationTable.normalize(quantization_format)
    return quantization_format


def input_digest(inventory: HardwareInventory, models: Iterable[ModelSpec], workload: Optional[str] = None) -> str:
    """
    Deterministic digest over every input that influences a plan.

    Unit names, VRAM and quantities plus each model's name, size, parameters,
    quantization and layer hint all go in, so two model mixes with the same
    total size never share a key. The workload only changes the recommended
    profile but is part of the key as well.
    """
    payload = {
        "units": [
            {
                "name": selection.unit.name,
                "vram_gb": selection.unit.vram_gb,
                "bandwidth": selection.unit.memory_bandwidth_gbps,
                "custom": selection.unit.custom,
                "quantity": selection.quantity,
            }
            for selection in inventory.selections
        ],
        "models": [
            {
                "name": model.name,
                "launch_id": model.launch_id,
                "size_gb": model.size_gb,
                "parameters": model.parameters,
                "quantization": _quantization_key(model.quantization),
                "num_layers": model.num_layers,
            }
            for model in models
        ],
        "workload": workload,
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class CalculationCache:
    """
    Compute-or-fetch cache with one computation per key.

    Entries live until clear() is called; there is no expiry.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._guard:
            return key in self._entries

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        with self._guard:
            if key in self._entries:
                self.hits += 1
                logger.debug(f"Cache hit for {key[:12]}")
                return self._entries[key]

        with self._lock_for(key):
            # Another caller may have filled the entry while we waited
            with self._guard:
                if key in self._entries:
                    self.hits += 1
                    return self._entries[key]

            value = compute()

            with self._guard:
                self._entries[key] = value
                self.misses += 1
            return value

    def clear(self) -> int:
        """Drop every entry and return how many were dropped."""
        with self._guard:
            count = len(self._entries)
            self._entries.clear()
            self._key_locks.clear()
        if count:
            logger.info(f"Cleared {count} cached plans")
        return count
