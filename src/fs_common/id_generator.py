"""Snowflake-style ID generator for business IDs (auctions, bids, allocations).

Generates monotonically increasing, unique string IDs with a short type prefix,
e.g. ``auc_7163544830369792``. Simplified for a single process per machine_id.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout of the numeric part (64 bits):
      - 41 bits: millisecond timestamp (since custom epoch)
      - 10 bits: machine_id (0-1023)
      - 12 bits: sequence (0-4095 per millisecond)
    """

    _EPOCH_MS = 1_700_000_000_000
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_timestamp_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            ts = self._current_ms()
            if ts == self._last_timestamp_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    while ts <= self._last_timestamp_ms:
                        ts = self._current_ms()
            else:
                self._sequence = 0

            self._last_timestamp_ms = ts
            return (
                ((ts - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self, prefix: str = "") -> str:
        value = str(self.next_int())
        return f"{prefix}_{value}" if prefix else value

    def _current_ms(self) -> int:
        return int(time.time() * 1000)


_default_generator = SnowflakeIdGenerator()


def generate_id(prefix: str = "") -> str:
    """Next ID from the module-level default generator, optionally prefixed."""
    return _default_generator.next_id(prefix)
