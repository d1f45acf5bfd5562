"""Hotspot store — the shared collection renderers draw from.

Writers are independent async fetches that can finish in any order. Each one
is stamped with a sequence number when it is *issued* (SequenceCounter).

Bulk writes and single-key writes are ordered separately and compose by key:

* replace_all is rejected only if an earlier-applied replace_all carried a
  newer sequence. It always wins for the keys it includes.
* upsert_single is rejected only if the same key was already upserted with a
  newer sequence. Other keys are never touched.
* An upserted key that replace_all does not include survives it when the
  upsert is newer than the bulk write, and is dropped otherwise.

A slow fetch issued before a newer one of the same kind therefore cannot
overwrite the newer result, whatever order they complete in, and a search
marker and a bulk refresh never discard each other.
"""

import itertools
import logging
from types import MappingProxyType
from typing import Iterable

from aqiglobe.models import EMPTY_SNAPSHOT, HotspotRecord, StoreSnapshot

logger = logging.getLogger(__name__)


class SequenceCounter:
    """Monotonic issue-time counter. The first call returns 1."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._last = start - 1

    def next(self) -> int:
        self._last = next(self._counter)
        return self._last

    @property
    def last_issued(self) -> int:
        return self._last


class HotspotStore:
    """Sequence-stamped mapping of hotspot key → HotspotRecord.

    Every mutation builds a new StoreSnapshot and swaps it in with a single
    assignment, so snapshot() never sees a half-applied write. The snapshot's
    ``applied_sequence`` is the highest sequence applied by either operation.
    """

    def __init__(self) -> None:
        self._snapshot = EMPTY_SNAPSHOT
        self._bulk_sequence = 0  # Last applied replace_all
        self._key_sequences: dict[str, int] = {}  # Last applied upsert, per key
        self.rejected_writes = 0

    @property
    def applied_sequence(self) -> int:
        return self._snapshot.applied_sequence

    def _reject(self, op: str, sequence: int, newer: int) -> bool:
        self.rejected_writes += 1
        logger.debug("Rejected stale %s: sequence %d < %d", op, sequence, newer)
        return False

    def _install(self, mapping: dict[str, HotspotRecord], sequence: int) -> None:
        self._snapshot = StoreSnapshot(
            records=MappingProxyType(mapping),
            applied_sequence=max(sequence, self._snapshot.applied_sequence),
        )

    def replace_all(self, records: Iterable[HotspotRecord], sequence: int) -> bool:
        """Install ``records`` as the bulk content of the store.

        Keys absent from ``records`` are dropped, except upserted keys whose
        upsert is newer than ``sequence``. Later records win on duplicate keys.

        Returns:
            True if applied, False if rejected as stale.
        """
        if sequence < self._bulk_sequence:
            return self._reject("replace_all", sequence, self._bulk_sequence)
        mapping = {r.key: r for r in records}
        current = self._snapshot.records
        for key, key_sequence in self._key_sequences.items():
            if key not in mapping and key in current and key_sequence > sequence:
                mapping[key] = current[key]
        self._bulk_sequence = sequence
        self._install(mapping, sequence)
        return True

    def upsert_single(self, record: HotspotRecord, sequence: int) -> bool:
        """Insert or overwrite one key, leaving every other key as is.

        Returns:
            True if applied, False if the key was already upserted with a
            newer sequence.
        """
        last = self._key_sequences.get(record.key, 0)
        if sequence < last:
            return self._reject("upsert_single", sequence, last)
        mapping = dict(self._snapshot.records)
        mapping[record.key] = record
        self._key_sequences[record.key] = sequence
        self._install(mapping, sequence)
        return True

    def clear(self) -> None:
        """Drop all records. Sequence watermarks are kept so stale writes stay rejected."""
        self._snapshot = StoreSnapshot(
            records=MappingProxyType({}),
            applied_sequence=self._snapshot.applied_sequence,
        )

    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    def get(self, key: str) -> HotspotRecord | None:
        return self._snapshot.records.get(key)
