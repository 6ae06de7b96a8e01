"""JSON-file backed store: reloaded under a file lock, rewritten atomically."""
from __future__ import annotations

import dataclasses
import fcntl
import json
import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Hashable

from ..interfaces.store import ASSETS, BORROWERS, META, POSITIONS, PROTOCOL
from ..models import BorrowerProfile, CollateralAsset, LendingPosition, ProtocolState
from .memory import MemoryStore, StagedTransaction

logger = logging.getLogger(__name__)

_TABLE_MODELS: dict[str, type | None] = {
    BORROWERS: BorrowerProfile,
    ASSETS: CollateralAsset,
    POSITIONS: LendingPosition,
    PROTOCOL: ProtocolState,
    META: None,
}


def _encode_key(key: Hashable) -> Any:
    return list(key) if isinstance(key, tuple) else key


def _decode_key(raw: Any) -> Hashable:
    return tuple(raw) if isinstance(raw, list) else raw


class FileStore(MemoryStore):
    """MemoryStore whose tables live in a single JSON document.

    Several processes may share one document. Every transaction takes an
    exclusive ``flock`` on a sidecar ``.lock`` file and re-reads the document
    before running, so writers never clobber each other's commits. Reads
    outside a transaction go through the same path.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._depth = 0
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, table: str, key: Hashable) -> Any | None:
        with self.transaction() as txn:
            return txn.get(table, key)

    def items(self, table: str) -> list[tuple[Hashable, Any]]:
        with self.transaction() as txn:
            return txn.items(table)

    @contextmanager
    def _guard(self) -> Iterator[None]:
        # Nested transactions in this thread already hold the flock.
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        with open(self._lock_path, "a") as handle:
            fcntl.flock(handle, fcntl.LOCK_EX)
            self._depth = 1
            try:
                self._load()
                yield
            finally:
                self._depth = 0
                fcntl.flock(handle, fcntl.LOCK_UN)

    def _load(self) -> None:
        for table in self._tables.values():
            table.clear()
        if not self._path.exists():
            logger.debug("No state file at %s, starting empty", self._path)
            return

        payload = json.loads(self._path.read_text(encoding="utf-8"))
        for table, model in _TABLE_MODELS.items():
            for raw_key, raw_value in payload.get(table, []):
                value = model(**raw_value) if model is not None else raw_value
                self._tables[table][_decode_key(raw_key)] = value
        logger.debug("Loaded state from %s", self._path)

    @staticmethod
    def _serialize(tables: dict[str, dict[Hashable, Any]]) -> str:
        payload: dict[str, list[Any]] = {}
        for table, model in _TABLE_MODELS.items():
            rows = []
            for key, value in tables[table].items():
                encoded = dataclasses.asdict(value) if model is not None else value
                rows.append([_encode_key(key), encoded])
            payload[table] = rows
        return json.dumps(payload, indent=2, sort_keys=True)

    def _persist(self, txn: StagedTransaction) -> None:
        _atomic_write(self._path, self._serialize(txn.merged()))


def _atomic_write(path: Path, content: str) -> None:
    tmp = tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8")
    try:
        with tmp as f:
            f.write(content)
            f.flush()
        Path(tmp.name).replace(path)
    except Exception:
        Path(tmp.name).unlink(missing_ok=True)
        raise
