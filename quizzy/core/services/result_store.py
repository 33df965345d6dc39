"""Append-only storage for completed quiz results.

Two backends share the :class:`ResultStore` protocol: an in-memory list used
by tests and single-process demos, and a JSON-lines file where each line is
one record document::

    {"ownerId": "u-123", "score": 4, "total": 5, "completedAt": 1718000000000}

``completedAt`` is stored as epoch milliseconds. Records are never updated or
deleted through this module.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quizzy.core.errors import InvalidRecordError, PersistenceError, SourceUnavailableError
from quizzy.core.models import ResultRecord

logger = logging.getLogger(__name__)


class ResultStore(Protocol):
    """Durable append-only collection of result records."""

    def append(self, record: ResultRecord) -> None: ...

    def query_all(self) -> list[ResultRecord]: ...

    def query_by_owner(self, owner_id: str) -> list[ResultRecord]: ...


class ResultDocument(BaseModel):
    """Wire shape of a result record inside the store."""

    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(alias="ownerId", min_length=1)
    score: int = Field(ge=0)
    total: int = Field(gt=0)
    completed_at_ms: int = Field(alias="completedAt", ge=0)

    @classmethod
    def from_record(cls, record: ResultRecord) -> "ResultDocument":
        return cls(
            owner_id=record.owner_id,
            score=record.score,
            total=record.total,
            completed_at_ms=int(record.completed_at.timestamp() * 1000),
        )

    def to_record(self) -> ResultRecord:
        return ResultRecord(
            owner_id=self.owner_id,
            score=self.score,
            total=self.total,
            completed_at=datetime.fromtimestamp(self.completed_at_ms / 1000, tz=timezone.utc),
        )


class InMemoryResultStore:
    """List-backed store; queries return snapshots."""

    def __init__(self, records: list[ResultRecord] | None = None) -> None:
        self._records: list[ResultRecord] = list(records or [])
        self._lock = Lock()

    def append(self, record: ResultRecord) -> None:
        with self._lock:
            self._records.append(record)

    def query_all(self) -> list[ResultRecord]:
        with self._lock:
            return list(self._records)

    def query_by_owner(self, owner_id: str) -> list[ResultRecord]:
        with self._lock:
            return [record for record in self._records if record.owner_id == owner_id]


class JsonLinesResultStore:
    """File-backed store writing one JSON document per line."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = Lock()

    def append(self, record: ResultRecord) -> None:
        document = ResultDocument.from_record(record)
        line = document.model_dump_json(by_alias=True)
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
                    handle.flush()
                    os.fsync(handle.fileno())
            except OSError as exc:
                raise PersistenceError(f"Could not write result to {self._path}: {exc}") from exc

    def query_all(self) -> list[ResultRecord]:
        with self._lock:
            return self._read_records()

    def query_by_owner(self, owner_id: str) -> list[ResultRecord]:
        with self._lock:
            return [record for record in self._read_records() if record.owner_id == owner_id]

    def _read_records(self) -> list[ResultRecord]:
        if not self._path.exists():
            return []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailableError(f"Could not read results from {self._path}: {exc}") from exc

        records: list[ResultRecord] = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                records.append(ResultDocument.model_validate(json.loads(line)).to_record())
            except (ValueError, ValidationError, InvalidRecordError) as exc:
                logger.warning("Skipping malformed result at %s:%d: %s", self._path, line_number, exc)
        return records


def persist(store: ResultStore, record: ResultRecord) -> None:
    """Append ``record`` to ``store``, normalising failures to PersistenceError."""
    try:
        store.append(record)
    except PersistenceError:
        raise
    except Exception as exc:
        raise PersistenceError(f"Result store rejected the record: {exc}") from exc
    logger.info(
        "Persisted result for %s: %d/%d", record.owner_id, record.score, record.total
    )
