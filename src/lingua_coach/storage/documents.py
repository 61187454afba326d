"""Document-store collaborators (JSON files + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

Filter = tuple[str, str, Any]


class DocumentNotFound(Exception):
    """Targeted update of a document that does not exist."""


class DocumentStore(Protocol):
    """Document-style persistence keyed by collection and document id.

    Each call is atomic at the single-document level. Implementations are
    blocking; callers run them off the event loop.
    """

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = True
    ) -> None: ...

    def add(self, collection: str, data: dict[str, Any]) -> str: ...

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None: ...

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]: ...


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _comparable(value: Any) -> Any:
    """Datetimes are stored as strings; compare them as datetimes."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    ">=": lambda a, b: a >= b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    "<": lambda a, b: a < b,
}


class JsonDocumentStore:
    """One JSON file per collection under ``root``.

    Args:
        root: Directory holding ``<collection>.json`` files.
    """

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, collection: str) -> Path:
        return self.root / f"{collection}.json"

    @contextmanager
    def _locked(self, collection: str, exclusive: bool) -> Iterator[None]:
        lock_path = self.root / f"{collection}.json.lock"
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, collection: str) -> dict[str, dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, collection: str, documents: dict[str, dict[str, Any]]) -> None:
        with tempfile.NamedTemporaryFile(
            "w", dir=self.root, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(documents, tmp, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp.name, self._path(collection))

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._locked(collection, exclusive=False):
            return self._read(collection).get(doc_id)

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = True
    ) -> None:
        with self._locked(collection, exclusive=True):
            documents = self._read(collection)
            if merge and doc_id in documents:
                documents[doc_id] = _deep_merge(documents[doc_id], data)
            else:
                documents[doc_id] = data
            self._write(collection, documents)

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._locked(collection, exclusive=True):
            documents = self._read(collection)
            documents[doc_id] = data
            self._write(collection, documents)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        with self._locked(collection, exclusive=True):
            documents = self._read(collection)
            if doc_id not in documents:
                raise DocumentNotFound(f"{collection}/{doc_id}")
            documents[doc_id] = {**documents[doc_id], **fields}
            self._write(collection, documents)

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        with self._locked(collection, exclusive=False):
            documents = self._read(collection)

        results = [
            (doc_id, data)
            for doc_id, data in documents.items()
            if all(
                field in data
                and _OPERATORS[op](_comparable(data[field]), _comparable(value))
                for field, op, value in filters
            )
        ]
        if order_by is not None:
            results.sort(key=lambda item: _comparable(item[1].get(order_by)), reverse=descending)
        if limit is not None:
            results = results[:limit]
        return results
