"""
shared/utils/memory_store.py
In-process document store with the same interface as the MongoDB adapter.
Used by the test-suite and by STORE_BACKEND=memory for local runs.

Supports the subset of the Mongo query language the platform uses:
equality, $in, $ne, $gt, $gte, $lt, $lte, $exists in filters and
$set / $setOnInsert in patches.
"""

import copy
import uuid
from typing import Any, Dict, List, Optional, Set

from config.database import DuplicateKeyError, Filter, Patch, SortSpec

_MISSING = object()


def _compare(op: str, value: Any, operand: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
        if op == "$lt":
            return value < operand
        return value <= operand
    except TypeError:
        return False


def _match_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$in":
                if (None if value is _MISSING else value) not in operand:
                    return False
            elif op == "$ne":
                if (None if value is _MISSING else value) == operand:
                    return False
            elif op in ("$gt", "$gte", "$lt", "$lte"):
                if not _compare(op, value, operand):
                    return False
            elif op == "$exists":
                if (value is not _MISSING) != bool(operand):
                    return False
            else:
                raise ValueError(f"Unsupported query operator: {op}")
        return True
    return (None if value is _MISSING else value) == condition


def matches(doc: dict, filter: Filter) -> bool:
    return all(_match_condition(doc.get(k, _MISSING), cond) for k, cond in filter.items())


class InMemoryCollection:
    def __init__(self, name: str):
        self.name = name
        self._docs: List[dict] = []
        self._unique: Set[str] = set()

    # ── Reads ─────────────────────────────────────────────────

    async def find_one(self, filter: Filter) -> Optional[dict]:
        for doc in self._docs:
            if matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    async def find(
        self, filter: Filter, sort: Optional[SortSpec] = None, limit: int = 0
    ) -> List[dict]:
        found = [copy.deepcopy(d) for d in self._docs if matches(d, filter)]
        # Stable sorts applied last key first give a multi-key ordering
        for field, direction in reversed(list(sort or [])):
            found.sort(
                key=lambda d: (d.get(field) is not None, d.get(field)),
                reverse=direction < 0,
            )
        return found[:limit] if limit else found

    async def count(self, filter: Filter) -> int:
        return sum(1 for d in self._docs if matches(d, filter))

    # ── Writes ────────────────────────────────────────────────

    def _check_unique(self, candidate: dict, ignore: Optional[dict] = None) -> None:
        for field in self._unique:
            if field not in candidate:
                continue
            for doc in self._docs:
                if doc is ignore:
                    continue
                if doc.get(field) == candidate[field]:
                    raise DuplicateKeyError(self.name, field)

    async def insert_one(self, doc: dict) -> str:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", uuid.uuid4().hex)
        self._check_unique(stored)
        self._docs.append(stored)
        doc.setdefault("_id", stored["_id"])
        return str(stored["_id"])

    async def update_one(self, filter: Filter, patch: Patch, upsert: bool = False) -> int:
        unknown = set(patch) - {"$set", "$setOnInsert"}
        if unknown:
            raise ValueError(f"Unsupported update operator(s): {sorted(unknown)}")

        for doc in self._docs:
            if matches(doc, filter):
                updated = {**doc, **copy.deepcopy(patch.get("$set", {}))}
                self._check_unique(updated, ignore=doc)
                doc.clear()
                doc.update(updated)
                return 1

        if not upsert:
            return 0

        new_doc = {
            k: v for k, v in filter.items()
            if not (isinstance(v, dict) and any(key.startswith("$") for key in v))
        }
        new_doc.update(copy.deepcopy(patch.get("$setOnInsert", {})))
        new_doc.update(copy.deepcopy(patch.get("$set", {})))
        await self.insert_one(new_doc)
        return 1

    async def delete_one(self, filter: Filter) -> int:
        for i, doc in enumerate(self._docs):
            if matches(doc, filter):
                del self._docs[i]
                return 1
        return 0

    async def create_index(self, field: str, unique: bool = False) -> None:
        if unique:
            self._unique.add(field)


class InMemoryDocumentStore:
    def __init__(self):
        self._collections: Dict[str, InMemoryCollection] = {}

    def collection(self, name: str) -> InMemoryCollection:
        if name not in self._collections:
            self._collections[name] = InMemoryCollection(name)
        return self._collections[name]

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._collections.clear()
