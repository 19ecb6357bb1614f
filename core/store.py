# core/store.py

import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from pymongo import AsyncMongoClient, ASCENDING, DESCENDING
from pymongo.errors import OperationFailure, PyMongoError

from .config import settings
from .errors import AuthorizationDenied, NotFound, TransientFetchFailure
from .models import DocumentSnapshot
from .paths import collection_id, parent_path, split_path

# MongoDB server error code for "Unauthorized"
UNAUTHORIZED_CODE = 13


@contextmanager
def translate_errors(operation: str):
    """Maps driver errors onto the core's error taxonomy."""
    try:
        yield
    except OperationFailure as e:
        if e.code == UNAUTHORIZED_CODE:
            raise AuthorizationDenied(f"{operation}: {e}") from e
        raise TransientFetchFailure(f"{operation}: {e}") from e
    except PyMongoError as e:
        raise TransientFetchFailure(f"{operation}: {e}") from e


def build_filter(where: Optional[Dict[str, Any]], order_by: Optional[str] = None,
                 descending: bool = False, start_after: Optional[DocumentSnapshot] = None,
                 parent: Optional[str] = None) -> Dict[str, Any]:
    """
    Builds the Mongo filter for an equality query, optionally scoped to one
    parent collection and continued after a previously seen document.
    """
    clauses: List[Dict[str, Any]] = []
    if parent is not None:
        clauses.append({"_parent": parent})
    if where:
        clauses.append(dict(where))
    if start_after is not None:
        if order_by:
            value = start_after.data.get(order_by)
            op = "$lt" if descending else "$gt"
            clauses.append({"$or": [
                {order_by: {op: value}},
                {order_by: value, "_id": {"$gt": start_after.path}},
            ]})
        else:
            clauses.append({"_id": {"$gt": start_after.path}})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_sort(order_by: Optional[str], descending: bool = False) -> list:
    # Path breaks ties so that cursors continue deterministically.
    if not order_by:
        return [("_id", ASCENDING)]
    return [(order_by, DESCENDING if descending else ASCENDING), ("_id", ASCENDING)]


def to_snapshot(doc: Dict[str, Any]) -> DocumentSnapshot:
    data = dict(doc)
    path = data.pop("_id")
    data.pop("_parent", None)
    return DocumentSnapshot(id=split_path(path)[-1], path=path, data=data)


class DocumentStore:
    """
    Hierarchical document store over MongoDB.
    Each collection id (farmers, fields, visits, ...) is one Mongo collection;
    documents keep their full path as `_id` and their parent collection path as `_parent`.
    """

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self.client = AsyncMongoClient(uri or settings.final_mongo_uri, tz_aware=True)
        self.db = self.client[db_name or settings.db_name]
        print("---DOCUMENT STORE: Connected to MongoDB---")

    async def ping(self) -> bool:
        with translate_errors("ping"):
            await self.client.admin.command("ping")
        return True

    async def close(self):
        await self.client.close()

    async def _find(self, coll: str, filter_: Dict[str, Any], order_by: Optional[str],
                    descending: bool, limit: Optional[int], operation: str) -> List[DocumentSnapshot]:
        with translate_errors(operation):
            cursor = self.db[coll].find(filter_).sort(build_sort(order_by, descending))
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list()
        return [to_snapshot(d) for d in docs]

    async def query(self, collection_path: str, where: Optional[Dict[str, Any]] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None,
                    start_after: Optional[DocumentSnapshot] = None) -> List[DocumentSnapshot]:
        """Equality query over the documents of one collection."""
        filter_ = build_filter(where, order_by, descending, start_after, parent=collection_path)
        return await self._find(collection_id(collection_path), filter_, order_by,
                                descending, limit, f"query {collection_path}")

    async def collection_group(self, group_id: str, where: Optional[Dict[str, Any]] = None,
                               order_by: Optional[str] = None, descending: bool = False,
                               limit: Optional[int] = None,
                               start_after: Optional[DocumentSnapshot] = None) -> List[DocumentSnapshot]:
        """Equality query over every collection named `group_id`, whatever its parent."""
        filter_ = build_filter(where, order_by, descending, start_after)
        return await self._find(group_id, filter_, order_by, descending, limit,
                                f"collection group {group_id}")

    async def get(self, path: str) -> Optional[DocumentSnapshot]:
        with translate_errors(f"get {path}"):
            doc = await self.db[collection_id(path)].find_one({"_id": path})
        return to_snapshot(doc) if doc else None

    async def add(self, collection_path: str, data: Dict[str, Any]) -> DocumentSnapshot:
        path = f"{collection_path}/{uuid.uuid4().hex[:20]}"
        return await self.set(path, data)

    async def set(self, path: str, data: Dict[str, Any]) -> DocumentSnapshot:
        doc = {"_id": path, "_parent": parent_path(path), **data}
        with translate_errors(f"set {path}"):
            await self.db[collection_id(path)].replace_one({"_id": path}, doc, upsert=True)
        return to_snapshot(doc)

    async def update(self, path: str, data: Dict[str, Any]):
        with translate_errors(f"update {path}"):
            result = await self.db[collection_id(path)].update_one({"_id": path}, {"$set": data})
        if result.matched_count == 0:
            raise NotFound(path)

    async def delete(self, path: str):
        with translate_errors(f"delete {path}"):
            await self.db[collection_id(path)].delete_one({"_id": path})


def ensure_owned(snapshot: Optional[DocumentSnapshot], owner_uid: str) -> Optional[DocumentSnapshot]:
    """Single-document reads of another account's data are denied like any other foreign read."""
    if snapshot is None:
        return None
    if snapshot.data.get("ownerUid") != owner_uid:
        raise AuthorizationDenied(f"get {snapshot.path}: owner mismatch")
    return snapshot
