import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import aiosqlite

from .errors import WorkOrderConflictError
from .schemas import DEFAULT_STATUS, Part, Technician, WorkOrder


logger = logging.getLogger(__name__)

_CONTAINER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=True)


def _container(name: str) -> str:
    if not _CONTAINER_RE.match(name or ""):
        raise ValueError(f"invalid container name: {name!r}")
    return name


class RecordStore:
    """Keyed JSON document store on SQLite.

    Each container is a table of ``(partition_key, id) -> doc_json`` rows, so a
    document id is unique within its partition. Queries filter on document
    fields with ``json_extract`` and return rows in insertion order.
    """

    def __init__(
        self,
        path: str,
        technicians_container: str = "technicians",
        parts_container: str = "parts_inventory",
        work_orders_container: str = "work_orders",
    ):
        self.path = path
        self.technicians = _container(technicians_container)
        self.parts = _container(parts_container)
        self.work_orders = _container(work_orders_container)

    async def init(self) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            for name in (self.technicians, self.parts, self.work_orders):
                await db.execute(
                    f"CREATE TABLE IF NOT EXISTS {name}("
                    "id TEXT NOT NULL, "
                    "partition_key TEXT NOT NULL, "
                    "doc_json TEXT NOT NULL, "
                    "etag TEXT, "
                    "updated_at TEXT, "
                    "PRIMARY KEY (partition_key, id))"
                )
            await db.commit()
        logger.info("Record store initialized at %s", self.path)

    async def _upsert(self, container: str, doc_id: str, partition_key: str, doc: Dict[str, Any]) -> str:
        etag = uuid.uuid4().hex
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                f"INSERT INTO {container}(id, partition_key, doc_json, etag, updated_at) VALUES (?,?,?,?,?) "
                "ON CONFLICT(partition_key, id) DO UPDATE SET "
                "doc_json=excluded.doc_json, etag=excluded.etag, updated_at=excluded.updated_at",
                (doc_id, partition_key, _json_dumps(doc), etag, utc_now().isoformat()),
            )
            await db.commit()
        return etag

    async def _query(self, container: str, where: str = "", params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        sql = f"SELECT doc_json, etag FROM {container}"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY rowid ASC"
        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, tuple(params))
            rows = await cursor.fetchall()
            await cursor.close()
        docs = []
        for row in rows:
            doc = json.loads(row["doc_json"])
            if row["etag"]:
                doc["_etag"] = row["etag"]
            docs.append(doc)
        return docs

    async def upsert_technician(self, technician: Technician) -> None:
        doc = technician.model_dump(mode="json", by_alias=True)
        await self._upsert(self.technicians, technician.id, technician.department or "unassigned", doc)

    async def upsert_part(self, part: Part) -> None:
        doc = part.model_dump(mode="json", by_alias=True)
        await self._upsert(self.parts, part.id, part.category or "uncategorized", doc)

    async def query_technicians_by_status(self, status: str) -> List[Technician]:
        docs = await self._query(self.technicians, "json_extract(doc_json, '$.currentStatus') = ?", (status,))
        return [Technician.model_validate(doc) for doc in docs]

    async def query_parts_by_numbers(self, part_numbers: List[str]) -> List[Part]:
        numbers = list(part_numbers)
        if not numbers:
            return []
        placeholders = ", ".join("?" for _ in numbers)
        docs = await self._query(
            self.parts,
            f"json_extract(doc_json, '$.partNumber') IN ({placeholders})",
            numbers,
        )
        return [Part.model_validate(doc) for doc in docs]

    async def create_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """Insert a new work order partitioned by status.

        ``createdAt`` is always stamped here; a duplicate id in the same
        partition raises ``WorkOrderConflictError``.
        """
        record = work_order.model_copy(
            update={
                "id": work_order.id or str(uuid.uuid4()),
                "status": work_order.status or DEFAULT_STATUS,
                "created_at": utc_now(),
                "etag": uuid.uuid4().hex,
            }
        )
        logger.info("Creating work order %s for machine %s", record.work_order_number, record.machine_id)
        doc = record.to_document()
        doc.pop("_etag", None)
        try:
            async with aiosqlite.connect(self.path) as db:
                await db.execute(
                    f"INSERT INTO {self.work_orders}(id, partition_key, doc_json, etag, updated_at) VALUES (?,?,?,?,?)",
                    (record.id, record.status, _json_dumps(doc), record.etag, doc["createdAt"]),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            logger.error("Work order with ID %s already exists", record.id)
            raise WorkOrderConflictError(record.id) from exc
        logger.info("Work order created. ID: %s, etag: %s", record.id, record.etag)
        return record

    async def get_work_order(self, work_order_id: str, status: Optional[str] = None) -> Optional[WorkOrder]:
        if status:
            docs = await self._query(self.work_orders, "id=? AND partition_key=?", (work_order_id, status))
        else:
            docs = await self._query(self.work_orders, "id=?", (work_order_id,))
        return WorkOrder.model_validate(docs[0]) if docs else None

    async def list_work_orders(self, status: Optional[str] = None, limit: int = 50) -> List[WorkOrder]:
        if status:
            docs = await self._query(self.work_orders, "partition_key=?", (status,))
        else:
            docs = await self._query(self.work_orders)
        return [WorkOrder.model_validate(doc) for doc in docs[-limit:]] if limit > 0 else []
