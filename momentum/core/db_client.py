"""Record store interface and its SQLite implementation.

The core talks to persistence only through ``RecordStore``: CRUD on named
collections, scoped by the caller through filter expressions. Filters use the
PocketBase-style syntax ``field = "value" && other != "x"``, with optional
parenthesized OR groups ``(a = "1" || a = "2")``.
"""

import asyncio
import json
import logging
import re
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from momentum.core import schema
from momentum.core.clock import to_utc_iso
from momentum.core.errors import NotFoundError, PersistenceError


logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Persistence capabilities consumed by the core services."""

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def create_records(self, *, collection: str, data: list[dict[str, Any]]) -> list[dict[str, Any]]: ...

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]: ...

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_record(self, *, collection: str, record_id: str) -> None: ...

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]: ...

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None: ...


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in a quoted filter value.

    Backslashes and both quote characters are backslash-escaped, which is
    exactly what the filter parser unescapes.
    """
    return str(value).replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")


def utc_timestamp() -> str:
    """Current UTC time as an ISO string, used for created/updated stamps."""
    return datetime.now(UTC).isoformat()


def _parse_value(value: str, *, is_like: bool = False) -> str:
    """Bind a quoted filter value as text.

    Ids are opaque strings, so "007" stays "007". Columns with numeric
    affinity still compare numerically against numeric-looking text.
    """
    if is_like:
        escaped = value.replace("%", r"\%").replace("_", r"\_")
        return f"%{escaped}%"

    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


_COMPARISON_RE = re.compile(
    r"""^(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)')$""",
)


def _parse_single_comparison(comparison: str) -> tuple[str, str]:
    """Parse a single comparison expression into a SQL condition and parameter.

    Quoted values may contain backslash-escaped characters, which is what
    sanitize_param() produces.
    """
    match = _COMPARISON_RE.match(comparison.strip())
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field = match.group(1)
    op = match.group(2)
    quoted = match.group(3) if match.group(3) is not None else match.group(4)
    raw_value = re.sub(r"\\(.)", r"\1", quoted)

    sql_op = _get_sql_operator(op)
    is_like = sql_op == "LIKE"
    value = _parse_value(raw_value, is_like=is_like)

    if is_like:
        return f"{field} LIKE ? ESCAPE '\\'", value
    return f"{field} {sql_op} ?", value


def _parse_or_group(or_group: str) -> tuple[str, list[str]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]
    or_parts = [p.strip() for p in inner.split("||")]
    or_conditions = []
    or_params = []

    for part in or_parts:
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def _split_and_conditions(filter_query: str) -> list[str]:
    """Split filter query by && while preserving parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0

    for char in filter_query:
        if char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1

        current += char

        if paren_depth == 0 and current.endswith("&&"):
            parts.append(current[:-2].strip())
            current = ""

    if current.strip():
        parts.append(current.strip())

    return parts


def parse_filter(filter_query: str) -> tuple[str, list[str]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query:
        return "", []

    parts = _split_and_conditions(filter_query)
    conditions = []
    params = []

    for raw_part in parts:
        part = raw_part.strip()

        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate ``field``, ``+field`` or ``-field`` into an ORDER BY clause.

    NULL values always sort last. Unknown syntax falls back to insertion order.
    """
    match = re.match(r"^([+-]?)([A-Za-z_][A-Za-z0-9_]*)$", sort.strip())
    if not match:
        if sort:
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return "rowid ASC"

    direction = "DESC" if match.group(1) == "-" else "ASC"
    field = match.group(2)
    return f"({field} IS NULL), {field} {direction}, rowid {direction}"


def _encode_value(value: Any) -> Any:
    """Convert a Python value into something SQLite can bind."""
    if isinstance(value, datetime):
        return to_utc_iso(value)
    if isinstance(value, dict | list):
        return json.dumps(value)
    if isinstance(value, Enum):
        return value.value
    return value


class SQLiteRecordStore:
    """RecordStore backed by a single SQLite file through aiosqlite.

    Records get a random hex id and ISO ``created``/``updated`` stamps on write.
    JSON columns come back as strings; the domain models decode them.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).resolve()
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def get_connection(self) -> aiosqlite.Connection:
        """Get or lazily open the connection."""
        if self._conn is not None:
            return self._conn

        async with self._lock:
            if self._conn is not None:
                return self._conn

            self._db_path.parent.mkdir(parents=True, exist_ok=True)

            conn = await aiosqlite.connect(str(self._db_path))
            await conn.execute("PRAGMA foreign_keys = ON")
            await conn.execute("PRAGMA journal_mode = WAL")
            self._conn = conn

            logger.info("Created new SQLite connection", extra={"db_path": str(self._db_path)})
            return conn

    async def close(self) -> None:
        """Close the connection if one is open."""
        async with self._lock:
            if self._conn is None:
                return
            try:
                await self._conn.close()
                logger.info("Closed SQLite connection", extra={"db_path": str(self._db_path)})
            except aiosqlite.Error as e:
                logger.warning("Error closing SQLite connection", extra={"error": str(e)})
            finally:
                self._conn = None

    async def init_db(self) -> None:
        """Create tables and indexes if they do not exist."""
        await schema.init_db(self)

    @staticmethod
    async def _insert(conn: aiosqlite.Connection, collection: str, data: dict[str, Any]) -> str:
        """Insert one row without committing and return its id."""
        now = utc_timestamp()
        record_id = data.get("id") or uuid.uuid4().hex
        row = {**data, "id": record_id, "created": now, "updated": now}

        columns = list(row.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_encode_value(row[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        await conn.execute(query, values)
        return record_id

    @staticmethod
    def _create_error(collection: str, e: Exception) -> PersistenceError:
        if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
            logger.error("Table not found", extra={"collection": collection})
            return PersistenceError(f"Table '{collection}' does not exist. Call init_db() first.")
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        return PersistenceError(f"Failed to create record in {collection}: {e}")

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it with its assigned id."""
        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            record_id = await self._insert(conn, collection, data)
            await conn.commit()

            result = await self.get_record(collection=collection, record_id=record_id)

            logger.info("Created record", extra={"collection": collection, "record_id": record_id})
            return result
        except Exception as e:
            raise self._create_error(collection, e) from e

    async def create_records(self, *, collection: str, data: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert several records in one transaction.

        Either every record is stored or, on any failure, none is.
        """
        if not data:
            return []

        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            try:
                record_ids = [await self._insert(conn, collection, item) for item in data]
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

            results = [await self.get_record(collection=collection, record_id=rid) for rid in record_ids]

            logger.info("Created records", extra={"collection": collection, "count": len(results)})
            return results
        except Exception as e:
            raise self._create_error(collection, e) from e

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single record by ID, raising NotFoundError if absent."""
        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, (record_id,))
            row = await cursor.fetchone()

            if row is None:
                msg = f"Record not found in {collection}: {record_id}"
                raise NotFoundError(msg, collection=collection, record_id=record_id)

            columns = [description[0] for description in cursor.description]
            record = dict(zip(columns, row, strict=True))

            logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
            return record
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise PersistenceError(msg) from e

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated record."""
        if not data:
            msg = "Empty update payload"
            raise PersistenceError(msg)

        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            row = {**data, "updated": utc_timestamp()}
            row.pop("id", None)

            set_clause = ", ".join(f"{key} = ?" for key in row)
            values = [_encode_value(val) for val in row.values()]
            values.append(record_id)

            query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, values)
            await conn.commit()

            if cursor.rowcount == 0:
                msg = f"Record not found in {collection}: {record_id}"
                raise NotFoundError(msg, collection=collection, record_id=record_id)

            logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
            return await self.get_record(collection=collection, record_id=record_id)
        except NotFoundError:
            raise
        except Exception as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise PersistenceError(msg) from e

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by ID, raising NotFoundError if absent."""
        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, (record_id,))
            await conn.commit()

            if cursor.rowcount == 0:
                msg = f"Record not found in {collection}: {record_id}"
                raise NotFoundError(msg, collection=collection, record_id=record_id)

            logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
        except NotFoundError:
            raise
        except Exception as e:
            logger.error(
                "delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to delete record from {collection}: {e}"
            raise PersistenceError(msg) from e

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        try:
            _validate_collection_name(collection)
            conn = await self.get_connection()

            where_clause = ""
            params: list[Any] = []
            if filter_query:
                where_clause, params = parse_filter(filter_query)
                where_clause = f"WHERE {where_clause}"

            order_by = parse_sort(sort)
            offset = (page - 1) * per_page

            query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
            params.extend([per_page, offset])

            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()

            columns = [description[0] for description in cursor.description]
            records = [dict(zip(columns, row, strict=True)) for row in rows]

            logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
            return records
        except Exception as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise PersistenceError(msg) from e

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        records = await self.list_records(collection=collection, filter_query=filter_query, per_page=1)
        return records[0] if records else None
