"""Schema-agnostic table access for administrators.

Table and column names are never spliced into SQL from request input: they
are matched against the live schema catalog and statements are built from the
reflected ``Table``. Only the explicit query and execute operations accept SQL
text, and those run as given.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import MetaData, Table, func, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affinity_api.errors import InternalError, NotFoundError, ValidationError

log = logging.getLogger(__name__)

# Migration bookkeeping survives a full clear
PROTECTED_TABLES = {"alembic_version"}


def _driver_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _is_select(sql: str) -> bool:
    return sql.strip().upper().startswith("SELECT")


def list_tables(db: Session) -> List[Dict[str, str]]:
    names = inspect(db.connection()).get_table_names()
    return [{"name": name} for name in sorted(names)]


def _reflect_table(db: Session, table_name: str) -> Table:
    if table_name not in inspect(db.connection()).get_table_names():
        raise NotFoundError(f"Table not found: {table_name}")
    return Table(table_name, MetaData(), autoload_with=db.connection())


def _check_columns(table: Table, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not data or not isinstance(data, dict):
        raise ValidationError.for_field("data", "Data object is required")
    unknown = [name for name in data if name not in table.c]
    if unknown:
        raise ValidationError(errors=[
            {"field": name, "message": f"Unknown column for table {table.name}: {name}"} for name in unknown
        ])
    return data


def _id_column(table: Table):
    if "id" not in table.c:
        raise ValidationError(f"Table {table.name} has no id column")
    return table.c.id


def describe_table(db: Session, table_name: str) -> List[Dict[str, Any]]:
    """Column listing shaped like SQLite's table_info pragma."""
    _reflect_table(db, table_name)
    inspector = inspect(db.connection())
    pk_columns = inspector.get_pk_constraint(table_name).get("constrained_columns") or []
    schema = []
    for cid, column in enumerate(inspector.get_columns(table_name)):
        schema.append({
            "cid": cid,
            "name": column["name"],
            "type": str(column["type"]),
            "notnull": 0 if column.get("nullable", True) else 1,
            "dflt_value": column.get("default"),
            "pk": pk_columns.index(column["name"]) + 1 if column["name"] in pk_columns else 0,
        })
    return schema


def read_rows(db: Session, table_name: str, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
    table = _reflect_table(db, table_name)
    try:
        rows = db.execute(select(table).limit(limit).offset(offset)).mappings().all()
        total = db.execute(select(func.count()).select_from(table)).scalar_one()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error reading rows from {table_name}: {e}")
        raise InternalError(_driver_message(e))
    return {"rows": [dict(row) for row in rows], "total": total}


def run_select(db: Session, query: Optional[str]) -> List[Dict[str, Any]]:
    """Run one read-only statement supplied by the caller."""
    if not query or not query.strip():
        raise ValidationError.for_field("query", "Query is required")
    if not _is_select(query):
        raise ValidationError(
            "Only SELECT queries are allowed in this endpoint. Use specific endpoints for modifications."
        )
    statement = query.strip().rstrip(";")
    if ";" in statement:
        raise ValidationError("Only a single SELECT statement is allowed")
    try:
        result = db.connection().exec_driver_sql(statement)
        rows = [dict(row) for row in result.mappings().all()]
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error executing query: {e}")
        raise InternalError(_driver_message(e))
    db.rollback()
    return rows


def insert_row(db: Session, table_name: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    table = _reflect_table(db, table_name)
    values = _check_columns(table, data)
    try:
        result = db.execute(table.insert().values(**values))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error inserting row into {table_name}: {e}")
        raise InternalError(_driver_message(e))
    primary_key = result.inserted_primary_key
    new_id = primary_key[0] if primary_key else None
    log.info(f"Inserted row {new_id} into {table_name}")
    return {"success": True, "id": new_id, "changes": result.rowcount}


def update_row(db: Session, table_name: str, row_id: int, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    table = _reflect_table(db, table_name)
    values = _check_columns(table, data)
    id_column = _id_column(table)
    try:
        result = db.execute(table.update().where(id_column == row_id).values(**values))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error updating row {row_id} in {table_name}: {e}")
        raise InternalError(_driver_message(e))
    log.info(f"Updated row {row_id} in {table_name} ({result.rowcount} changed)")
    return {"success": True, "changes": result.rowcount}


def delete_row(db: Session, table_name: str, row_id: int) -> Dict[str, Any]:
    table = _reflect_table(db, table_name)
    id_column = _id_column(table)
    try:
        result = db.execute(table.delete().where(id_column == row_id))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error deleting row {row_id} from {table_name}: {e}")
        raise InternalError(_driver_message(e))
    log.info(f"Deleted row {row_id} from {table_name} ({result.rowcount} changed)")
    return {"success": True, "changes": result.rowcount}


def execute_sql(db: Session, sql: Optional[str], params: Sequence[Any] = ()) -> Dict[str, Any]:
    """Run arbitrary SQL with driver-style positional parameters."""
    if not sql or not sql.strip():
        raise ValidationError.for_field("sql", "SQL is required")
    log.warning(f"Executing raw SQL: {sql.strip()[:200]}")
    try:
        result = db.connection().exec_driver_sql(sql, tuple(params))
        if _is_select(sql):
            rows = [dict(row) for row in result.mappings().all()]
            db.rollback()
            return {"success": True, "result": rows}
        changes = result.rowcount
        last_id = result.lastrowid
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Error executing SQL: {e}")
        raise InternalError(_driver_message(e))
    return {"success": True, "changes": changes, "lastInsertRowid": last_id}


def clear_all_tables(db: Session) -> Dict[str, Any]:
    """Delete every row of every table, each table in its own transaction.

    A failure on one table is reported in ``details`` and does not stop the
    others.
    """
    engine: Engine = db.get_bind()
    # The session must not hold a connection while the per-table transactions write
    db.rollback()

    metadata = MetaData()
    metadata.reflect(bind=engine)
    tables = [table for table in reversed(metadata.sorted_tables) if table.name not in PROTECTED_TABLES]

    total_deleted = 0
    details = []
    for table in tables:
        try:
            with engine.begin() as conn:
                deleted = conn.execute(table.delete()).rowcount
        except SQLAlchemyError as e:
            log.error(f"Error clearing table {table.name}: {e}")
            details.append({"table": table.name, "error": _driver_message(e)})
            continue
        total_deleted += deleted
        details.append({"table": table.name, "deleted": deleted})

    log.warning(f"Cleared {len(tables)} tables, {total_deleted} rows deleted")
    return {
        "success": True,
        "message": f"Cleared all data from {len(tables)} tables",
        "totalDeleted": total_deleted,
        "details": details,
    }
