"""Admin database browser.

Every route needs an admin bearer token and the shared secret in
``x-secret-key``. Raw SQL execution and clear-all are additionally switched
off unless ``db_browser_unsafe_ops`` is set.
"""

import logging
from hmac import compare_digest
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from affinity_api.auth import require_admin
from affinity_api.config import Settings, get_settings
from affinity_api.database import get_db
from affinity_api.errors import ForbiddenError
from affinity_api.schemas.auth import TokenClaims
from affinity_api.schemas.database import ExecuteRequest, QueryRequest, RowDataRequest
from affinity_api.services import database_browser
from affinity_api.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)


def require_db_secret(
    settings: Annotated[Settings, Depends(get_settings)],
    x_secret_key: Optional[str] = Header(None, alias="x-secret-key"),
) -> None:
    if not settings.db_secret_key:
        raise ForbiddenError("Database browser is disabled")
    if not x_secret_key or not compare_digest(x_secret_key.encode(), settings.db_secret_key.encode()):
        raise ForbiddenError("Forbidden")


def require_unsafe_ops(settings: Annotated[Settings, Depends(get_settings)]) -> None:
    if not settings.db_browser_unsafe_ops:
        raise ForbiddenError("Operation disabled")


router = APIRouter(dependencies=[Depends(require_admin), Depends(require_db_secret)])


@router.get("/tables")
async def read_tables(db: Session = Depends(get_db)):
    return {"tables": database_browser.list_tables(db)}


@router.get("/tables/{table_name}/schema")
async def read_table_schema(table_name: str, db: Session = Depends(get_db)):
    return {"schema": database_browser.describe_table(db, table_name)}


@router.get("/tables/{table_name}/rows")
async def read_table_rows(
    table_name: str,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    return database_browser.read_rows(db, table_name, limit=limit, offset=offset)


@router.post("/query")
async def run_query(body: QueryRequest, db: Session = Depends(get_db)):
    """Read-only query; the statement must start with SELECT."""
    return {"result": database_browser.run_select(db, body.query)}


@router.post("/tables/{table_name}/rows")
async def insert_table_row(
    request: Request,
    table_name: str,
    body: RowDataRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    result = database_browser.insert_row(db, table_name, body.data)
    create_audit_log(
        db, request,
        action="db_row_inserted",
        entity_type="table",
        entity_id=result["id"] if isinstance(result["id"], int) else None,
        user=admin.username,
        details={"table": table_name, "columns": sorted(body.data)}
    )
    return result


@router.put("/tables/{table_name}/rows/{row_id}")
async def update_table_row(
    request: Request,
    table_name: str,
    row_id: int,
    body: RowDataRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    result = database_browser.update_row(db, table_name, row_id, body.data)
    create_audit_log(
        db, request,
        action="db_row_updated",
        entity_type="table",
        entity_id=row_id,
        user=admin.username,
        details={"table": table_name, "columns": sorted(body.data), "changes": result["changes"]}
    )
    return result


@router.delete("/tables/{table_name}/rows/{row_id}")
async def delete_table_row(
    request: Request,
    table_name: str,
    row_id: int,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    result = database_browser.delete_row(db, table_name, row_id)
    create_audit_log(
        db, request,
        action="db_row_deleted",
        entity_type="table",
        entity_id=row_id,
        user=admin.username,
        details={"table": table_name, "changes": result["changes"]}
    )
    return result


@router.post("/execute", dependencies=[Depends(require_unsafe_ops)])
async def execute_sql(
    request: Request,
    body: ExecuteRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    """Arbitrary SQL. Driver errors are returned verbatim."""
    result = database_browser.execute_sql(db, body.sql, body.params)
    create_audit_log(
        db, request,
        action="db_sql_executed",
        user=admin.username,
        details={"sql": body.sql[:500], "param_count": len(body.params)}
    )
    return result


@router.post("/clear-all", dependencies=[Depends(require_unsafe_ops)])
async def clear_all(
    request: Request,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    """Delete every row in every table."""
    log.warning(f"Admin {admin.username} is clearing all tables")
    result = database_browser.clear_all_tables(db)
    create_audit_log(
        db, request,
        action="db_cleared",
        user=admin.username,
        details={"totalDeleted": result["totalDeleted"]}
    )
    return result
