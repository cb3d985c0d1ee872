from typing import Optional, Dict, Any, List
from pydantic import BaseModel

class QueryRequest(BaseModel):
    query: Optional[str] = None

class RowDataRequest(BaseModel):
    data: Optional[Dict[str, Any]] = None

class ExecuteRequest(BaseModel):
    sql: Optional[str] = None
    params: List[Any] = []
