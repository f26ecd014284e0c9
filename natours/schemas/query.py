from pydantic import BaseModel
from typing import Any, List, Literal, Optional

Op = Literal["$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"]
Dir = Literal["asc", "desc"]
Mode = Literal["include", "exclude"]

OPERATORS = frozenset(Op.__args__)

class FilterClause(BaseModel):
    field: str
    op: Op
    value: Any

class SortClause(BaseModel):
    field: str
    dir: Dir

class Projection(BaseModel):
    mode: Mode = "exclude"
    fields: List[str] = []

class Window(BaseModel):
    skip: int = 0
    limit: Optional[int] = None
