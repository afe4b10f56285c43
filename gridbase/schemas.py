# gridbase/schemas.py
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints
from pydantic import ValidationError as SchemaError

from .errors import ValidationError

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
ColumnType = Literal["text", "number", "date", "boolean"]


class RegisterIn(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")]
    password: str = Field(min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, max_length=128)


class LoginIn(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)]
    password: str = Field(min_length=1)


class WorkspaceCreate(BaseModel):
    name: Name
    description: Optional[str] = None


class MemberAdd(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=3)]


class ColumnIn(BaseModel):
    name: Name
    type: ColumnType = "text"


class TableCreate(BaseModel):
    name: Name
    description: Optional[str] = None
    columns: List[ColumnIn] = Field(min_length=1)


class RowCells(BaseModel):
    cells: Dict[str, Optional[str]]


class RowsQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)


class CheckoutIn(BaseModel):
    plan: Literal["BASIC", "PRO"]


def parse(schema: type[BaseModel], data) -> BaseModel:
    """Validate a request payload, raising the 400 ValidationError on failure."""
    try:
        return schema.model_validate(data if data is not None else {})
    except SchemaError as e:
        raise ValidationError.from_pydantic(e)
