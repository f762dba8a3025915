import enum
from typing import List, Optional

from pydantic import BaseModel, Field
from fastapi import Request


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class SortSpec(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC

    model_config = {"frozen": True}


class FilterEntry(BaseModel):
    """One `field_path=value` equality constraint taken from the query string."""

    field: str
    value: str

    model_config = {"frozen": True}


class QueryParams(BaseModel):
    offset: Optional[int] = None
    limit: Optional[int] = None
    field_list: List[str] = Field(default_factory=list)
    sort_list: List[SortSpec] = Field(default_factory=list)
    filter_list: List[FilterEntry] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: Request) -> "QueryParams":
        from pelotas_arch.services.query_parser import parse_query_params

        query = request.query_params
        # Repeated parameters keep their first value
        values = {name: query.getlist(name)[0] for name in query.keys()}
        return parse_query_params(values, query.keys())
