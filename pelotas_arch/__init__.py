"""Generic SQLAlchemy repository driven by REST query parameters."""

from pelotas_arch.schemas.query_params import FilterEntry, QueryParams, SortDirection, SortSpec
from pelotas_arch.services.query_parser import parse_query_params

__all__ = ["FilterEntry", "QueryParams", "SortDirection", "SortSpec", "parse_query_params"]
