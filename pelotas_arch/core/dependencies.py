from typing import Annotated

from fastapi import Depends, Request

from pelotas_arch.schemas.query_params import QueryParams


def get_query_params(request: Request) -> QueryParams:
    """Inject as Depends(get_query_params) into list endpoints."""
    return QueryParams.from_request(request)


QueryParamsDep = Annotated[QueryParams, Depends(get_query_params)]
