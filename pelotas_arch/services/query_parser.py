import re
from typing import Iterable, List, Mapping, Optional

from pelotas_arch.schemas.query_params import FilterEntry, QueryParams, SortDirection, SortSpec

# --- Reserved control parameters ---
# ?offset=20&limit=10&sort=-created_at,name&fields=id,name&status=online
OFFSET = "offset"
LIMIT = "limit"
SORT = "sort"
FIELDS = "fields"
RESERVED_PARAMS = frozenset({OFFSET, LIMIT, SORT, FIELDS})

DELIMITER = ","
SORT_ASC = "+"
SORT_DESC = "-"

# Signed 32-bit, ASCII digits only
INTEGER_RE = re.compile(r"[+-]?[0-9]+")
MAX_INT = 2**31 - 1


def is_reserved(name: str) -> bool:
    return name.lower() in RESERVED_PARAMS


def _parse_int(value: Optional[str], minimum: int) -> Optional[int]:
    # Unparseable or out-of-range values mean "not requested", never an error
    if value is None or not INTEGER_RE.fullmatch(value):
        return None
    number = int(value)
    if number < minimum or number > MAX_INT:
        return None
    return number


def parse_offset(value: Optional[str]) -> Optional[int]:
    return _parse_int(value, minimum=0)


def parse_limit(value: Optional[str]) -> Optional[int]:
    return _parse_int(value, minimum=1)


def _tokens(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [token.strip() for token in value.split(DELIMITER) if token.strip()]


def parse_sort(value: Optional[str]) -> List[SortSpec]:
    """Parse `-created_at,+name,serial` into ordered SortSpecs.

    The first token is the primary key. A bare sign names no field and is skipped.
    """
    sort_list: List[SortSpec] = []
    for token in _tokens(value):
        direction = SortDirection.ASC
        if token[0] == SORT_DESC:
            direction = SortDirection.DESC
            token = token[1:]
        elif token[0] == SORT_ASC:
            token = token[1:]
        if not token:
            continue
        sort_list.append(SortSpec(field=token, direction=direction))
    return sort_list


def parse_fields(value: Optional[str]) -> List[str]:
    return _tokens(value)


def parse_filters(params: Mapping[str, str], names: Iterable[str]) -> List[FilterEntry]:
    return [
        FilterEntry(field=name, value=params[name])
        for name in names
        if not is_reserved(name) and params.get(name) is not None
    ]


def parse_query_params(params: Mapping[str, str], names: Optional[Iterable[str]] = None) -> QueryParams:
    if names is None:
        names = params.keys()
    return QueryParams(
        offset=parse_offset(params.get(OFFSET)),
        limit=parse_limit(params.get(LIMIT)),
        sort_list=parse_sort(params.get(SORT)),
        field_list=parse_fields(params.get(FIELDS)),
        filter_list=parse_filters(params, names),
    )
