from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from sqlalchemy import Select, and_
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from pelotas_arch.core.exceptions import UnsortableFieldError
from pelotas_arch.repositories.descriptor import EntityDescriptor
from pelotas_arch.schemas.query_params import FilterEntry, SortDirection, SortSpec

FilterItem = Union[FilterEntry, Tuple[str, Any], Mapping[str, Any]]
Filters = Union[Mapping[str, Any], Iterable[FilterItem]]


def iter_filters(filters: Optional[Filters]) -> Iterator[Tuple[str, Any]]:
    """Flatten any accepted filter shape into (field_path, value) pairs."""
    if filters is None:
        return
    if isinstance(filters, Mapping):
        yield from filters.items()
        return
    for entry in filters:
        if isinstance(entry, FilterEntry):
            yield entry.field, entry.value
        elif isinstance(entry, Mapping):
            yield from entry.items()
        else:
            path, value = entry
            yield path, value


def equals(descriptor: EntityDescriptor, path: str, value: Any) -> ColumnElement[bool]:
    """Equality predicate on a dotted path.

    The value always travels as a bound parameter. Relationship hops become
    EXISTS sub-criteria, so the root rows are never multiplied by a join.
    """
    relations, field = descriptor.resolve(path)
    clause = field.attribute == field.coerce(value, path)
    for relation in reversed(relations):
        if relation.many:
            clause = relation.attribute.any(clause)
        else:
            clause = relation.attribute.has(clause)
    return clause


def where(descriptor: EntityDescriptor, filters: Optional[Filters]) -> Optional[ColumnElement[bool]]:
    clauses = [equals(descriptor, path, value) for path, value in iter_filters(filters)]
    if not clauses:
        return None
    return and_(*clauses)


def apply_filters(stmt: Select, descriptor: EntityDescriptor, filters: Optional[Filters]) -> Select:
    clause = where(descriptor, filters)
    if clause is not None:
        stmt = stmt.where(clause)
    return stmt


def apply_sort(
    stmt: Select,
    descriptor: EntityDescriptor,
    sort_list: Optional[Sequence[SortSpec]],
) -> Select:
    """Add ORDER BY clauses in precedence order, then the id as tie-breaker."""
    joined: Dict[Tuple[str, ...], Any] = {}
    sorted_by_id = False

    for spec in sort_list or ():
        relations, field = descriptor.resolve(spec.field)
        parent: Any = descriptor.model
        prefix: Tuple[str, ...] = ()
        for relation in relations:
            if relation.many:
                raise UnsortableFieldError(descriptor.name, spec.field)
            prefix += (relation.name,)
            target = joined.get(prefix)
            if target is None:
                target = aliased(relation.model)
                stmt = stmt.outerjoin(getattr(parent, relation.name).of_type(target))
                joined[prefix] = target
            parent = target

        column = getattr(parent, field.name)
        if spec.direction is SortDirection.DESC:
            stmt = stmt.order_by(column.desc())
        else:
            stmt = stmt.order_by(column.asc())
        if not relations and field.name == descriptor.id_field:
            sorted_by_id = True

    if not sorted_by_id:
        stmt = stmt.order_by(descriptor.id_attribute.asc())
    return stmt
