"""Static field tables for mapped entities.

An EntityDescriptor is built once per model from the SQLAlchemy mapper. Query
paths coming from callers are resolved against this table only, so a name the
table does not list is rejected instead of being looked up on the class.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from functools import cache
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import InstrumentedAttribute

from pelotas_arch.core.exceptions import InvalidFilterValueError, UnknownFieldError

EntityT = TypeVar("EntityT")

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    attribute: InstrumentedAttribute
    python_type: Optional[type]

    def coerce(self, value: Any, path: Optional[str] = None) -> Any:
        """Convert a query-string value to the column's python type."""
        if not isinstance(value, str) or self.python_type in (None, str):
            return value
        target = self.python_type
        try:
            if target is bool:
                lowered = value.strip().lower()
                if lowered in TRUE_VALUES:
                    return True
                if lowered in FALSE_VALUES:
                    return False
                raise ValueError(value)
            if issubclass(target, enum.Enum):
                try:
                    return target(value)
                except ValueError:
                    return target[value]
            if target is datetime:
                return datetime.fromisoformat(value)
            if target is date:
                return date.fromisoformat(value)
            if target is time:
                return time.fromisoformat(value)
            if target in (int, float, Decimal, uuid.UUID):
                return target(value)
        except (ValueError, KeyError, InvalidOperation) as exc:
            raise InvalidFilterValueError(path or self.name, value, target.__name__) from exc
        # Types without a string form (JSON, arrays...) are compared as given
        return value


@dataclass(frozen=True)
class RelationDescriptor:
    name: str
    attribute: InstrumentedAttribute
    model: type
    many: bool
    descriptor: Optional["EntityDescriptor"] = None

    @property
    def target(self) -> "EntityDescriptor":
        if self.descriptor is not None:
            return self.descriptor
        return describe(self.model)


def _python_type(column_property) -> Optional[type]:
    column = column_property.columns[0]
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


class EntityDescriptor(Generic[EntityT]):
    """Explicit type witness for a repository: model, identity and exposed fields."""

    def __init__(
        self,
        model: Type[EntityT],
        id_field: Optional[str] = None,
        exposed: Optional[Iterable[str]] = None,
        targets: Optional[Mapping[str, "EntityDescriptor"]] = None,
    ):
        mapper = inspect(model)
        allowed = set(exposed) if exposed is not None else None
        targets = dict(targets or {})

        self.model = model
        self.name = model.__name__
        self.fields: Dict[str, FieldDescriptor] = {}
        self.relations: Dict[str, RelationDescriptor] = {}

        for prop in mapper.column_attrs:
            if allowed is not None and prop.key not in allowed:
                continue
            self.fields[prop.key] = FieldDescriptor(
                name=prop.key,
                attribute=getattr(model, prop.key),
                python_type=_python_type(prop),
            )
        for rel in mapper.relationships:
            if allowed is not None and rel.key not in allowed:
                continue
            self.relations[rel.key] = RelationDescriptor(
                name=rel.key,
                attribute=getattr(model, rel.key),
                model=rel.mapper.class_,
                many=rel.uselist,
                descriptor=targets.pop(rel.key, None),
            )
        if targets:
            raise ValueError(f"{self.name} exposes no relationship '{next(iter(targets))}'")
        for relation in self.relations.values():
            if relation.descriptor is not None and relation.descriptor.model is not relation.model:
                raise ValueError(f"{self.name}.{relation.name} targets {relation.model.__name__}")

        if id_field is None:
            primary_key = mapper.primary_key
            if len(primary_key) != 1:
                raise ValueError(f"{self.name} needs an explicit id_field (composite primary key)")
            id_field = mapper.get_property_by_column(primary_key[0]).key
        if not hasattr(model, id_field):
            raise ValueError(f"{self.name} has no attribute '{id_field}'")
        self.id_field = id_field

    def __repr__(self) -> str:
        return f"EntityDescriptor({self.name})"

    @property
    def id_attribute(self) -> InstrumentedAttribute:
        return getattr(self.model, self.id_field)

    def resolve(self, path: str) -> Tuple[List[RelationDescriptor], FieldDescriptor]:
        """Walk a dotted path: relationships first, then exactly one column.

        A restricted descriptor stays in force for its model on the whole
        path, so a hop back to the root cannot reach a hidden field.
        Raises UnknownFieldError for any segment the table does not list.
        """
        segments = path.split(".")
        if not all(segments):
            raise UnknownFieldError(self.name, path)

        descriptor: EntityDescriptor = self
        scope: Dict[type, EntityDescriptor] = {self.model: self}
        relations: List[RelationDescriptor] = []
        for segment in segments[:-1]:
            relation = descriptor.relations.get(segment)
            if relation is None:
                raise UnknownFieldError(self.name, path)
            relations.append(relation)
            descriptor = scope.get(relation.model) or relation.target
            scope.setdefault(descriptor.model, descriptor)

        field = descriptor.fields.get(segments[-1])
        if field is None:
            raise UnknownFieldError(self.name, path)
        return relations, field

    def project(self, entity: EntityT, field_list: Iterable[str]) -> Dict[str, Any]:
        """Read the listed (possibly dotted) fields off an entity.

        An empty list selects every exposed column.
        """
        paths = list(field_list) or list(self.fields)
        result: Dict[str, Any] = {}
        for path in paths:
            self.resolve(path)
            result[path] = _read(entity, path.split("."))
        return result


def _read(obj: Any, segments: List[str]) -> Any:
    if obj is None:
        return None
    value = getattr(obj, segments[0])
    if len(segments) == 1:
        return value
    if isinstance(value, (list, set, tuple)):
        return [_read(item, segments[1:]) for item in value]
    return _read(value, segments[1:])


@cache
def describe(model: type) -> EntityDescriptor:
    """Default descriptor for a model, shared across repositories."""
    return EntityDescriptor(model)
