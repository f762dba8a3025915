"""Generic CRUD repository over a SQLAlchemy session.

Usage:
    class TrackerRepository(BaseRepository[Tracker, int]):
        def __init__(self, session: Session):
            super().__init__(session, Tracker)
"""

import logging
from collections.abc import Iterable
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, TypeVar, Union

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from pelotas_arch.repositories.criteria import Filters, apply_filters, apply_sort
from pelotas_arch.repositories.descriptor import EntityDescriptor, describe
from pelotas_arch.schemas.pagination import Page
from pelotas_arch.schemas.query_params import QueryParams, SortSpec

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")
IdT = TypeVar("IdT")


class BaseRepository(Generic[EntityT, IdT]):
    """CRUD plus filtered, sorted and paginated reads for one entity type.

    The entity is passed explicitly, either as a mapped class or as an
    EntityDescriptor restricting which fields callers may query.
    """

    def __init__(self, session: Session, entity: Union[type[EntityT], EntityDescriptor[EntityT]]):
        self.session = session
        if isinstance(entity, EntityDescriptor):
            self.descriptor = entity
        else:
            self.descriptor = describe(entity)
        self.model: type[EntityT] = self.descriptor.model

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _log_extra(self, operation: str, **values: Any) -> Dict[str, Any]:
        return {"entity": self.descriptor.name, "operation": operation, **values}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def load(self, entity_id: IdT) -> Optional[EntityT]:
        return self.session.get(self.model, entity_id)

    def persist(self, entity: EntityT) -> None:
        with self._transaction():
            self.session.add(entity)
        logger.debug("Persisted %s", self.descriptor.name, extra=self._log_extra("persist"))

    def merge(self, entity: EntityT) -> EntityT:
        with self._transaction():
            merged = self.session.merge(entity)
        logger.debug(
            "Merged %s", self.descriptor.name,
            extra=self._log_extra("merge", entity_id=getattr(merged, self.descriptor.id_field)),
        )
        return merged

    def remove(self, entity_id: IdT) -> None:
        entity = self.load(entity_id)
        if entity is None:
            logger.debug(
                "Nothing to remove for %s id=%s", self.descriptor.name, entity_id,
                extra=self._log_extra("remove", entity_id=entity_id),
            )
            return
        with self._transaction():
            self.session.delete(entity)
        logger.debug(
            "Removed %s id=%s", self.descriptor.name, entity_id,
            extra=self._log_extra("remove", entity_id=entity_id),
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def build_query(
        self,
        filters: Optional[Filters] = None,
        sort: Optional[Sequence[SortSpec]] = None,
    ) -> Select:
        stmt = apply_filters(select(self.model), self.descriptor, filters)
        return apply_sort(stmt, self.descriptor, sort)

    def find(
        self,
        filters: Optional[Filters] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        sort: Optional[Sequence[SortSpec]] = None,
    ) -> List[EntityT]:
        """Matching entities; one page of them when both offset and limit are given."""
        stmt = self.build_query(filters, sort)
        if offset is not None and limit is not None:
            stmt = stmt.offset(offset).limit(limit)
        logger.debug(
            "find %s", self.descriptor.name,
            extra=self._log_extra("find", offset=offset, limit=limit),
        )
        return list(self.session.execute(stmt).scalars().all())

    def count(
        self,
        filters: Optional[Filters] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> int:
        """Number of matching entities, or of the rows in the requested page."""
        stmt = apply_filters(select(self.descriptor.id_attribute), self.descriptor, filters)
        if offset is not None and limit is not None:
            stmt = stmt.order_by(self.descriptor.id_attribute).offset(offset).limit(limit)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        return self.session.execute(count_stmt).scalar_one()

    def query(self, params: QueryParams) -> List[EntityT]:
        return self.find(params.filter_list, params.offset, params.limit, sort=params.sort_list)

    def count_query(self, params: QueryParams) -> int:
        return self.count(params.filter_list, params.offset, params.limit)

    def page(self, params: QueryParams) -> Page:
        return Page(
            items=self.query(params),
            total=self.count(params.filter_list),
            offset=params.offset,
            limit=params.limit,
        )

    def select_fields(self, entity: EntityT, field_list: Iterable[str]) -> Dict[str, Any]:
        return self.descriptor.project(entity, field_list)
