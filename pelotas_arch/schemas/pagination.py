from typing import TypeVar, Generic, List, Optional
from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    offset: Optional[int] = None
    limit: Optional[int] = None

    model_config = {"arbitrary_types_allowed": True}
