"""
Shared field types and paging models.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, PlainSerializer, computed_field

# Exact decimal dose; JSON responses carry it as a number
Dose = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
OptionalDose = Optional[Dose]

T = TypeVar("T")


def utcnow() -> datetime:
    """Current time as naive UTC, the convention for stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_dose(value: Decimal) -> str:
    """Render a dose without trailing zeros, e.g. 4.0 -> '4', 2.50 -> '2.5'."""
    text = format(value.normalize(), "f")
    return text


class PagedList(BaseModel, Generic[T]):
    """One page of results plus paging metadata."""
    items: List[T] = []
    total_count: int = 0
    page: int = 1
    page_size: int = 20

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 0
        return math.ceil(self.total_count / self.page_size)
