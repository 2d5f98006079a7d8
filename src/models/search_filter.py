"""
Validated search value objects.
A SearchFilter is only ever produced by the search query builder.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Generic, List, Optional, Tuple, TypeVar
from src.models.drug_model import Drug, DrugForm


class SortField(Enum):
    """Sortable drug attributes."""

    NAME = "name"
    FORM = "form"
    EXPIRATION_DATE = "expirationDate"
    DESCRIPTION = "description"

    def sort_key(self, drug: Drug):
        if self is SortField.NAME:
            return drug.name.lower()
        if self is SortField.FORM:
            return drug.form.name
        if self is SortField.EXPIRATION_DATE:
            return drug.expiration_date
        return (drug.description or "").lower()


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class SortOrder:
    field: SortField
    direction: SortDirection = SortDirection.ASC


DEFAULT_SORT = (SortOrder(SortField.EXPIRATION_DATE, SortDirection.ASC),)


@dataclass(frozen=True)
class SearchFilter:
    """Conjunctive drug predicates plus sort and pagination for one owner."""

    owner_id: str
    now: datetime
    name_contains: Optional[str] = None
    form: Optional[DrugForm] = None
    expired: Optional[bool] = None
    expiring_soon_until: Optional[datetime] = None
    expiration_until: Optional[datetime] = None
    sort: Tuple[SortOrder, ...] = DEFAULT_SORT
    page: int = 0
    size: int = 20

    @property
    def offset(self) -> int:
        return self.page * self.size

    def apply_sort(self, drugs: List[Drug]) -> List[Drug]:
        """Sort by every order, first order most significant."""
        result = list(drugs)
        for order in reversed(self.sort):
            result.sort(key=order.field.sort_key, reverse=order.direction is SortDirection.DESC)
        return result


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus total-count metadata."""

    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 20

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.size) if self.size else 0
