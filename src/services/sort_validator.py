"""
Whitelist-based sort validation.
Maps caller-supplied sort tokens to SortField values so raw strings never
reach the query layer.
"""
from typing import Iterable, List, Optional, Tuple
from src.core.exceptions import InvalidSortDirectionException, InvalidSortFieldException
from src.models.search_filter import DEFAULT_SORT, SortDirection, SortField, SortOrder

# Accepted spellings (lower-cased) for each sortable field
SORT_FIELD_ALIASES = {
    'name': SortField.NAME,
    'drugname': SortField.NAME,
    'form': SortField.FORM,
    'drugform': SortField.FORM,
    'drugform.name': SortField.FORM,
    'expirationdate': SortField.EXPIRATION_DATE,
    'expiration_date': SortField.EXPIRATION_DATE,
    'description': SortField.DESCRIPTION,
    'drugdescription': SortField.DESCRIPTION,
}


def resolve_sort_field(field: str) -> SortField:
    """
    Resolve a sort field token.

    Raises:
        InvalidSortFieldException: If the field is not whitelisted
    """
    resolved = _lookup_field(field)
    if resolved is None:
        raise InvalidSortFieldException(field)
    return resolved


def resolve_sort_direction(direction: Optional[str]) -> SortDirection:
    """
    Resolve a direction token; a missing direction means ascending.

    Raises:
        InvalidSortDirectionException: If the token is not ASC or DESC
    """
    if direction is None or not direction.strip():
        return SortDirection.ASC
    try:
        return SortDirection[direction.strip().upper()]
    except KeyError:
        raise InvalidSortDirectionException(direction)


def validate_sort(field: str, direction: Optional[str] = None) -> SortOrder:
    """Validate one (field, direction) pair."""
    return SortOrder(resolve_sort_field(field), resolve_sort_direction(direction))


def parse_sort_tokens(tokens: Iterable[str]) -> Tuple[SortOrder, ...]:
    """
    Parse Spring-style sort parameters.

    Each token is ``field[,field...][,direction]``. The trailing element is
    read as a direction unless it is itself a known field. An empty input
    yields the default order (expiration date ascending).

    Raises:
        InvalidSortFieldException: If any field is not whitelisted
        InvalidSortDirectionException: If a direction is invalid
    """
    orders: List[SortOrder] = []
    for token in tokens or []:
        parts = [part.strip() for part in token.split(',') if part.strip()]
        if not parts:
            continue

        direction = None
        if len(parts) > 1 and _lookup_field(parts[-1]) is None:
            direction = parts.pop()

        resolved_direction = resolve_sort_direction(direction)
        for part in parts:
            order = SortOrder(resolve_sort_field(part), resolved_direction)
            if all(existing.field is not order.field for existing in orders):
                orders.append(order)

    return tuple(orders) or DEFAULT_SORT


def _lookup_field(field: Optional[str]) -> Optional[SortField]:
    if field is None:
        return None
    return SORT_FIELD_ALIASES.get(field.strip().lower())
