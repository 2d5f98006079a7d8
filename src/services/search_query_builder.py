"""
Search Query Builder.
Turns raw search parameters into a validated SearchFilter.
"""
from datetime import timedelta
from typing import List, Optional
from src.core import config
from src.core.clock import Clock, build_expiration_date
from src.core.exceptions import (
    InvalidDateRangeException,
    PageSizeExceededException,
    ValidationException
)
from src.models.drug_model import DrugForm
from src.models.dto.drug_dto import DrugSearchParams
from src.models.search_filter import DEFAULT_SORT, SearchFilter
from src.services.sort_validator import parse_sort_tokens

MIN_EXPIRATION_YEAR = 2024
MAX_EXPIRATION_YEAR = 2100


class SearchQueryBuilder:
    """Validates search parameters and builds SearchFilter objects."""

    def __init__(self, clock: Clock = None):
        self.clock = clock or Clock()

    def build(self, params: DrugSearchParams, owner_id: str, max_page_size: int = None) -> SearchFilter:
        """
        Build a filter for one owner's search request.

        Every field is validated before raising, so a request with several
        bad fields reports all of them.

        Args:
            params: Raw search parameters
            owner_id: Owner the search is scoped to
            max_page_size: Largest accepted page size for the calling path

        Returns:
            SearchFilter ready for the repository

        Raises:
            ValidationException: The specific subtype for a single bad field,
                or a ValidationException listing every field otherwise
        """
        max_page_size = max_page_size or config.settings.search_max_page_size
        now = self.clock.now()
        errors: List[ValidationException] = []

        name_contains = None
        if params.name and params.name.strip():
            name_contains = params.name.strip().lower()

        form = None
        if params.form and params.form.strip():
            try:
                form = DrugForm.from_string(params.form)
            except ValidationException as e:
                errors.append(e)

        expiring_soon_until = None
        if params.expiring_soon:
            expiring_soon_until = now + timedelta(days=config.settings.alert_horizon_days)

        expiration_until = None
        try:
            expiration_until = self._expiration_until(params.expiration_until_year, params.expiration_until_month)
        except ValidationException as e:
            errors.append(e)

        sort = DEFAULT_SORT
        try:
            sort = parse_sort_tokens(params.sort)
        except ValidationException as e:
            errors.append(e)

        page = params.page if params.page is not None else 0
        size = params.size if params.size is not None else config.settings.search_default_page_size
        if page < 0:
            errors.append(ValidationException("Page index must not be negative", field="page"))
        if size < 1:
            errors.append(ValidationException("Page size must be at least 1", field="size"))
        elif size > max_page_size:
            errors.append(PageSizeExceededException(size, max_page_size))

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ValidationException(
                "; ".join(error.message for error in errors),
                errors=[detail for error in errors for detail in error.errors]
            )

        return SearchFilter(
            owner_id=owner_id,
            now=now,
            name_contains=name_contains,
            form=form,
            expired=params.expired,
            expiring_soon_until=expiring_soon_until,
            expiration_until=expiration_until,
            sort=sort,
            page=page,
            size=size
        )

    def _expiration_until(self, year: Optional[int], month: Optional[int]):
        if year is None and month is None:
            return None
        if year is None or month is None:
            raise InvalidDateRangeException(
                "Both expiration year and month must be provided together",
                field="expirationUntil"
            )
        if not 1 <= month <= 12:
            raise InvalidDateRangeException(f"Month must be between 1 and 12, got {month}", field="expirationUntil")
        if not MIN_EXPIRATION_YEAR <= year <= MAX_EXPIRATION_YEAR:
            raise InvalidDateRangeException(
                f"Year must be between {MIN_EXPIRATION_YEAR} and {MAX_EXPIRATION_YEAR}, got {year}",
                field="expirationUntil"
            )
        return build_expiration_date(year, month, self.clock.zone)
