"""
Drug Service for business logic.
Orchestrates drug data operations between API and repositories.
"""
from typing import Dict, List
from src.core import config
from src.core.cache import OwnerScopedCache
from src.core.clock import Clock, build_expiration_date, year_month_of
from src.core.exceptions import InvalidDateRangeException
from src.core.logger import get_logger
from src.models.drug_model import Drug, DrugForm
from src.models.dto.drug_dto import (
    DeleteAllDrugsResponse,
    DrugCreateRequest,
    DrugPageResponse,
    DrugResponse,
    DrugSearchParams,
    DrugStatisticsResponse,
    FormOption
)
from src.repositories.db_repository import DrugRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.services.auth_service import AuthService
from src.services.file_service import FileService
from src.services.search_query_builder import SearchQueryBuilder
from src.services.statistics_service import StatisticsService

logger = get_logger(__name__)


class DrugService:
    """Service for drug-related business operations."""

    def __init__(
        self,
        drug_repository: DrugRepository = None,
        auth_service: AuthService = None,
        file_service: FileService = None,
        statistics_service: StatisticsService = None,
        clock: Clock = None,
        cache: OwnerScopedCache = None
    ):
        self.clock = clock or Clock()
        self.drug_repository = drug_repository or DynamoRepository()
        self.auth_service = auth_service or AuthService(drug_repository=self.drug_repository)
        self.file_service = file_service or FileService()
        self.statistics_service = statistics_service or StatisticsService(self.drug_repository, self.clock)
        self.query_builder = SearchQueryBuilder(self.clock)
        self.cache = cache or OwnerScopedCache()

    def add_drug(self, request: DrugCreateRequest, owner_id: str) -> DrugResponse:
        """
        Create a drug for an owner.

        Raises:
            InvalidDrugFormException: If the form is unknown
            InvalidDateRangeException: If the expiration lies before the current month
        """
        drug = Drug(
            name=request.name,
            form=DrugForm.from_string(request.form),
            expiration_date=self._expiration_from(request),
            owner_id=owner_id,
            description=request.description
        )

        saved = self.drug_repository.save(drug)
        self.cache.invalidate_owner(owner_id)
        logger.info("Owner %s added drug %s (%s)", owner_id, saved.drug_id, saved.name)
        return self._to_response(saved)

    def get_drug(self, drug_id: str, owner_id: str) -> DrugResponse:
        """
        Retrieve one drug of an owner.

        Raises:
            DrugNotFoundException: If the drug does not exist for this owner
        """
        now = self.clock.now()
        return self.cache.get_or_compute(
            "get_drug", owner_id, (drug_id, now.year, now.month),
            lambda: self._to_response(self.drug_repository.find_by_id(owner_id, drug_id))
        )

    def update_drug(self, drug_id: str, request: DrugCreateRequest, owner_id: str) -> DrugResponse:
        """
        Replace the editable content of a drug.

        Changing the expiration date clears the alert state in the same
        write so the drug can be alerted again for its new date.

        Raises:
            DrugNotFoundException: If the drug does not exist for this owner
            InvalidDrugFormException: If the form is unknown
            InvalidDateRangeException: If the expiration lies before the current month
        """
        form = DrugForm.from_string(request.form)
        expiration_date = self._expiration_from(request)
        drug = self.drug_repository.find_by_id(owner_id, drug_id)

        reset_alert = drug.expiration_date != expiration_date
        drug.name = request.name
        drug.form = form
        drug.expiration_date = expiration_date
        drug.description = request.description
        if reset_alert:
            drug.alert_sent = False
            drug.alert_sent_at = None

        self.drug_repository.update_content(drug, reset_alert=reset_alert)
        self.cache.invalidate_owner(owner_id)
        logger.info("Owner %s updated drug %s (alert reset: %s)", owner_id, drug_id, reset_alert)
        return self._to_response(drug)

    def delete_drug(self, drug_id: str, owner_id: str) -> None:
        self.drug_repository.delete(owner_id, drug_id)
        self.cache.invalidate_owner(owner_id)
        logger.info("Owner %s deleted drug %s", owner_id, drug_id)

    def delete_all_drugs(self, owner_id: str, password: str) -> DeleteAllDrugsResponse:
        """
        Delete every drug of an owner after confirming the password.

        Raises:
            InvalidCredentialsException: If the password does not match
        """
        self.auth_service.verify_user_password(owner_id, password)

        deleted = self.drug_repository.delete_all_by_owner(owner_id)
        self.cache.invalidate_owner(owner_id)
        logger.info("Owner %s deleted all %d drug(s)", owner_id, deleted)
        return DeleteAllDrugsResponse(deleted=deleted, message=f"Deleted {deleted} drug(s)")

    def search_drugs(self, params: DrugSearchParams, owner_id: str, max_page_size: int = None) -> DrugPageResponse:
        """
        Search an owner's drugs.

        Raises:
            ValidationException: If any parameter is invalid; the repository
                is not queried in that case
        """
        max_page_size = max_page_size or config.settings.search_max_page_size
        search_filter = self.query_builder.build(params, owner_id, max_page_size)

        def run_search() -> DrugPageResponse:
            page = self.drug_repository.find_filtered(search_filter)
            drugs = [self._to_response(drug) for drug in page.items]
            return DrugPageResponse(
                drugs=drugs,
                count=len(drugs),
                total=page.total,
                page=page.page,
                size=page.size,
                total_pages=page.total_pages
            )

        # expired flags only change at month boundaries in the configured zone
        now = search_filter.now
        response = self.cache.get_or_compute(
            "search_drugs", owner_id, (params.model_dump_json(), max_page_size, now.year, now.month), run_search
        )
        logger.info("Owner %s searched drugs: %d of %d result(s)", owner_id, response.count, response.total)
        return response

    def export_csv(self, params: DrugSearchParams, owner_id: str) -> bytes:
        """Render one page of search results (up to the export maximum) as CSV."""
        drugs = self._export_page(params, owner_id)
        logger.info("Owner %s exported %d drug(s) to CSV", owner_id, len(drugs))
        return self.file_service.generate_csv(drugs)

    def export_pdf(self, params: DrugSearchParams, owner_id: str) -> bytes:
        """Render one page of search results (up to the export maximum) as PDF."""
        drugs = self._export_page(params, owner_id)
        logger.info("Owner %s exported %d drug(s) to PDF", owner_id, len(drugs))
        return self.file_service.generate_pdf(drugs)

    def _export_page(self, params: DrugSearchParams, owner_id: str) -> List[Drug]:
        if params.size is None:
            params = params.model_copy(update={'size': config.settings.export_max_page_size})
        search_filter = self.query_builder.build(params, owner_id, config.settings.export_max_page_size)
        return self.drug_repository.find_filtered(search_filter).items

    def get_statistics(self, owner_id: str) -> DrugStatisticsResponse:
        statistics = self.statistics_service.get_statistics(owner_id)
        return DrugStatisticsResponse(
            total_drugs=statistics.total_drugs,
            expired_drugs=statistics.expired_drugs,
            active_drugs=statistics.active_drugs,
            alert_sent_count=statistics.alert_sent_count,
            drugs_by_form=statistics.drugs_by_form
        )

    def list_forms(self) -> List[FormOption]:
        return [FormOption(value=form.name, label=form.label) for form in DrugForm]

    def forms_dictionary(self) -> Dict[str, str]:
        return {form.name: form.label for form in DrugForm}

    def _expiration_from(self, request: DrugCreateRequest):
        now = self.clock.now()
        if (request.expiration_year, request.expiration_month) < (now.year, now.month):
            raise InvalidDateRangeException(
                "Expiration date cannot be earlier than the current month",
                field="expirationDate"
            )
        return build_expiration_date(request.expiration_year, request.expiration_month, self.clock.zone)

    def _to_response(self, drug: Drug) -> DrugResponse:
        year, month = year_month_of(drug.expiration_date, self.clock.zone)
        return DrugResponse(
            drug_id=drug.drug_id,
            name=drug.name,
            form=drug.form.name,
            form_label=drug.form.label,
            expiration_date=drug.expiration_date,
            expiration_year=year,
            expiration_month=month,
            description=drug.description,
            alert_sent=drug.alert_sent,
            alert_sent_at=drug.alert_sent_at,
            expired=drug.is_expired(self.clock.now())
        )
