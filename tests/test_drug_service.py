"""
Unit tests for DrugService.
Tests business logic orchestration with mocked dependencies.
"""
from datetime import datetime
from unittest.mock import Mock
from zoneinfo import ZoneInfo
import pytest
from src.core.cache import OwnerScopedCache
from src.core.clock import build_expiration_date
from src.core.exceptions import (
    DrugNotFoundException,
    InvalidCredentialsException,
    InvalidDateRangeException,
    InvalidDrugFormException,
    InvalidSortFieldException,
    PageSizeExceededException
)
from src.models.drug_model import Drug, DrugForm
from src.models.dto.drug_dto import DrugCreateRequest, DrugSearchParams
from src.models.search_filter import Page
from src.services.drug_service import DrugService

WARSAW = ZoneInfo('Europe/Warsaw')


class TestDrugService:
    """Test suite for DrugService."""

    @pytest.fixture
    def mock_drug_repo(self):
        """Mock DrugRepository."""
        repository = Mock()
        repository.save.side_effect = lambda drug: setattr(drug, 'drug_id', 'generated-id') or drug
        return repository

    @pytest.fixture
    def mock_auth_service(self):
        return Mock()

    @pytest.fixture
    def mock_file_service(self):
        """Mock FileService."""
        return Mock()

    @pytest.fixture
    def drug_service(self, mock_drug_repo, mock_auth_service, mock_file_service, fixed_clock):
        """Create DrugService with mocked dependencies."""
        return DrugService(
            drug_repository=mock_drug_repo,
            auth_service=mock_auth_service,
            file_service=mock_file_service,
            clock=fixed_clock,
            cache=OwnerScopedCache(ttl_seconds=60)
        )

    @pytest.fixture
    def sample_drug(self):
        """Sample Drug object expiring June 2025 with its alert already sent."""
        return Drug(
            drug_id="drug-1",
            name="Apap",
            form=DrugForm.PILLS,
            expiration_date=build_expiration_date(2025, 6, WARSAW),
            owner_id="alice",
            description="Painkiller",
            alert_sent=True,
            alert_sent_at=datetime(2025, 6, 1, 8, 0, tzinfo=WARSAW)
        )

    def _request(self, **overrides):
        data = {
            'name': 'Apap',
            'form': 'pills',
            'expiration_year': 2026,
            'expiration_month': 6,
            'description': 'Painkiller'
        }
        data.update(overrides)
        return DrugCreateRequest(**data)

    def test_add_drug(self, drug_service, mock_drug_repo):
        response = drug_service.add_drug(self._request(), "alice")

        saved = mock_drug_repo.save.call_args.args[0]
        assert saved.owner_id == "alice"
        assert saved.form is DrugForm.PILLS
        assert saved.expiration_date == build_expiration_date(2026, 6, WARSAW)
        assert saved.alert_sent is False
        assert response.drug_id == "generated-id"
        assert response.form == "PILLS"
        assert response.form_label == "Pills"
        assert (response.expiration_year, response.expiration_month) == (2026, 6)

    def test_add_drug_current_month_allowed(self, drug_service, mock_drug_repo):
        drug_service.add_drug(self._request(expiration_year=2025, expiration_month=6), "alice")
        mock_drug_repo.save.assert_called_once()

    def test_add_drug_past_month_rejected(self, drug_service, mock_drug_repo):
        with pytest.raises(InvalidDateRangeException):
            drug_service.add_drug(self._request(expiration_year=2025, expiration_month=5), "alice")
        mock_drug_repo.save.assert_not_called()

    def test_add_drug_unknown_form_rejected(self, drug_service, mock_drug_repo):
        with pytest.raises(InvalidDrugFormException):
            drug_service.add_drug(self._request(form='capsule'), "alice")
        mock_drug_repo.save.assert_not_called()

    def test_get_drug_is_cached_per_owner(self, drug_service, mock_drug_repo, sample_drug):
        mock_drug_repo.find_by_id.return_value = sample_drug

        first = drug_service.get_drug("drug-1", "alice")
        second = drug_service.get_drug("drug-1", "alice")

        assert first == second
        mock_drug_repo.find_by_id.assert_called_once_with("alice", "drug-1")

    def test_get_drug_not_found(self, drug_service, mock_drug_repo):
        mock_drug_repo.find_by_id.side_effect = DrugNotFoundException("Drug not found with ID: x")

        with pytest.raises(DrugNotFoundException):
            drug_service.get_drug("x", "alice")

    def test_update_expiration_resets_alert(self, drug_service, mock_drug_repo, sample_drug):
        mock_drug_repo.find_by_id.return_value = sample_drug

        response = drug_service.update_drug("drug-1", self._request(expiration_year=2026, expiration_month=6), "alice")

        updated, = mock_drug_repo.update_content.call_args.args
        assert mock_drug_repo.update_content.call_args.kwargs == {'reset_alert': True}
        assert updated.alert_sent is False
        assert updated.alert_sent_at is None
        assert response.alert_sent is False
        assert (response.expiration_year, response.expiration_month) == (2026, 6)

    def test_update_without_expiration_change_keeps_alert(self, drug_service, mock_drug_repo, sample_drug):
        mock_drug_repo.find_by_id.return_value = sample_drug

        response = drug_service.update_drug(
            "drug-1", self._request(name="Apap Extra", expiration_year=2025, expiration_month=6), "alice"
        )

        assert mock_drug_repo.update_content.call_args.kwargs == {'reset_alert': False}
        assert response.alert_sent is True
        assert response.name == "Apap Extra"

    def test_update_invalidates_cache(self, drug_service, mock_drug_repo, sample_drug):
        mock_drug_repo.find_by_id.return_value = sample_drug
        drug_service.get_drug("drug-1", "alice")

        drug_service.update_drug("drug-1", self._request(name="Apap Forte", expiration_year=2025), "alice")
        drug_service.get_drug("drug-1", "alice")

        # One lookup for the first read, one for the update, one after invalidation
        assert mock_drug_repo.find_by_id.call_count == 3

    def test_delete_drug(self, drug_service, mock_drug_repo):
        drug_service.delete_drug("drug-1", "alice")
        mock_drug_repo.delete.assert_called_once_with("alice", "drug-1")

    def test_delete_all_requires_password(self, drug_service, mock_drug_repo, mock_auth_service):
        mock_auth_service.verify_user_password.side_effect = InvalidCredentialsException("Invalid password")

        with pytest.raises(InvalidCredentialsException):
            drug_service.delete_all_drugs("alice", "wrong")
        mock_drug_repo.delete_all_by_owner.assert_not_called()

    def test_delete_all(self, drug_service, mock_drug_repo, mock_auth_service):
        mock_drug_repo.delete_all_by_owner.return_value = 4

        response = drug_service.delete_all_drugs("alice", "secret")

        mock_auth_service.verify_user_password.assert_called_once_with("alice", "secret")
        assert response.deleted == 4

    def test_search_returns_page(self, drug_service, mock_drug_repo, sample_drug):
        mock_drug_repo.find_filtered.return_value = Page(items=[sample_drug], total=21, page=1, size=20)

        response = drug_service.search_drugs(DrugSearchParams(page=1), "alice")

        assert response.count == 1
        assert response.total == 21
        assert response.total_pages == 2
        assert response.drugs[0].name == "Apap"

    def test_search_bogus_sort_never_reaches_repository(self, drug_service, mock_drug_repo):
        with pytest.raises(InvalidSortFieldException):
            drug_service.search_drugs(DrugSearchParams(sort=["bogusField,asc"]), "alice")
        mock_drug_repo.find_filtered.assert_not_called()

    def test_search_cached_until_write(self, drug_service, mock_drug_repo):
        mock_drug_repo.find_filtered.return_value = Page(items=[], total=0, page=0, size=20)
        params = DrugSearchParams(name="apap")

        drug_service.search_drugs(params, "alice")
        drug_service.search_drugs(params, "alice")
        assert mock_drug_repo.find_filtered.call_count == 1

        drug_service.delete_drug("drug-1", "alice")
        drug_service.search_drugs(params, "alice")
        assert mock_drug_repo.find_filtered.call_count == 2

    def test_search_cache_is_per_owner(self, drug_service, mock_drug_repo):
        mock_drug_repo.find_filtered.return_value = Page(items=[], total=0, page=0, size=20)

        drug_service.search_drugs(DrugSearchParams(), "alice")
        drug_service.search_drugs(DrugSearchParams(), "bob")

        assert mock_drug_repo.find_filtered.call_count == 2

    def test_export_csv_uses_export_page_size(self, drug_service, mock_drug_repo, mock_file_service, sample_drug):
        mock_drug_repo.find_filtered.return_value = Page(items=[sample_drug], total=1, page=0, size=500)
        mock_file_service.generate_csv.return_value = b"csv"

        content = drug_service.export_csv(DrugSearchParams(), "alice")

        search_filter = mock_drug_repo.find_filtered.call_args.args[0]
        assert search_filter.size == 500
        assert content == b"csv"
        mock_file_service.generate_csv.assert_called_once_with([sample_drug])

    def test_search_cache_does_not_outlive_month(self, drug_service, mock_drug_repo, sample_drug, fixed_clock):
        mock_drug_repo.find_filtered.return_value = Page(items=[sample_drug], total=1, page=0, size=20)

        assert drug_service.search_drugs(DrugSearchParams(), "alice").drugs[0].expired is False

        fixed_clock.advance(days=1)
        drug_service.search_drugs(DrugSearchParams(), "alice")
        assert mock_drug_repo.find_filtered.call_count == 1

        fixed_clock.advance(days=16)
        response = drug_service.search_drugs(DrugSearchParams(), "alice")
        assert mock_drug_repo.find_filtered.call_count == 2
        assert response.drugs[0].expired is True

    def test_export_pdf_uses_export_page_size(self, drug_service, mock_drug_repo, mock_file_service, sample_drug):
        mock_drug_repo.find_filtered.return_value = Page(items=[sample_drug], total=1, page=0, size=500)
        mock_file_service.generate_pdf.return_value = b"%PDF"

        content = drug_service.export_pdf(DrugSearchParams(form="pills"), "alice")

        search_filter = mock_drug_repo.find_filtered.call_args.args[0]
        assert search_filter.size == 500
        assert search_filter.form is DrugForm.PILLS
        assert content == b"%PDF"
        mock_file_service.generate_pdf.assert_called_once_with([sample_drug])

    def test_export_pdf_rejects_oversized_page(self, drug_service, mock_drug_repo, mock_file_service):
        with pytest.raises(PageSizeExceededException):
            drug_service.export_pdf(DrugSearchParams(size=501), "alice")

        mock_drug_repo.find_filtered.assert_not_called()
        mock_file_service.generate_pdf.assert_not_called()

    def test_forms(self, drug_service):
        forms = drug_service.list_forms()
        dictionary = drug_service.forms_dictionary()

        assert len(forms) == len(DrugForm)
        assert forms[0].value == "GEL"
        assert dictionary["PILLS"] == "Pills"
        assert set(dictionary) == set(DrugForm.names())


class TestDrugServiceWithDynamo:
    """Drug service scenarios against moto DynamoDB."""

    def test_expiration_edit_makes_drug_alertable_again(self, aws, fixed_clock):
        from src.repositories.dynamo_repository import DynamoRepository
        repository = DynamoRepository()
        service = DrugService(drug_repository=repository, auth_service=Mock(), clock=fixed_clock,
                              cache=OwnerScopedCache(ttl_seconds=0))

        created = service.add_drug(
            DrugCreateRequest(name="Apap", form="PILLS", expiration_year=2025, expiration_month=6), "alice"
        )
        drug = repository.find_by_id("alice", created.drug_id)
        assert repository.mark_alert_sent(drug, fixed_clock.now()) is True
        assert service.get_drug(created.drug_id, "alice").alert_sent is True

        service.update_drug(
            created.drug_id,
            DrugCreateRequest(name="Apap", form="PILLS", expiration_year=2026, expiration_month=6),
            "alice"
        )

        stored = repository.find_by_id("alice", created.drug_id)
        assert stored.alert_sent is False
        assert stored.alert_sent_at is None
        assert stored.expiration_date == build_expiration_date(2026, 6, WARSAW)
