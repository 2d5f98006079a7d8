"""
Dependency injection container for FastAPI.
Provides singleton-like behavior for services and repositories.
"""
from functools import lru_cache
from src.core.cache import OwnerScopedCache
from src.core.clock import Clock
from src.repositories.db_repository import DrugRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.repositories.user_repository import UserRepository
from src.services.alert_service import ExpiryAlertService
from src.services.auth_service import AuthService
from src.services.drug_service import DrugService
from src.services.email_service import SesEmailNotifier
from src.services.file_service import FileService


@lru_cache()
def get_clock() -> Clock:
    return Clock()


@lru_cache()
def get_cache() -> OwnerScopedCache:
    """Get the process-wide owner-scoped cache."""
    return OwnerScopedCache()


@lru_cache()
def get_drug_repository() -> DrugRepository:
    """Get DrugRepository singleton instance."""
    return DynamoRepository()


@lru_cache()
def get_user_repository() -> UserRepository:
    """Get UserRepository singleton instance."""
    return UserRepository()


@lru_cache()
def get_file_service() -> FileService:
    return FileService()


@lru_cache()
def get_auth_service() -> AuthService:
    """Get AuthService singleton instance with injected dependencies."""
    return AuthService(
        user_repository=get_user_repository(),
        drug_repository=get_drug_repository(),
        cache=get_cache()
    )


@lru_cache()
def get_drug_service() -> DrugService:
    """Get DrugService singleton instance with injected dependencies."""
    return DrugService(
        drug_repository=get_drug_repository(),
        auth_service=get_auth_service(),
        file_service=get_file_service(),
        clock=get_clock(),
        cache=get_cache()
    )


@lru_cache()
def get_alert_service() -> ExpiryAlertService:
    """Get ExpiryAlertService singleton; one instance keeps sweeps single-flight."""
    return ExpiryAlertService(
        drug_repository=get_drug_repository(),
        user_repository=get_user_repository(),
        notifier=SesEmailNotifier(),
        clock=get_clock(),
        cache=get_cache()
    )
