"""
Abstract base class for drug repositories.
Defines the contract for drug data storage operations.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from src.models.drug_model import Drug
from src.models.search_filter import Page, SearchFilter


class DrugRepository(ABC):
    """Abstract repository interface for drug data operations."""

    @abstractmethod
    def save(self, drug: Drug) -> Drug:
        """Insert a drug, assigning its id when missing."""
        pass

    @abstractmethod
    def save_all(self, drugs: List[Drug]) -> None:
        """Insert multiple drugs in batches."""
        pass

    @abstractmethod
    def find_by_id(self, owner_id: str, drug_id: str) -> Drug:
        """Find one drug of an owner; raises DrugNotFoundException."""
        pass

    @abstractmethod
    def update_content(self, drug: Drug, reset_alert: bool) -> None:
        """Write user-editable fields, resetting alert state in the same write when asked."""
        pass

    @abstractmethod
    def delete(self, owner_id: str, drug_id: str) -> None:
        """Delete one drug of an owner; raises DrugNotFoundException."""
        pass

    @abstractmethod
    def delete_all_by_owner(self, owner_id: str) -> int:
        """Delete every drug of an owner and return how many were removed."""
        pass

    @abstractmethod
    def find_filtered(self, search_filter: SearchFilter) -> Page[Drug]:
        """Return one sorted page of an owner's drugs matching the filter."""
        pass

    @abstractmethod
    def count_total(self, owner_id: str) -> int:
        pass

    @abstractmethod
    def count_expired(self, owner_id: str, now: datetime) -> int:
        pass

    @abstractmethod
    def count_alerts_sent(self, owner_id: str) -> int:
        pass

    @abstractmethod
    def count_grouped_by_form(self, owner_id: str) -> Dict[str, int]:
        """Count drugs per form name; forms without drugs are absent."""
        pass

    @abstractmethod
    def find_due_for_alert(self, now: datetime, until: datetime, owner_id: Optional[str] = None) -> List[Drug]:
        """Find unalerted drugs expiring between now and until, inclusive."""
        pass

    @abstractmethod
    def mark_alert_sent(self, drug: Drug, sent_at: datetime) -> bool:
        """
        Flag a drug as alerted.

        Returns False when the drug is gone, already alerted, or its
        expiration date no longer matches the one that was notified.
        """
        pass
