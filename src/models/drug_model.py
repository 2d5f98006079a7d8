"""
Domain model for Drug entity.
Database-agnostic representation of a medicine cabinet entry.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from src.core.exceptions import InvalidDrugFormException


class DrugForm(Enum):
    """Pharmaceutical forms a drug can be stored as."""

    GEL = "Gel"
    PILLS = "Pills"
    SYRUP = "Syrup"
    DROPS = "Drops"
    SUPPOSITORIES = "Suppositories"
    SACHETS = "Sachets"
    CREAM = "Cream"
    SPRAY = "Spray"
    OINTMENT = "Ointment"
    LIQUID = "Liquid"
    POWDER = "Powder"
    INJECTION = "Injection"
    BANDAGE = "Bandage"
    INHALER = "Inhaler"
    PATCH = "Patch"
    SOLUTION = "Solution"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def names(cls) -> List[str]:
        return [form.name for form in cls]

    @classmethod
    def from_string(cls, value: str) -> "DrugForm":
        """
        Resolve a form by its name, ignoring case.

        Raises:
            InvalidDrugFormException: If no form matches
        """
        if value is not None:
            candidate = value.strip().upper()
            if candidate in cls.__members__:
                return cls[candidate]
        raise InvalidDrugFormException(value, cls.names())


class Drug:
    """Domain model representing a drug owned by a user."""

    def __init__(
        self,
        name: str,
        form: DrugForm,
        expiration_date: datetime,
        owner_id: str,
        description: Optional[str] = None,
        drug_id: Optional[str] = None,
        alert_sent: bool = False,
        alert_sent_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None
    ):
        self.drug_id = drug_id
        self.name = name
        self.form = form
        self.expiration_date = expiration_date
        self.owner_id = owner_id
        self.description = description
        self.alert_sent = alert_sent
        self.alert_sent_at = alert_sent_at
        self.created_at = created_at or datetime.now(timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        return self.expiration_date < now

    def __repr__(self):
        return (f"Drug(drug_id={self.drug_id}, name={self.name}, form={self.form.name}, "
                f"expiration_date={self.expiration_date.isoformat()}, alert_sent={self.alert_sent})")
