"""
Data Transfer Objects for Drug API.
Defines request and response schemas for API endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class DrugCreateRequest(BaseModel):
    """Request schema for creating or updating a drug."""
    name: str = Field(..., min_length=2, max_length=100, description="Name of the drug")
    form: str = Field(..., min_length=1, max_length=36, description="Drug form name, e.g. PILLS")
    expiration_year: int = Field(..., ge=2024, le=2100, description="Expiration year")
    expiration_month: int = Field(..., ge=1, le=12, description="Expiration month (1-12)")
    description: Optional[str] = Field(None, max_length=2000, description="Free-text notes")

    @field_validator('name')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or v.strip() == "":
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator('description')
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        return v.strip()


class DrugSearchParams(BaseModel):
    """Raw search parameters; validated by the search query builder."""
    name: Optional[str] = None
    form: Optional[str] = None
    expired: Optional[bool] = None
    expiring_soon: Optional[bool] = None
    expiration_until_year: Optional[int] = None
    expiration_until_month: Optional[int] = None
    sort: List[str] = Field(default_factory=list)
    page: Optional[int] = None
    size: Optional[int] = None


class DrugResponse(BaseModel):
    """Response schema for drug data retrieval."""
    drug_id: str
    name: str
    form: str
    form_label: str
    expiration_date: datetime
    expiration_year: int
    expiration_month: int
    description: Optional[str] = None
    alert_sent: bool = False
    alert_sent_at: Optional[datetime] = None
    expired: bool = False

    class Config:
        from_attributes = True


class DrugPageResponse(BaseModel):
    """Response schema for one page of search results."""
    drugs: List[DrugResponse]
    count: int
    total: int
    page: int
    size: int
    total_pages: int


class DrugStatisticsResponse(BaseModel):
    """Response schema for owner statistics."""
    total_drugs: int
    expired_drugs: int
    active_drugs: int
    alert_sent_count: int
    drugs_by_form: Dict[str, int]


class FormOption(BaseModel):
    """A selectable drug form."""
    value: str
    label: str


class DeleteAllDrugsRequest(BaseModel):
    """Request schema for deleting every drug of the current user."""
    password: str = Field(..., min_length=1, description="Current password for confirmation")


class DeleteAllDrugsResponse(BaseModel):
    deleted: int
    message: str


class AlertSweepResponse(BaseModel):
    """Response schema for an expiry alert sweep."""
    skipped: bool
    groups_attempted: int
    groups_succeeded: int
    groups_failed: int
    groups_skipped: int
    drugs_marked: int
    failures: Dict[str, str] = Field(default_factory=dict)
