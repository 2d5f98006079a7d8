"""
Drug API routes.
Handles HTTP endpoints for drug management, search, statistics and export.
"""
from fastapi import APIRouter, Depends, Query, Response, status
from typing import Dict, List, Optional
from src.services.drug_service import DrugService
from src.services.file_service import CSV_FILENAME, PDF_FILENAME
from src.core.dependencies import get_drug_service
from src.core.auth_dependencies import verify_token
from src.models.dto.drug_dto import (
    DeleteAllDrugsRequest,
    DeleteAllDrugsResponse,
    DrugCreateRequest,
    DrugPageResponse,
    DrugResponse,
    DrugSearchParams,
    DrugStatisticsResponse,
    FormOption
)

router = APIRouter(prefix="/v1/api/drugs", tags=["Drugs"])


def search_params(
    name: Optional[str] = Query(default=None, description="Case-insensitive part of the drug name"),
    form: Optional[str] = Query(default=None, description="Drug form name, e.g. PILLS"),
    expired: Optional[bool] = Query(default=None, description="Only expired (true) or only active (false) drugs"),
    expiring_soon: Optional[bool] = Query(default=None, description="Only drugs expiring within the alert horizon"),
    expiration_until_year: Optional[int] = Query(default=None, description="Upper bound year, requires month"),
    expiration_until_month: Optional[int] = Query(default=None, description="Upper bound month, requires year"),
    sort: List[str] = Query(default=[], description="Sort tokens such as expirationDate,desc"),
    page: Optional[int] = Query(default=None, description="Zero-based page index"),
    size: Optional[int] = Query(default=None, description="Page size")
) -> DrugSearchParams:
    return DrugSearchParams(
        name=name,
        form=form,
        expired=expired,
        expiring_soon=expiring_soon,
        expiration_until_year=expiration_until_year,
        expiration_until_month=expiration_until_month,
        sort=sort,
        page=page,
        size=size
    )


@router.post("", response_model=DrugResponse, status_code=status.HTTP_201_CREATED)
async def add_drug(
    request: DrugCreateRequest,
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """Add a drug to the current user's cabinet."""
    return drug_service.add_drug(request, username)


@router.get("/search", response_model=DrugPageResponse)
async def search_drugs(
    params: DrugSearchParams = Depends(search_params),
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """
    Search the current user's drugs.

    - **sort**: repeatable, e.g. `sort=form,asc&sort=name,desc`; defaults to expiration date ascending
    - **size**: up to 100 per page
    """
    return drug_service.search_drugs(params, username)


@router.get("/statistics", response_model=DrugStatisticsResponse)
async def get_statistics(
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    return drug_service.get_statistics(username)


@router.get("/forms", response_model=List[FormOption])
async def list_forms(
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """List every drug form with its display label."""
    return drug_service.list_forms()


@router.get("/forms/dictionary", response_model=Dict[str, str])
async def forms_dictionary(
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    return drug_service.forms_dictionary()


@router.get("/export/csv")
async def export_csv(
    params: DrugSearchParams = Depends(search_params),
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """
    Export search results as a CSV file.

    Accepts the same filters as search; up to 500 drugs per file.
    """
    content = drug_service.export_csv(params, username)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"}
    )


@router.get("/export/pdf")
async def export_pdf(
    params: DrugSearchParams = Depends(search_params),
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """
    Export search results as a printable PDF table.

    Accepts the same filters as search; up to 500 drugs per file.
    """
    content = drug_service.export_pdf(params, username)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={PDF_FILENAME}"}
    )


@router.post("/delete-all", response_model=DeleteAllDrugsResponse)
async def delete_all_drugs(
    request: DeleteAllDrugsRequest,
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """Delete every drug of the current user; requires the account password."""
    return drug_service.delete_all_drugs(username, request.password)


@router.get("/{drug_id}", response_model=DrugResponse)
async def get_drug(
    drug_id: str,
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    return drug_service.get_drug(drug_id, username)


@router.put("/{drug_id}", response_model=DrugResponse)
async def update_drug(
    drug_id: str,
    request: DrugCreateRequest,
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    """
    Update a drug.

    Changing the expiration date makes the drug eligible for a new expiry alert.
    """
    return drug_service.update_drug(drug_id, request, username)


@router.delete("/{drug_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_drug(
    drug_id: str,
    drug_service: DrugService = Depends(get_drug_service),
    username: str = Depends(verify_token)
):
    drug_service.delete_drug(drug_id, username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
