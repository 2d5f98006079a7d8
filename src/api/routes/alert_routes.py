"""
Expiry alert API routes.
"""
from fastapi import APIRouter, Depends
from src.core.auth_dependencies import verify_token
from src.core.dependencies import get_alert_service
from src.models.dto.drug_dto import AlertSweepResponse
from src.services.alert_service import ExpiryAlertService, sweep_response

router = APIRouter(prefix="/v1/api/alerts", tags=["Alerts"])


@router.post("/trigger", response_model=AlertSweepResponse)
async def trigger_alerts(
    alert_service: ExpiryAlertService = Depends(get_alert_service),
    username: str = Depends(verify_token)
):
    """
    Send expiry alerts for the current user's drugs now.

    Uses the same selection as the scheduled sweep; drugs already alerted
    are not alerted again.
    """
    summary = alert_service.run_sweep(owner_id=username)
    return AlertSweepResponse(**sweep_response(summary))
