from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response

from api.deps import attach_notices, get_loan_service, require_identity
from schemas.application import ApplicationCreate, LoanApplicationRecord
from services.loan_service import LoanDataService
from services.workflow import available_actions
from utils.formatters import format_currency, format_datetime, status_tone

router = APIRouter(prefix="/api/applications", tags=["applications"])


def app_to_response(app: LoanApplicationRecord) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    return {
        "id": app.id,
        "applicationId": app.application_id,
        "customerId": app.customer_id,
        "customerName": app.customer_name,
        "loanAmount": app.loan_amount,
        "formattedAmount": format_currency(app.loan_amount),
        "loanType": app.display_loan_type,
        "status": app.status,
        "statusTone": status_tone(app.status),
        # Only the reason that belongs to the current status is shown
        "statusNote": app.status_note,
        "actions": [s.value for s in available_actions(app.status)],
        "createdAt": app.created_at.isoformat() if app.created_at else None,
        "createdAtDisplay": format_datetime(app.created_at) if app.created_at else None,
        "updatedAt": app.updated_at.isoformat() if app.updated_at else None,
    }


@router.get("", dependencies=[Depends(require_identity)])
async def list_my_applications(response: Response, service: LoanDataService = Depends(get_loan_service)):
    apps = await service.get_user_loan_applications()
    attach_notices(response, service)
    return [app_to_response(a) for a in apps]


@router.post("", status_code=201, dependencies=[Depends(require_identity)])
async def submit_application(body: ApplicationCreate, service: LoanDataService = Depends(get_loan_service)):
    app = await service.submit_loan_application(body.customer_name, body.loan_amount, body.loan_type)
    return app_to_response(app)


@router.get("/ids", dependencies=[Depends(require_identity)])
async def list_application_ids(service: LoanDataService = Depends(get_loan_service)):
    return await service.get_application_ids()


@router.get("/{application_id}")
async def get_application(application_id: str, service: LoanDataService = Depends(get_loan_service)):
    app = await service.get_application_by_id(application_id)
    if not app:
        raise HTTPException(status_code=404, detail="Application not found")
    return app_to_response(app)
