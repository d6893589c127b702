from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from api.deps import attach_notices, get_loan_service, require_identity
from schemas.payment import PaymentCreate, PaymentRecord
from services.loan_service import LoanDataService
from utils.formatters import format_currency, format_datetime

router = APIRouter(prefix="/api/payments", tags=["payments"], dependencies=[Depends(require_identity)])


def _payment_to_response(p: PaymentRecord) -> dict[str, Any]:
    return {
        "id": p.id,
        "paymentId": p.payment_id,
        "applicationId": p.application_id,
        "amount": p.amount,
        "formattedAmount": format_currency(p.amount),
        "customerId": p.customer_id,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "createdAtDisplay": format_datetime(p.created_at) if p.created_at else None,
    }


@router.get("")
async def list_payments(response: Response, service: LoanDataService = Depends(get_loan_service)):
    payments = await service.get_payments()
    attach_notices(response, service)
    return [_payment_to_response(p) for p in payments]


@router.post("", status_code=201)
async def submit_payment(body: PaymentCreate, service: LoanDataService = Depends(get_loan_service)):
    payment = await service.submit_payment(body.application_id, body.amount)
    return _payment_to_response(payment)


@router.get("/application/{application_id}")
async def list_application_payments(
    application_id: str, response: Response, service: LoanDataService = Depends(get_loan_service)
):
    payments = await service.get_payments_for_application(application_id)
    attach_notices(response, service)
    return [_payment_to_response(p) for p in payments]
