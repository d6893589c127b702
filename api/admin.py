from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.applications import app_to_response
from api.deps import attach_notices, get_loan_service, require_admin
from schemas.application import StatusUpdate
from services.loan_service import LoanDataService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/applications")
async def list_all_applications(
    response: Response,
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    status: Optional[str] = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    service: LoanDataService = Depends(get_loan_service),
):
    result = await service.get_all_loan_applications(page, page_size, status, sort_by, sort_order)
    attach_notices(response, service)
    return {
        "items": [app_to_response(a) for a in result.items],
        "totalCount": result.total_count,
        "totalPages": result.total_pages,
        "page": result.page,
        "pageSize": result.page_size,
    }


@router.get("/applications/search")
async def search_applications(
    response: Response, term: str = Query(""), service: LoanDataService = Depends(get_loan_service)
):
    apps = await service.search_loan_applications(term)
    attach_notices(response, service)
    return [app_to_response(a) for a in apps]


@router.get("/applications/by-customer")
async def applications_by_customer(
    response: Response, name: str = Query(...), service: LoanDataService = Depends(get_loan_service)
):
    apps = await service.find_applications_by_customer_name(name)
    attach_notices(response, service)
    return [app_to_response(a) for a in apps]


@router.patch("/applications/{application_id}/status")
async def update_status(
    application_id: str, body: StatusUpdate, service: LoanDataService = Depends(get_loan_service)
):
    updated = await service.update_application_status(
        application_id, body.status, body.rejection_reason, body.evidence_required
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Application not found")
    app = await service.get_application_by_id(application_id)
    return app_to_response(app) if app else {"applicationId": application_id, "status": body.status}
