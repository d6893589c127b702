from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_loan_service, require_identity
from services.loan_service import LoanDataService

router = APIRouter(prefix="/api/profile", tags=["profile"], dependencies=[Depends(require_identity)])


@router.get("")
async def get_profile(service: LoanDataService = Depends(get_loan_service)):
    profile = await service.get_user_profile()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile.model_dump(by_alias=True, mode="json")
