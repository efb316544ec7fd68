"""Beneficiary list route — the feed behind the device's offline snapshot."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from animia_sync.database import get_db
from animia_sync.schemas.beneficiary import BeneficiaryOut
from animia_sync.services import beneficiary_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[BeneficiaryOut])
@router.get("/", response_model=list[BeneficiaryOut], include_in_schema=False)
def list_beneficiaries(
    limit: Optional[int] = Query(None, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    """List beneficiaries with their latest screening and intervention."""
    return beneficiary_service.list_beneficiaries(db, limit=limit)
