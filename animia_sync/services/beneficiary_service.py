"""Beneficiary list feed with the latest screening / intervention projection.

This is what the device stores as its offline Cache Snapshot.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from animia_sync.models.beneficiary import Beneficiary
from animia_sync.models.intervention import Intervention
from animia_sync.models.screening import Screening
from animia_sync.schemas.beneficiary import BeneficiaryOut

logger = logging.getLogger(__name__)


def list_beneficiaries(db: Session, limit: Optional[int] = None) -> list[BeneficiaryOut]:
    """Newest beneficiaries first, each joined with its latest screening and intervention."""
    latest_screening_id = (
        select(func.max(Screening.id))
        .where(Screening.beneficiary_id == Beneficiary.id)
        .correlate(Beneficiary)
        .scalar_subquery()
    )
    latest_intervention_id = (
        select(func.max(Intervention.id))
        .where(Intervention.beneficiary_id == Beneficiary.id)
        .correlate(Beneficiary)
        .scalar_subquery()
    )

    query = (
        db.query(Beneficiary, Screening, Intervention)
        .outerjoin(Screening, Screening.id == latest_screening_id)
        .outerjoin(Intervention, Intervention.id == latest_intervention_id)
        .order_by(Beneficiary.id.desc())
    )
    if limit:
        query = query.limit(limit)

    results = []
    for beneficiary, screening, intervention in query.all():
        projection = {}
        if screening is not None:
            projection.update(
                latest_hemoglobin=screening.hemoglobin,
                latest_anemia_category=screening.anemia_category,
                latest_severity=screening.severity,
                latest_screening_date=screening.created_at,
            )
        if intervention is not None:
            projection.update(
                latest_ifa_yes=intervention.ifa_yes,
                latest_intervention_date=intervention.created_at,
            )
        results.append(BeneficiaryOut.model_validate(beneficiary).model_copy(update=projection))

    logger.debug("Listed %d beneficiaries (limit=%s)", len(results), limit)
    return results
