"""
Medication log API routes.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, status, Depends, Query

from ..models.common import PagedList
from ..models.log import MedicationLog, MedicationLogCreate
from ..models.user import User
from ..services.log_service import LogService
from ..services.medication_service import MedicationService
from .dependencies import Pagination, get_current_user

router = APIRouter(prefix="/logs", tags=["Medication Logs"])


@router.post("", response_model=MedicationLog, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def record_dose(
    log_data: MedicationLogCreate,
    current_user: User = Depends(get_current_user)
):
    """Record a taken dose; expected dose and variance are fixed at this point."""
    medication = await MedicationService.require_medication(log_data.medication_id, current_user.id)
    return await LogService.record_dose(medication, log_data, current_user.id)


@router.get("", response_model=PagedList[MedicationLog], response_model_by_alias=False)
async def get_logs(
    medication_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    variance_only: bool = Query(False),
    variance_threshold: Decimal = Query(Decimal("0.01"), ge=0),
    pagination: Pagination = Depends(),
    current_user: User = Depends(get_current_user)
):
    """Dose logs, newest first."""
    return await LogService.get_logs(
        current_user.id,
        medication_id=medication_id,
        start_date=start_date,
        end_date=end_date,
        variance_only=variance_only,
        variance_threshold=variance_threshold,
        page=pagination.page,
        page_size=pagination.page_size
    )


@router.get("/{log_id}", response_model=MedicationLog, response_model_by_alias=False)
async def get_log(
    log_id: str,
    current_user: User = Depends(get_current_user)
):
    """Get a dose log by ID."""
    return await LogService.get_log(log_id, current_user.id)
