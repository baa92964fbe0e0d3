"""
Dosage pattern API routes.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, status, Depends, Query

from ..models.common import PagedList, utcnow
from ..models.pattern import DosagePattern, DosagePatternCreate, ExpectedDose, PatternCreateResult
from ..models.user import User
from ..services.medication_service import MedicationService
from ..services.pattern_service import PatternService
from .dependencies import get_current_user

router = APIRouter(prefix="/medications/{medication_id}/patterns", tags=["Dosage Patterns"])


@router.post("", response_model=PatternCreateResult, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def create_pattern(
    medication_id: str,
    pattern_data: DosagePatternCreate,
    current_user: User = Depends(get_current_user)
):
    """
    Create a dosage pattern.

    By default the currently active pattern is closed the day before the
    new one starts. Non-blocking warnings are returned with the pattern.
    """
    medication = await MedicationService.require_medication(medication_id, current_user.id)
    return await PatternService.create_pattern(medication, pattern_data)


@router.get("/active", response_model=DosagePattern, response_model_by_alias=False)
async def get_active_pattern(
    medication_id: str,
    current_user: User = Depends(get_current_user)
):
    """Get the open-ended pattern of a medication."""
    medication = await MedicationService.require_medication(medication_id, current_user.id)
    return await PatternService.get_active_pattern(medication.id)


@router.get("/expected", response_model=ExpectedDose, response_model_by_alias=False)
async def get_expected_dose(
    medication_id: str,
    target_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    current_user: User = Depends(get_current_user)
):
    """Expected dose on a date, from a pattern or the fixed dose."""
    medication = await MedicationService.require_medication(medication_id, current_user.id)
    return await PatternService.get_expected_dose(medication, target_date or utcnow().date())


@router.get("", response_model=PagedList[DosagePattern], response_model_by_alias=False)
async def get_pattern_history(
    medication_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    active_only: bool = Query(False),
    current_user: User = Depends(get_current_user)
):
    """Pattern history, newest start first."""
    medication = await MedicationService.require_medication(medication_id, current_user.id)
    return await PatternService.get_pattern_history(
        medication.id,
        page=page,
        page_size=page_size,
        active_only=active_only
    )
