"""
Schedule API routes.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..models.schedule import MedicationSchedule
from ..models.user import User
from ..services.medication_service import MedicationService
from ..services.schedule_service import ScheduleService
from .dependencies import get_current_user

router = APIRouter(prefix="/medications/{medication_id}/schedule", tags=["Schedule"])


@router.get("", response_model=MedicationSchedule, response_model_by_alias=False)
async def get_schedule(
    medication_id: str,
    start_date: Optional[date] = Query(None, description="Defaults to today"),
    days: Optional[int] = Query(None, description="Number of days, 1 to 365"),
    current_user: User = Depends(get_current_user)
):
    """Day-by-day dosing schedule with pattern transitions."""
    medication = await MedicationService.require_medication(medication_id, current_user.id)
    return await ScheduleService.generate_schedule(medication, start_date=start_date, days=days)
