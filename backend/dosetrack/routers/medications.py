"""
Medication API routes.
"""

from typing import List
from fastapi import APIRouter, status, Depends, Query

from ..models.medication import Medication, MedicationCreate
from ..models.user import User
from ..services.medication_service import MedicationService
from .dependencies import get_current_user

router = APIRouter(prefix="/medications", tags=["Medications"])


@router.post("", response_model=Medication, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    current_user: User = Depends(get_current_user)
):
    """Register a medication for the current user."""
    return await MedicationService.create_medication(medication_data, current_user.id)


@router.get("", response_model=List[Medication], response_model_by_alias=False)
async def list_medications(
    limit: int = Query(100, ge=1, le=100),
    current_user: User = Depends(get_current_user)
):
    """List the current user's medications."""
    return await MedicationService.list_medications(current_user.id, limit=limit)


@router.get("/{medication_id}", response_model=Medication, response_model_by_alias=False)
async def get_medication(
    medication_id: str,
    current_user: User = Depends(get_current_user)
):
    """Get medication by ID."""
    return await MedicationService.require_medication(medication_id, current_user.id)
