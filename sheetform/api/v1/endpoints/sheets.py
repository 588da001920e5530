# File: sheetform/api/v1/endpoints/sheets.py
from fastapi import APIRouter, Depends, status
from typing import List
import logging

from sheetform.api.deps import get_sheet_service, require_admin
from sheetform.models.sheet import SheetConfig
from sheetform.schemas.sheet import SheetConfigCreate, SheetConfigUpdate, SheetMutationResult
from sheetform.services.sheet_service import SheetService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[SheetConfig])
def list_sheets(
    service: SheetService = Depends(get_sheet_service),
    admin: str = Depends(require_admin),
):
    return service.list_sheets()


@router.post("", response_model=SheetMutationResult, status_code=status.HTTP_201_CREATED)
def create_sheet(
    config: SheetConfigCreate,
    service: SheetService = Depends(get_sheet_service),
    admin: str = Depends(require_admin),
):
    """Create a new sheet; it becomes the default when flagged or when it is the first one"""
    return service.create(config)


@router.get("/{sheet_id}", response_model=SheetConfig)
def get_sheet(
    sheet_id: str,
    service: SheetService = Depends(get_sheet_service),
    admin: str = Depends(require_admin),
):
    return service.get_sheet(sheet_id)


@router.patch("/{sheet_id}", response_model=SheetMutationResult)
def update_sheet(
    sheet_id: str,
    updates: SheetConfigUpdate,
    service: SheetService = Depends(get_sheet_service),
    admin: str = Depends(require_admin),
):
    return service.update(sheet_id, updates)


@router.delete("/{sheet_id}", response_model=SheetMutationResult)
def delete_sheet(
    sheet_id: str,
    service: SheetService = Depends(get_sheet_service),
    admin: str = Depends(require_admin),
):
    """Delete a sheet and all of its submissions"""
    logger.info(f"Admin '{admin}' deleting sheet {sheet_id}")
    return service.delete(sheet_id)
