from fastapi import APIRouter, Depends

from sheetform.api.deps import get_store
from sheetform.schemas.sheet import FormDefinition
from sheetform.services.submission_store import SubmissionStore

router = APIRouter()


@router.get("/default", response_model=FormDefinition)
def get_default_form(store: SubmissionStore = Depends(get_store)):
    """Fields the public form renders when no sheet is selected"""
    return FormDefinition.from_sheet(store.default_sheet())


@router.get("/{sheet_id}", response_model=FormDefinition)
def get_form(sheet_id: str, store: SubmissionStore = Depends(get_store)):
    return FormDefinition.from_sheet(store.require_sheet(sheet_id))
