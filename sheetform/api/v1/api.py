# File: sheetform/api/v1/api.py
from fastapi import APIRouter
from sheetform.api.v1.endpoints import auth, forms, submissions, sheets, export

# Create main API router
api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

api_router.include_router(
    forms.router,
    prefix="/forms",
    tags=["forms"]
)

api_router.include_router(
    submissions.router,
    prefix="/submissions",
    tags=["submissions"]
)

api_router.include_router(
    sheets.router,
    prefix="/sheets",
    tags=["sheets"]
)

api_router.include_router(
    export.router,
    prefix="/export",
    tags=["export"]
)
