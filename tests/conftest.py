from typing import List

import pytest
from fastapi.testclient import TestClient

from sheetform.api import deps
from sheetform.core.config import settings
from sheetform.core.security import create_access_token
from sheetform.main import app
from sheetform.models.sheet import SheetConfig
from sheetform.schemas.sheet import FieldDefinitionCreate
from sheetform.services.persistence import ExcelPersistence
from sheetform.services.sheet_service import SheetService
from sheetform.services.submission_service import SubmissionService
from sheetform.services.submission_store import SubmissionStore

VALID_PAYLOAD = {
    "name": "Jane Doe",
    "email": "jane@x.com",
    "phone": "+12345678901",
    "message": "Hello, I need help with something.",
}


def editor_headers(sheet: SheetConfig) -> List[FieldDefinitionCreate]:
    """The sheet's fields as the sheet editor would send them back"""
    return [FieldDefinitionCreate(**header.model_dump()) for header in sheet.headers]


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def persistence(data_dir):
    return ExcelPersistence(data_dir / "user-submissions.xlsx", data_dir / "sheet-configs.json")


@pytest.fixture
def store(persistence):
    return SubmissionStore(persistence)


@pytest.fixture
def sheet_service(store):
    return SheetService(store)


@pytest.fixture
def submission_service(store):
    return SubmissionService(store)


@pytest.fixture
def broken_store(tmp_path):
    """Store whose files live under a regular file, so every write fails"""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return SubmissionStore(ExcelPersistence(blocker / "user-submissions.xlsx", blocker / "sheet-configs.json"))


@pytest.fixture
def client(store):
    app.dependency_overrides[deps.get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    client.cookies.set(settings.AUTH_COOKIE_NAME, create_access_token(settings.ADMIN_USERNAME))
    return client
