from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from sheetform.core.errors import PersistenceError
from sheetform.models.sheet import DEFAULT_SHEET_ID, SheetConfig, build_default_sheet
from sheetform.models.submission import SubmissionStatus
from sheetform.schemas.sheet import FieldDefinitionCreate, SheetConfigCreate, SheetConfigUpdate
from sheetform.services.persistence import METADATA_COLUMNS, ExcelPersistence, worksheet_titles
from sheetform.services.sheet_service import SheetService
from sheetform.services.submission_service import SubmissionService
from sheetform.services.submission_store import SubmissionStore

from .conftest import VALID_PAYLOAD, editor_headers


def header_row(path, title):
    wb = load_workbook(path)
    return [cell.value for cell in wb[title][1]]


def fresh_store(persistence):
    return SubmissionStore(ExcelPersistence(
        persistence.workbook_path, persistence.sheet_config_path, store_metadata=persistence.store_metadata
    ))


def test_missing_config_file_yields_default_sheet_and_writes_it(store, persistence):
    sheets = store.list_sheets()

    assert [s.id for s in sheets] == [DEFAULT_SHEET_ID]
    assert sheets[0].is_default
    assert persistence.sheet_config_path.exists()


def test_corrupt_files_fall_back_to_safe_state(persistence):
    persistence.sheet_config_path.parent.mkdir(parents=True)
    persistence.sheet_config_path.write_text("{not json")
    persistence.workbook_path.write_bytes(b"not a workbook")

    store = SubmissionStore(persistence)

    assert [s.id for s in store.list_sheets()] == [DEFAULT_SHEET_ID]
    assert store.list_submissions() == []


def test_round_trip_keeps_counts_and_values_per_sheet(store, persistence, submission_service, sheet_service):
    second = sheet_service.create(SheetConfigCreate(name="Events")).sheet
    submission_service.submit(VALID_PAYLOAD)
    submission_service.submit({**VALID_PAYLOAD, "name": "John Roe"})
    submission_service.submit({**VALID_PAYLOAD, "name": "Event Guest"}, sheet_id=second.id)

    reloaded = fresh_store(persistence)

    assert len(reloaded.list_submissions(sheet_id=DEFAULT_SHEET_ID)) == 2
    assert len(reloaded.list_submissions(sheet_id=second.id)) == 1
    names = sorted(s.data["name"] for s in reloaded.list_submissions(sheet_id=DEFAULT_SHEET_ID))
    assert names == ["Jane Doe", "John Roe"]
    guest = reloaded.list_submissions(sheet_id=second.id)[0]
    assert guest.data == {**VALID_PAYLOAD, "name": "Event Guest"}


def test_rehydrated_rows_are_read_with_new_ids_in_row_order(store, persistence, submission_service):
    first = submission_service.submit({**VALID_PAYLOAD, "name": "First Person"})
    submission_service.submit({**VALID_PAYLOAD, "name": "Second Person"})

    reloaded = fresh_store(persistence).list_submissions()

    assert all(s.status == SubmissionStatus.READ for s in reloaded)
    assert first.submission_id not in {s.id for s in reloaded}
    # newest first
    assert [s.data["name"] for s in reloaded] == ["Second Person", "First Person"]
    assert reloaded[0].submitted_at > reloaded[1].submitted_at


def test_metadata_columns_make_reload_lossless(data_dir):
    persistence = ExcelPersistence(
        data_dir / "user-submissions.xlsx", data_dir / "sheet-configs.json", store_metadata=True
    )
    store = SubmissionStore(persistence)
    service = SubmissionService(store)
    result = service.submit(VALID_PAYLOAD)
    service.update_status(result.submission_id, SubmissionStatus.ARCHIVED, notes="called back")

    reloaded = fresh_store(persistence).require_submission(result.submission_id)

    assert reloaded.status == SubmissionStatus.ARCHIVED
    assert reloaded.notes == "called back"
    assert reloaded.data == VALID_PAYLOAD
    assert header_row(persistence.workbook_path, "Contact Form")[-len(METADATA_COLUMNS):] == METADATA_COLUMNS
    ws = load_workbook(persistence.workbook_path)["Contact Form"]
    assert ws.column_dimensions["E"].hidden


def test_columns_use_enabled_display_names_in_order(store, persistence, submission_service):
    submission_service.submit(VALID_PAYLOAD)

    assert header_row(persistence.workbook_path, "Contact Form") == ["Name", "Email", "Phone", "Message"]
    ws = load_workbook(persistence.workbook_path)["Contact Form"]
    assert [cell.value for cell in ws[2]] == ["Jane Doe", "jane@x.com", "+12345678901", VALID_PAYLOAD["message"]]


def test_disabling_a_field_drops_its_column_but_keeps_stored_values(store, persistence, submission_service):
    sheet_service = SheetService(store)
    earlier = submission_service.submit(VALID_PAYLOAD)
    sheet = store.default_sheet()
    headers = editor_headers(sheet)
    for header in headers:
        if header.key == "phone":
            header.enabled = False
    sheet_service.update(sheet.id, SheetConfigUpdate(headers=headers))

    later = submission_service.submit({k: v for k, v in VALID_PAYLOAD.items() if k != "phone"})

    assert later.success
    assert header_row(persistence.workbook_path, "Contact Form") == ["Name", "Email", "Message"]
    assert store.require_submission(earlier.submission_id).data["phone"] == "+12345678901"


def test_reordering_fields_moves_columns_only(store, persistence, submission_service):
    result = submission_service.submit(VALID_PAYLOAD)
    sheet = store.default_sheet()
    headers = editor_headers(sheet)
    orders = {h.key: h.order for h in headers}
    for header in headers:
        if header.key == "name":
            header.order = orders["email"]
        elif header.key == "email":
            header.order = orders["name"]
    SheetService(store).update(sheet.id, SheetConfigUpdate(headers=headers))

    assert header_row(persistence.workbook_path, "Contact Form") == ["Email", "Name", "Phone", "Message"]
    submission = store.require_submission(result.submission_id)
    assert submission.data == VALID_PAYLOAD


def test_only_default_sheet_gets_an_empty_worksheet(store, persistence, sheet_service):
    sheet_service.create(SheetConfigCreate(name="Quiet Sheet"))

    wb = load_workbook(persistence.workbook_path)

    assert wb.sheetnames == ["Contact Form"]
    assert wb["Contact Form"].max_row == 1


def test_unknown_worksheet_rows_land_in_default_sheet(store, persistence, submission_service):
    submission_service.submit(VALID_PAYLOAD)
    wb = load_workbook(persistence.workbook_path)
    wb["Contact Form"].title = "Renamed Elsewhere"
    wb.save(persistence.workbook_path)

    reloaded = fresh_store(persistence).list_submissions()

    assert len(reloaded) == 1
    assert reloaded[0].sheet_id == DEFAULT_SHEET_ID


def test_write_failure_is_reported_not_raised(broken_store):
    broken_store.ensure_loaded()

    assert broken_store.save_sheets() is False
    assert broken_store.save_workbook() is False
    assert broken_store.export_workbook() is None


def test_worksheet_titles_are_legal_and_unique():
    now = datetime.now(timezone.utc)
    sheets = [
        SheetConfig(id="a", name="Q1/Q2: Leads?", created_at=now, updated_at=now),
        SheetConfig(id="b", name="Q1/Q2: Leads?", created_at=now, updated_at=now),
        SheetConfig(id="c", name="x" * 40, created_at=now, updated_at=now),
    ]

    titles = worksheet_titles(sheets)

    assert titles["a"] == "Q1_Q2_ Leads_"
    assert titles["b"] == "Q1_Q2_ Leads_ (2)"
    assert len(titles["c"]) == 31


def test_loaded_configs_are_repaired_to_one_default(persistence):
    first, second = build_default_sheet(), build_default_sheet()
    second.id, second.name = "other", "Other"
    persistence.save_sheets([first, second])

    sheets = SubmissionStore(persistence).list_sheets()

    assert [s.is_default for s in sheets] == [True, False]


def test_formula_like_text_is_stored_as_text(store, persistence, submission_service):
    submission_service.submit({**VALID_PAYLOAD, "message": '=HYPERLINK("http://example.com","click")'})
    submission_service.submit({**VALID_PAYLOAD, "name": "=1+1"})

    ws = load_workbook(persistence.workbook_path)["Contact Form"]

    assert ws["D2"].data_type == "s"
    assert ws["D2"].value == '=HYPERLINK("http://example.com","click")'
    assert ws["A3"].data_type == "s"
    assert ws["A3"].value == "=1+1"
    reloaded = fresh_store(persistence).list_submissions()
    assert sorted(s.data["name"] for s in reloaded) == ["=1+1", "Jane Doe"]


def add_fields_named_like_metadata(store):
    sheet = store.default_sheet()
    headers = editor_headers(sheet) + [
        FieldDefinitionCreate(name="Status"),
        FieldDefinitionCreate(name="Submission ID"),
    ]
    SheetService(store).update(sheet.id, SheetConfigUpdate(headers=headers))


def test_fields_named_like_metadata_are_plain_data(store, persistence, submission_service):
    add_fields_named_like_metadata(store)
    payload = {**VALID_PAYLOAD, "status": "new", "submission_id": "X1"}
    submission_service.submit(payload)
    submission_service.submit(payload)

    reloaded = fresh_store(persistence).list_submissions()

    assert len({s.id for s in reloaded}) == 2
    assert "X1" not in {s.id for s in reloaded}
    assert all(s.status == SubmissionStatus.READ for s in reloaded)
    assert all(s.data == payload for s in reloaded)


def test_metadata_block_is_read_by_position(data_dir):
    persistence = ExcelPersistence(
        data_dir / "user-submissions.xlsx", data_dir / "sheet-configs.json", store_metadata=True
    )
    store = SubmissionStore(persistence)
    add_fields_named_like_metadata(store)
    service = SubmissionService(store)
    payload = {**VALID_PAYLOAD, "status": "archived", "submission_id": "X1"}
    result = service.submit(payload)

    reloaded = fresh_store(persistence).require_submission(result.submission_id)

    assert reloaded.status == SubmissionStatus.NEW
    assert reloaded.data == payload


def test_duplicate_metadata_ids_are_replaced(data_dir):
    persistence = ExcelPersistence(
        data_dir / "user-submissions.xlsx", data_dir / "sheet-configs.json", store_metadata=True
    )
    service = SubmissionService(SubmissionStore(persistence))
    result = service.submit(VALID_PAYLOAD)
    wb = load_workbook(persistence.workbook_path)
    ws = wb["Contact Form"]
    ws.append([cell.value for cell in ws[2]])
    wb.save(persistence.workbook_path)

    reloaded = fresh_store(persistence).list_submissions()

    assert len(reloaded) == 2
    assert len({s.id for s in reloaded}) == 2
    assert result.submission_id in {s.id for s in reloaded}


def test_atomic_write_raises_persistence_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError):
        ExcelPersistence._atomic_write(blocker / "out.json", lambda tmp: None)


def test_failed_write_leaves_no_temp_file(data_dir):
    data_dir.mkdir(parents=True)

    def explode(tmp):
        raise ValueError("boom")

    with pytest.raises(PersistenceError):
        ExcelPersistence._atomic_write(data_dir / "out.json", explode)

    assert list(data_dir.iterdir()) == []
