from datetime import datetime, timezone

import pytest

from conftest import api_error
from core.errors import AuthError, NotFoundError, RateLimitError, ValidationError
from sheets.google_sheets_manager import GoogleSheetsManager

GENERATED = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def manager(google_client):
    return GoogleSheetsManager(google_client, display_timezone="Asia/Kolkata", locale="en_US", share_role="writer")


def _step_names(result):
    return [step.step for step in result.steps]


def test_create_event_sheet(manager, google_client, event, registrations):
    result = manager.create_event_sheet(event, registrations, generated_at=GENERATED)

    assert result.spreadsheet_id == "sheet-123"
    assert result.shareable_link == "https://docs.google.com/spreadsheets/d/sheet-123/edit#gid=0"
    assert result.title == "Hackathon - Event Registrations"
    assert result.row_count == 2
    assert result.failed_steps == []
    assert _step_names(result) == [
        "populate_registrations",
        "format_registrations",
        "populate_dashboard",
        "format_dashboard",
        "share",
    ]

    assert google_client.created == {
        "title": "Hackathon - Event Registrations",
        "tabs": ["Registrations", "Dashboard"],
        "locale": "en_US",
        "time_zone": "Asia/Kolkata",
    }
    grid = google_client.values["Registrations!A1"]
    assert grid[0] == ["Hackathon - Event Registrations"]
    assert grid[1] == []
    assert grid[2][0] == "S.No."
    assert [row[1] for row in grid[3:]] == ["Alice", "Bob"]
    assert google_client.value_input["Registrations!A1"] == "USER_ENTERED"
    assert google_client.values["Dashboard!A1"][0] == ["EVENT REGISTRATION DASHBOARD"]
    assert google_client.shared == [("sheet-123", "writer", "anyone")]


def test_team_tab_created_between_registrations_and_dashboard(manager, google_client, team_event, team_registrations):
    result = manager.create_event_sheet(team_event, team_registrations, generated_at=GENERATED)

    assert google_client.created["tabs"] == ["Registrations", "Team Members", "Dashboard"]
    assert "populate_team_members" in _step_names(result)
    assert google_client.values["Team Members!A1"][0] == ["TEAM MEMBERS DETAILS"]


def test_result_to_dict(manager, event, registrations):
    result = manager.create_event_sheet(event, registrations, generated_at=GENERATED)

    body = result.to_dict()

    assert body["spreadsheetId"] == "sheet-123"
    assert body["rowCount"] == 2
    assert body["steps"][0] == {"step": "populate_registrations", "succeeded": True, "error": None}


def test_secondary_failures_are_recorded(manager, google_client, event, registrations):
    google_client.fail("share", api_error(403))
    google_client.fail("batch_update", api_error(500), times=1)

    result = manager.create_event_sheet(event, registrations, generated_at=GENERATED)

    failed = {step.step: step.error for step in result.failed_steps}
    assert set(failed) == {"format_registrations", "share"}
    assert "Registrations!A1" in google_client.values
    assert "Dashboard!A1" in google_client.values


def test_empty_scaffold_falls_back_to_basic_formatting(manager, google_client, event):
    google_client.fail("batch_update", api_error(500), times=1)

    result = manager.create_event_sheet(event, [], allow_empty=True, generated_at=GENERATED)

    outcomes = {step.step: step.succeeded for step in result.steps}
    assert outcomes["format_registrations"] is False
    assert outcomes["format_registrations_basic"] is True
    assert result.row_count == 0


def test_empty_registrations_rejected_without_allow_empty(manager, google_client, event):
    with pytest.raises(ValidationError):
        manager.create_event_sheet(event, [])

    assert google_client.calls == []


@pytest.mark.parametrize("event_data", [None, {}, {"id": 1, "title": ""}])
def test_event_structure_is_fatal(manager, google_client, event_data, registrations):
    with pytest.raises(ValidationError):
        manager.create_event_sheet(event_data, registrations)

    assert google_client.calls == []


def test_bad_custom_fields_are_fatal_before_creation(manager, google_client, registrations):
    event = {"id": 1, "title": "Talk", "custom_fields": [{"id": "x"}]}

    with pytest.raises(ValidationError) as exc_info:
        manager.create_event_sheet(event, registrations)

    assert exc_info.value.details[0]["field"] == "event.custom_fields[0].label"
    assert google_client.created is None


@pytest.mark.parametrize("exc, expected", [
    (api_error(403), AuthError),
    (api_error(429), RateLimitError),
])
def test_creation_errors_are_classified(manager, google_client, event, registrations, exc, expected):
    google_client.fail("create_spreadsheet", exc)

    with pytest.raises(expected):
        manager.create_event_sheet(event, registrations)


def test_update_clears_data_rows_and_rewrites(manager, google_client, event, registrations):
    manager.create_event_sheet(event, registrations, generated_at=GENERATED)
    google_client.cleared.clear()

    result = manager.update_event_sheet("sheet-123", event, registrations[:1], generated_at=GENERATED)

    assert google_client.cleared[0] == "Registrations!A4:Z"
    grid = google_client.values["Registrations!A1"]
    assert grid[0] == ["Hackathon - Event Registrations"]
    assert len(grid) == 3 + 1
    assert grid[3][1] == "Alice"
    assert "Dashboard!A1:Z" in google_client.cleared
    assert result.row_count == 1
    assert _step_names(result) == ["read_tabs", "format_registrations", "refresh_dashboard"]


def test_update_refreshes_team_tab_when_team_data_present(manager, google_client, team_event, team_registrations):
    manager.create_event_sheet(team_event, team_registrations, generated_at=GENERATED)

    result = manager.update_event_sheet("sheet-123", team_event, team_registrations, generated_at=GENERATED)

    assert "refresh_team_members" in _step_names(result)
    assert "Team Members!A1:Z" in google_client.cleared


def test_update_missing_sheet_raises_not_found(manager, google_client, event, registrations):
    google_client.fail("clear_values", api_error(404))

    with pytest.raises(NotFoundError):
        manager.update_event_sheet("missing", event, registrations)


def test_update_wide_sheet_clears_every_column(manager, google_client, registrations):
    event = {
        "id": 1,
        "title": "Survey",
        "custom_fields": [{"id": f"q{i}", "label": f"Question {i}"} for i in range(20)],
    }
    google_client.sheet_ids = {"Registrations": 0}

    manager.update_event_sheet("sheet-9", event, registrations)

    # 12 core + 20 custom + Notes = 33 columns
    assert google_client.cleared[0] == "Registrations!A4:AG"


def test_update_narrower_sheet_clears_old_columns(manager, google_client, registrations):
    def survey(question_count):
        return {
            "id": 1,
            "title": "Survey",
            "custom_fields": [{"id": f"q{i}", "label": f"Question {i}"} for i in range(question_count)],
        }

    manager.create_event_sheet(survey(20), registrations, generated_at=GENERATED)
    google_client.cleared.clear()

    manager.update_event_sheet("sheet-123", survey(15), registrations, generated_at=GENERATED)

    # Old grid is 33 columns wide (AG), the new header is 28 (AB)
    assert google_client.cleared[0] == "Registrations!A4:AG"
    assert google_client.cleared[1] == "Registrations!AC3:AG3"
    assert len(google_client.values["Registrations!A1"][2]) == 28


def test_get_sheet_info(manager, event, registrations):
    manager.create_event_sheet(event, registrations, generated_at=GENERATED)

    info = manager.get_sheet_info("sheet-123")

    assert info == {
        "spreadsheetId": "sheet-123",
        "title": "Hackathon - Event Registrations",
        "shareableLink": "https://docs.google.com/spreadsheets/d/sheet-123/edit#gid=0",
        "createdTime": "2024-03-15T10:30:00.000Z",
        "lastModified": "2024-03-15T10:31:00.000Z",
    }


def test_get_missing_sheet(manager):
    with pytest.raises(NotFoundError):
        manager.get_sheet_info("nope")


def test_delete_sheet(manager, google_client, event, registrations):
    manager.create_event_sheet(event, registrations, generated_at=GENERATED)

    assert manager.delete_sheet("sheet-123") == {"message": "Google Sheet deleted successfully"}
    assert google_client.deleted == ["sheet-123"]

    with pytest.raises(NotFoundError):
        manager.delete_sheet("sheet-123")
