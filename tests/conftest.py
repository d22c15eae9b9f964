import json
import os

# Keep test runs from writing backend/logs
os.environ.setdefault("LOG_TO_FILE", "false")

import gspread.exceptions
import httplib2
import pytest
import requests
from googleapiclient.errors import HttpError


def api_error(code, message="boom", status="ERROR"):
    """A gspread APIError as raised for an HTTP error response."""
    response = requests.Response()
    response.status_code = code
    response._content = json.dumps({"error": {"code": code, "message": message, "status": status}}).encode()
    return gspread.exceptions.APIError(response)


def http_error(code, message="File not found"):
    """A googleapiclient HttpError as raised by the Drive API."""
    resp = httplib2.Response({"status": code})
    return HttpError(resp, json.dumps({"error": {"message": message}}).encode())


class FakeGoogleClient:
    """In-memory stand-in for GoogleApiClient that records every call."""

    service_account_email = "exporter@test-project.iam.gserviceaccount.com"

    def __init__(self):
        self.calls = []
        self.created = None
        self.sheet_ids = {}
        self.column_counts = {}
        self.values = {}
        self.value_input = {}
        self.cleared = []
        self.batches = []
        self.shared = []
        self.deleted = []
        self.files = {}
        self._failures = {}

    def fail(self, method, exc, times=None):
        """Make `method` raise exc, for `times` calls (or always)."""
        self._failures[method] = [exc, times]

    def _record(self, method, *args):
        self.calls.append((method,) + args)
        failure = self._failures.get(method)
        if failure is None:
            return
        exc, times = failure
        if times is not None:
            if times <= 0:
                return
            failure[1] = times - 1
        raise exc

    def test_authentication(self):
        self._record("test_authentication")
        return True

    def create_spreadsheet(self, title, tabs, locale="en_US", time_zone="Asia/Kolkata"):
        self._record("create_spreadsheet", title)
        self.created = {
            "title": title,
            "tabs": [tab["title"] for tab in tabs],
            "locale": locale,
            "time_zone": time_zone,
        }
        self.sheet_ids = {tab["title"]: index * 100 for index, tab in enumerate(tabs)}
        self.column_counts = {tab["title"]: tab["column_count"] for tab in tabs}
        self.files["sheet-123"] = {
            "id": "sheet-123",
            "name": title,
            "createdTime": "2024-03-15T10:30:00.000Z",
            "modifiedTime": "2024-03-15T10:31:00.000Z",
        }
        return {"spreadsheet_id": "sheet-123", "sheet_ids": dict(self.sheet_ids)}

    def get_sheet_ids(self, spreadsheet_id):
        self._record("get_sheet_ids", spreadsheet_id)
        return dict(self.sheet_ids)

    def get_column_counts(self, spreadsheet_id):
        self._record("get_column_counts", spreadsheet_id)
        return dict(self.column_counts)

    def write_values(self, spreadsheet_id, range_name, values, value_input_option="RAW"):
        self._record("write_values", spreadsheet_id, range_name)
        self.values[range_name] = values
        self.value_input[range_name] = value_input_option
        return {"updatedRange": range_name}

    def clear_values(self, spreadsheet_id, range_name):
        self._record("clear_values", spreadsheet_id, range_name)
        self.cleared.append(range_name)
        return {}

    def batch_update(self, spreadsheet_id, requests):
        self._record("batch_update", spreadsheet_id)
        self.batches.append(requests)
        return {}

    def share(self, file_id, role="writer", perm_type="anyone"):
        self._record("share", file_id)
        self.shared.append((file_id, role, perm_type))
        return {"id": "perm-1"}

    def get_file_info(self, file_id):
        self._record("get_file_info", file_id)
        if file_id not in self.files:
            raise http_error(404)
        return self.files[file_id]

    def delete_file(self, file_id):
        self._record("delete_file", file_id)
        if file_id not in self.files:
            raise http_error(404)
        del self.files[file_id]
        self.deleted.append(file_id)


class RecordingEmailService:
    def __init__(self):
        self.sent = []

    def send_email(self, to, subject, html, attachments=None):
        self.sent.append({"to": to, "subject": subject, "html": html, "attachments": attachments or []})
        return {"success": True, "messageId": f"mock-{len(self.sent)}@test.com", "response": "logged"}


@pytest.fixture
def event():
    return {
        "id": "evt-1",
        "title": "Hackathon",
        "participation_type": "solo",
        "custom_fields": [
            {"id": "tshirt", "label": "T-Shirt Size", "type": "select"},
            {"id": "skills", "label": "Skills", "type": "checkbox"},
        ],
    }


@pytest.fixture
def registrations():
    return [
        {
            "participant_name": "Alice",
            "participant_email": "alice@example.com",
            "participant_phone": "9876543210",
            "participant_student_id": "2012001",
            "participant_department": "CSE",
            "participant_year": "3",
            "registration_type": "Individual",
            "status": "registered",
            "created_at": "2024-03-15T10:30:00Z",
            "attendance_status": "attended",
            "attendance_timestamp": "2024-03-16T04:00:00Z",
            "additional_info": {"custom_fields": {"tshirt": "M", "skills": ["Python", "SQL"]}},
        },
        {
            "participant_name": "Bob",
            "participant_email": "bob@example.com",
            "created_at": "2024-03-15T11:00:00Z",
            "additional_info": {"department": "ECE", "year": "2", "custom_fields": {"tshirt": "L"}},
        },
    ]


@pytest.fixture
def team_event():
    return {"id": 7, "title": "Code Sprint", "participation_type": "team"}


@pytest.fixture
def team_registrations():
    return [
        {
            "participant_name": "Alice",
            "participant_email": "alice@example.com",
            "participant_id": "CS101",
            "registration_type": "Team",
            "attendance_status": "attended",
            "additional_info": {
                "department": "CSE",
                "year": "3",
                "team_name": "Code Ninjas",
                "team_members": [
                    {"name": "Carol", "rollNumber": "CS102", "department": "CSE", "year": "3"},
                    {"name": "Dave", "scholar_id": "EC201", "department": "ECE", "year": "2"},
                ],
            },
        },
        {
            "participant_name": "Bob",
            "participant_email": "bob@example.com",
            "participant_department": "ECE",
            "additional_info": {},
        },
    ]


@pytest.fixture
def google_client():
    return FakeGoogleClient()


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def app(monkeypatch, google_client, email_service):
    monkeypatch.delenv("API_PREFIX", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    from app import create_app

    flask_app = create_app(google_client=google_client, email_service=email_service, build_clients=False)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
