import pytest

from sheets.sheet_data import (
    CORE_HEADERS,
    ERROR_NOTE,
    PAYMENT_HEADERS,
    SheetDataError,
    format_custom_value,
    prepare_sheet_data,
    resolve_custom_columns,
)


def test_minimal_registration_without_custom_fields():
    event = {"id": "e1", "title": "Talk"}
    registrations = [{"participant_name": "Alice", "participant_email": "alice@example.com"}]

    data = prepare_sheet_data(event, registrations)

    assert len(data.headers) == 13
    assert data.headers[:12] == CORE_HEADERS
    assert data.headers[-1] == "Notes"
    row = data.rows[0]
    assert len(row) == 13
    assert row[:3] == [1, "Alice", "alice@example.com"]
    assert row[3:7] == ["N/A", "N/A", "N/A", "N/A"]
    assert row[7:10] == ["Individual", "Confirmed", "Not Attended"]
    assert row[10] == "N/A"
    assert row[11] == "N/A"
    assert row[12] == ""


def test_full_row_with_custom_fields(event, registrations):
    data = prepare_sheet_data(event, registrations)

    assert data.headers == CORE_HEADERS + ["T-Shirt Size", "Skills", "Notes"]
    alice, bob = data.rows
    assert alice == [
        1,
        "Alice",
        "alice@example.com",
        "9876543210",
        "2012001",
        "CSE",
        "3",
        "Individual",
        "Confirmed",
        "Attended",
        "16/3/2024, 9:30:00 am",
        "15/3/2024, 4:00:00 pm",
        "M",
        "Python, SQL",
        "",
    ]
    # Department and year fall back to additional_info, missing answers render N/A
    assert bob[5:7] == ["ECE", "2"]
    assert bob[12:14] == ["L", "N/A"]


def test_every_row_matches_header_length(event, registrations):
    registrations.append("not a registration")
    registrations.append({"participant_name": "No Email"})

    data = prepare_sheet_data(event, registrations)

    assert all(len(row) == len(data.headers) for row in data.rows)


def test_malformed_custom_fields_are_filtered():
    event = {"id": "e1", "title": "Talk", "custom_fields": [None, "text", {"id": "x"}]}
    registrations = [{"participant_name": "Alice", "participant_email": "alice@example.com"}]

    data = prepare_sheet_data(event, registrations)

    assert len(data.headers) == 13


def test_custom_fields_not_a_list_is_treated_as_empty():
    event = {"id": "e1", "title": "Talk", "custom_fields": {"id": "x", "label": "X"}}

    assert resolve_custom_columns(event) == []


def test_placeholder_policy_keeps_invalid_slots():
    event = {
        "id": "e1",
        "title": "Talk",
        "custom_fields": [{"id": "a", "label": "A"}, {"id": "b"}, "junk"],
    }
    registrations = [{
        "participant_name": "Alice",
        "participant_email": "alice@example.com",
        "additional_info": {"custom_fields": {"a": "one", "b": "two"}},
    }]

    data = prepare_sheet_data(event, registrations, invalid_field_policy="placeholder")

    assert data.headers[12:15] == ["A", "Custom Field 2", "Custom Field 3"]
    assert data.rows[0][12:15] == ["one", "two", "N/A"]


def test_payment_columns_for_paid_event():
    event = {"id": "e1", "title": "Workshop", "requires_payment": True}
    registrations = [{
        "participant_name": "Alice",
        "participant_email": "alice@example.com",
        "payment_status": "verified",
        "payment_amount": 500,
    }]

    data = prepare_sheet_data(event, registrations)

    assert len(data.headers) == 12 + 3 + 1
    assert data.headers[12:15] == PAYMENT_HEADERS
    assert data.rows[0][12:15] == ["Yes", "₹500", "N/A"]


def test_payment_amount_falls_back_to_event_amount():
    event = {"id": "e1", "title": "Workshop", "payment_required": True, "payment_amount": 250}
    registrations = [{
        "participant_name": "Alice",
        "participant_email": "alice@example.com",
        "payment_screenshot_url": "https://img.example.com/proof.png",
    }]

    row = prepare_sheet_data(event, registrations).rows[0]

    assert row[12:15] == ["No", "₹250", "https://img.example.com/proof.png"]


def test_payment_data_adds_columns_for_free_event():
    event = {"id": "e1", "title": "Talk"}
    registrations = [{"participant_name": "A", "participant_email": "a@example.com", "payment_status": "pending"}]

    data = prepare_sheet_data(event, registrations)

    assert "Payment Verified" in data.headers
    assert data.rows[0][12:15] == ["No", "N/A", "N/A"]


def test_invalid_registration_becomes_error_row(event):
    registrations = [
        {"participant_name": "Carol"},
        42,
    ]

    data = prepare_sheet_data(event, registrations)

    carol, bad = data.rows
    assert carol[:3] == [1, "Carol", "N/A"]
    assert carol[3] == "ERROR"
    assert carol[-1] == ERROR_NOTE
    assert bad[:3] == [2, "N/A", "N/A"]
    assert len(bad) == len(data.headers)


def test_status_mapping():
    event = {"id": "e1", "title": "Talk"}
    registrations = [
        {"participant_name": "A", "participant_email": "a@example.com", "status": "registered"},
        {"participant_name": "B", "participant_email": "b@example.com", "status": "waitlisted"},
        {"participant_name": "C", "participant_email": "c@example.com", "attendance_status": "absent"},
    ]

    rows = prepare_sheet_data(event, registrations).rows

    assert [row[8] for row in rows] == ["Confirmed", "waitlisted", "Confirmed"]
    assert [row[9] for row in rows] == ["Not Attended", "Not Attended", "Not Attended"]


def test_top_level_custom_fields_are_used_when_additional_info_has_none():
    event = {"id": "e1", "title": "Talk", "custom_fields": [{"id": "diet", "label": "Diet"}]}
    registrations = [{
        "participant_name": "A",
        "participant_email": "a@example.com",
        "participant_id": "R-9",
        "custom_fields": {"diet": "Vegan"},
    }]

    row = prepare_sheet_data(event, registrations).rows[0]

    assert row[4] == "R-9"
    assert row[12] == "Vegan"


@pytest.mark.parametrize("value, expected", [
    (None, "N/A"),
    ("", "N/A"),
    ([], "N/A"),
    (["a", "b"], "a, b"),
    (True, "true"),
    (False, "false"),
    (3, "3"),
])
def test_format_custom_value(value, expected):
    assert format_custom_value(value) == expected


def test_builder_is_idempotent(event, registrations):
    first = prepare_sheet_data(event, registrations)
    second = prepare_sheet_data(event, registrations)

    assert first.to_dict() == second.to_dict()


def test_missing_event_raises():
    with pytest.raises(SheetDataError):
        prepare_sheet_data(None, [])


def test_registrations_must_be_a_list(event):
    with pytest.raises(SheetDataError):
        prepare_sheet_data(event, {"participant_name": "A"})
