"""
Registration grid builder.

Turns an event descriptor and its registrations into the header/row grid
written to the Registrations tab. The builder is lenient: malformed optional
data degrades to "N/A" cells, placeholder columns or an error row, and only
missing structural input (no event, registrations not a list) raises.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.logger import logger
from sheets.sheets_dates import DEFAULT_DISPLAY_TIMEZONE, format_display_datetime

NOT_AVAILABLE = "N/A"
ERROR_CELL = "ERROR"
ERROR_NOTE = "Processing Error"
CURRENCY_PREFIX = "₹"

CORE_HEADERS = [
    "S.No.",
    "Name",
    "Email",
    "Phone",
    "Student ID",
    "Department",
    "Year",
    "Registration Type",
    "Registration Status",
    "Attendance Status",
    "Attendance Time",
    "Registration Date",
]
PAYMENT_HEADERS = ["Payment Verified", "Payment Amount", "Payment Screenshot"]
NOTES_HEADER = "Notes"

INVALID_FIELD_DROP = "drop"
INVALID_FIELD_PLACEHOLDER = "placeholder"


class SheetDataError(ValueError):
    """Raised when the structural inputs of the builder are missing."""


@dataclass(frozen=True)
class CustomColumn:
    """A custom-field column: the id used to look values up and its header label."""

    field_id: Optional[str]
    label: str


@dataclass
class SheetData:
    headers: List[str]
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def to_dict(self) -> Dict[str, Any]:
        return {"headers": list(self.headers), "rows": [list(row) for row in self.rows]}


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_valid_custom_field(definition: Any) -> bool:
    """A usable custom field definition is a mapping with non-empty string id and label."""
    return (
        isinstance(definition, Mapping)
        and _is_non_empty_str(definition.get("id"))
        and _is_non_empty_str(definition.get("label"))
    )


def resolve_custom_columns(event: Mapping, invalid_field_policy: str = INVALID_FIELD_DROP) -> List[CustomColumn]:
    """
    Resolve the event's custom field definitions into columns.

    Args:
        event: Event descriptor
        invalid_field_policy: "drop" discards invalid definitions, "placeholder"
            keeps their slot under a generated "Custom Field N" label
    """
    definitions = event.get("custom_fields")
    if definitions is None:
        return []
    if not isinstance(definitions, (list, tuple)):
        logger.warning(f"custom_fields is not a list ({type(definitions).__name__}), ignoring custom fields")
        return []

    columns: List[CustomColumn] = []
    for index, definition in enumerate(definitions):
        if is_valid_custom_field(definition):
            columns.append(CustomColumn(field_id=definition["id"], label=definition["label"]))
            continue

        logger.warning(f"Invalid custom field at index {index}: {definition!r}")
        if invalid_field_policy == INVALID_FIELD_PLACEHOLDER:
            field_id = definition.get("id") if isinstance(definition, Mapping) else None
            columns.append(
                CustomColumn(
                    field_id=field_id if _is_non_empty_str(field_id) else None,
                    label=f"Custom Field {index + 1}",
                )
            )
    return columns


def is_payment_required(event: Mapping) -> bool:
    return bool(event.get("payment_required") or event.get("requires_payment"))


def has_payment_info(registrations: Sequence[Any]) -> bool:
    """True when any registration carries a payment-related value."""
    return any(
        isinstance(reg, Mapping)
        and (reg.get("payment_screenshot_url") or reg.get("payment_status") or reg.get("payment_amount"))
        for reg in registrations
    )


def build_headers(custom_columns: Sequence[CustomColumn], include_payment: bool) -> List[str]:
    headers = list(CORE_HEADERS)
    headers.extend(column.label for column in custom_columns)
    if include_payment:
        headers.extend(PAYMENT_HEADERS)
    headers.append(NOTES_HEADER)
    return headers


def _additional_info(reg: Mapping) -> Mapping:
    info = reg.get("additional_info")
    return info if isinstance(info, Mapping) else {}


def _first_present(*values: Any, default: Any = NOT_AVAILABLE) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return default


def custom_field_values(reg: Mapping) -> Mapping:
    """Custom field answers live under additional_info.custom_fields, or on the registration itself."""
    values = _additional_info(reg).get("custom_fields")
    if not isinstance(values, Mapping):
        values = reg.get("custom_fields")
    return values if isinstance(values, Mapping) else {}


def format_custom_value(value: Any) -> str:
    """Render a custom field answer for a cell: lists (checkboxes) are comma-joined."""
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, (list, tuple)):
        parts = [str(item) for item in value if item is not None and item != ""]
        return ", ".join(parts) if parts else NOT_AVAILABLE
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_amount(amount: Any) -> str:
    return f"{CURRENCY_PREFIX}{amount}"


def _registration_status(status: Any) -> str:
    if status == "registered":
        return "Confirmed"
    return status or "Confirmed"


def _attendance_status(status: Any) -> str:
    return "Attended" if status == "attended" else "Not Attended"


def build_registration_row(
    index: int,
    reg: Any,
    event: Mapping,
    custom_columns: Sequence[CustomColumn],
    include_payment: bool,
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
) -> List[Any]:
    """
    Build one data row. Raises ValueError when the registration is unusable.

    Args:
        index: Zero-based position of the registration
        reg: Registration payload
        event: Event descriptor (for the fallback payment amount)
        custom_columns: Resolved custom columns, in header order
        include_payment: Whether payment columns are present
        display_timezone: Zone used for the date cells
    """
    if not isinstance(reg, Mapping):
        raise ValueError(f"Registration {index + 1} is not a valid object")
    if not reg.get("participant_name") or not reg.get("participant_email"):
        raise ValueError(f"Registration {index + 1} is missing required participant name or email")

    info = _additional_info(reg)
    row: List[Any] = [
        index + 1,
        reg.get("participant_name") or NOT_AVAILABLE,
        reg.get("participant_email") or NOT_AVAILABLE,
        _first_present(reg.get("participant_phone")),
        _first_present(reg.get("participant_student_id"), reg.get("participant_id")),
        _first_present(reg.get("participant_department"), info.get("department")),
        _first_present(reg.get("participant_year"), info.get("year")),
        reg.get("registration_type") or "Individual",
        _registration_status(reg.get("status")),
        _attendance_status(reg.get("attendance_status")),
        format_display_datetime(reg.get("attendance_timestamp"), display_timezone),
        format_display_datetime(reg.get("created_at"), display_timezone),
    ]

    answers = custom_field_values(reg)
    for column in custom_columns:
        if column.field_id is None:
            row.append(NOT_AVAILABLE)
        else:
            row.append(format_custom_value(answers.get(column.field_id)))

    if include_payment:
        verified = "Yes" if reg.get("payment_status") == "verified" else "No"
        if reg.get("payment_amount"):
            amount = format_amount(reg["payment_amount"])
        elif event.get("payment_amount"):
            amount = format_amount(event["payment_amount"])
        else:
            amount = NOT_AVAILABLE
        screenshot = reg.get("payment_screenshot_url")
        if not screenshot or screenshot == NOT_AVAILABLE:
            screenshot = NOT_AVAILABLE
        row.extend([verified, amount, screenshot])

    row.append("")
    return row


def build_error_row(index: int, reg: Any, column_count: int) -> List[Any]:
    """Placeholder row for a registration that could not be processed, sized to the header count."""
    source = reg if isinstance(reg, Mapping) else {}
    row: List[Any] = [
        index + 1,
        source.get("participant_name") or NOT_AVAILABLE,
        source.get("participant_email") or NOT_AVAILABLE,
    ]
    row.extend([ERROR_CELL] * (column_count - len(row) - 1))
    row.append(ERROR_NOTE)
    return row[:column_count]


def prepare_sheet_data(
    event: Optional[Mapping],
    registrations: Any,
    invalid_field_policy: str = INVALID_FIELD_DROP,
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
) -> SheetData:
    """
    Map (event, registrations) to the Registrations tab grid.

    Header order: core columns, custom field columns, payment columns (when the
    event requires payment or any registration carries payment data), Notes.

    Args:
        event: Event descriptor mapping
        registrations: List of registration mappings
        invalid_field_policy: How invalid custom field definitions are handled
        display_timezone: Zone used when rendering timestamps

    Raises:
        SheetDataError: event is missing or registrations is not a list
    """
    if not event or not isinstance(event, Mapping):
        raise SheetDataError("Event data is required")
    if not isinstance(registrations, (list, tuple)):
        raise SheetDataError(f"Registrations must be an array, got {type(registrations).__name__}")

    custom_columns = resolve_custom_columns(event, invalid_field_policy)
    include_payment = is_payment_required(event) or has_payment_info(registrations)
    headers = build_headers(custom_columns, include_payment)

    rows: List[List[Any]] = []
    for index, reg in enumerate(registrations):
        try:
            rows.append(
                build_registration_row(index, reg, event, custom_columns, include_payment, display_timezone)
            )
        except Exception as e:
            logger.warning(f"Error processing registration {index + 1}: {e}")
            rows.append(build_error_row(index, reg, len(headers)))

    logger.debug(f"Prepared sheet data: {len(headers)} columns, {len(rows)} rows")
    return SheetData(headers=headers, rows=rows)
