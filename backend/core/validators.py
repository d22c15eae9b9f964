"""Input validation for the sheets endpoints"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError
from sheets.sheets_email import validate_email


class CustomFieldDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    label: str
    type: str = "text"


class EventPayload(BaseModel):
    """Event descriptor sent by the frontend. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    title: str
    custom_fields: Optional[List[CustomFieldDefinition]] = None
    requires_payment: Optional[bool] = None
    payment_required: Optional[bool] = None
    payment_amount: Optional[Union[float, str]] = None
    participation_type: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must be a non-empty string")
        return value

    @field_validator("participation_type")
    @classmethod
    def known_participation_type(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ("solo", "team", "both"):
            raise ValueError("participation_type must be one of solo, team, both")
        return value


class RegistrationPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    participant_name: str
    participant_email: str
    participant_phone: Optional[str] = None
    participant_student_id: Optional[str] = None
    participant_id: Optional[str] = None
    registration_type: Optional[str] = "Individual"
    status: Optional[str] = "Confirmed"
    additional_info: Optional[Dict[str, Any]] = None

    @field_validator("participant_name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("participant_name must be a non-empty string")
        return value

    @field_validator("participant_email")
    @classmethod
    def email_looks_valid(cls, value: str) -> str:
        if not validate_email(value):
            raise ValueError("participant_email must be a valid email address")
        return value.strip()

    @field_validator("participant_phone", "participant_student_id", "participant_id", mode="before")
    @classmethod
    def numbers_as_text(cls, value: Any) -> Any:
        # Phone numbers and roll numbers often arrive as JSON numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class SheetRequest(BaseModel):
    """Body of POST /sheets/create and PUT /sheets/<id>/update."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event_data: EventPayload = Field(alias="eventData")
    registrations: List[RegistrationPayload]
    allow_empty: StrictBool = Field(default=False, alias="allowEmpty")


def _field_path(location: Tuple[Any, ...]) -> str:
    path = ""
    for part in location:
        if part == "eventData":
            part = "event"
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _format_errors(error: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {"field": _field_path(item["loc"]), "message": item["msg"]}
        for item in error.errors()
    ]


def validate_sheet_request(body: Any) -> Tuple[Optional[SheetRequest], List[Dict[str, str]]]:
    """
    Validate a sheets request body.

    Returns (model, []) on success or (None, [{field, message}, ...]) on
    failure. Never raises.
    """
    if not isinstance(body, Mapping):
        return None, [{"field": "body", "message": "Request body must be a JSON object"}]
    try:
        return SheetRequest.model_validate(dict(body)), []
    except PydanticValidationError as e:
        return None, _format_errors(e)


def check_custom_fields(event: Mapping) -> None:
    """
    Strict custom field check used before creating a spreadsheet.

    Raises:
        ValidationError: custom_fields is not a list, or an entry lacks a string id or label
    """
    definitions = event.get("custom_fields")
    if definitions is None:
        return
    if not isinstance(definitions, list):
        raise ValidationError(
            "Custom fields must be an array",
            details=[{"field": "event.custom_fields", "message": f"expected a list, got {type(definitions).__name__}"}],
        )

    problems = []
    for index, definition in enumerate(definitions):
        if not isinstance(definition, Mapping):
            problems.append({"field": f"event.custom_fields[{index}]", "message": "must be an object"})
            continue
        for key in ("id", "label"):
            if not isinstance(definition.get(key), str) or not definition.get(key):
                problems.append({
                    "field": f"event.custom_fields[{index}].{key}",
                    "message": f"{key} is required and must be a string",
                })
    if problems:
        raise ValidationError("Invalid custom field definitions", details=problems)


def diagnose_event(event: Any, registrations: Optional[Any] = None) -> List[str]:
    """Collect every structural problem with an event (and optionally its registrations)."""
    issues: List[str] = []
    if not isinstance(event, Mapping):
        return ["Event data must be an object"]

    if event.get("id") in (None, ""):
        issues.append("Event is missing an id")
    if not isinstance(event.get("title"), str) or not event.get("title", "").strip():
        issues.append("Event is missing a title")

    definitions = event.get("custom_fields")
    if definitions is not None:
        if not isinstance(definitions, list):
            issues.append(f"custom_fields is not an array (got {type(definitions).__name__})")
        else:
            for index, definition in enumerate(definitions):
                if not isinstance(definition, Mapping):
                    issues.append(f"Custom field {index + 1} is not an object")
                    continue
                if not definition.get("id"):
                    issues.append(f"Custom field {index + 1} is missing an id")
                elif not isinstance(definition.get("id"), str):
                    issues.append(f"Custom field {index + 1} id is not a string")
                if not definition.get("label"):
                    issues.append(f"Custom field {index + 1} is missing a label")
                elif not isinstance(definition.get("label"), str):
                    issues.append(f"Custom field {index + 1} label is not a string")

    if registrations is not None:
        if not isinstance(registrations, list):
            issues.append(f"Registrations is not an array (got {type(registrations).__name__})")
        else:
            for index, reg in enumerate(registrations):
                if not isinstance(reg, Mapping):
                    issues.append(f"Registration {index + 1} is not an object")
                    continue
                if not reg.get("participant_name"):
                    issues.append(f"Registration {index + 1} is missing participant_name")
                if not validate_email(reg.get("participant_email")):
                    issues.append(f"Registration {index + 1} has an invalid participant_email")
                info = reg.get("additional_info")
                if info is not None and not isinstance(info, Mapping):
                    issues.append(f"Registration {index + 1} additional_info is not an object")
                elif isinstance(info, Mapping) and info.get("custom_fields") is not None \
                        and not isinstance(info.get("custom_fields"), Mapping):
                    issues.append(f"Registration {index + 1} custom_fields is not an object")

    return issues
