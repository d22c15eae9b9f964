"""
Team Members tab helpers.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence

from sheets.sheet_data import NOT_AVAILABLE
from sheets.sheets_dates import DEFAULT_DISPLAY_TIMEZONE, format_generated_at

TEAM_HEADERS = ["Team #", "Team Name", "Role", "Member Name", "Scholar ID", "Department", "Year"]
TEAM_HEADER_ROW_INDEX = 4

ROLE_LEAD = "Team Lead"
ROLE_MEMBER = "Member"
ROLE_INDIVIDUAL = "Individual"


@dataclass(frozen=True)
class TeamRosterRow:
    """Kind of each written roster row, used to style it."""

    role: str  # ROLE_LEAD, ROLE_MEMBER, ROLE_INDIVIDUAL or "" for a separator
    member_index: int = 0


def team_members(reg: Any) -> List[Mapping]:
    if not isinstance(reg, Mapping):
        return []
    info = reg.get("additional_info")
    if not isinstance(info, Mapping):
        return []
    members = info.get("team_members")
    if not isinstance(members, (list, tuple)):
        return []
    return [member for member in members if isinstance(member, Mapping)]


def has_team_registrations(registrations: Sequence[Any]) -> bool:
    return any(team_members(reg) for reg in registrations)


def supports_team_registration(event: Mapping) -> bool:
    return event.get("participation_type") in ("team", "both")


def needs_team_tab(event: Mapping, registrations: Sequence[Any]) -> bool:
    """The Team Members tab exists when teams are allowed or any registration brought a team."""
    return supports_team_registration(event) or has_team_registrations(registrations)


def _info(reg: Mapping) -> Mapping:
    info = reg.get("additional_info")
    return info if isinstance(info, Mapping) else {}


def _lead_row(team_number: int, team_name: str, role: str, reg: Mapping) -> List[Any]:
    info = _info(reg)
    return [
        team_number,
        team_name,
        role,
        reg.get("participant_name") or NOT_AVAILABLE,
        reg.get("participant_id") or reg.get("participant_student_id") or NOT_AVAILABLE,
        info.get("department") or reg.get("participant_department") or NOT_AVAILABLE,
        info.get("year") or reg.get("participant_year") or NOT_AVAILABLE,
    ]


def build_team_roster(event: Mapping, registrations: Sequence[Any]) -> List[TeamRosterRow]:
    """Describe the roster body row by row (leads, members, individuals, separators)."""
    layout: List[TeamRosterRow] = []
    include_individuals = event.get("participation_type") == "both"
    for reg in registrations:
        members = team_members(reg)
        if members:
            layout.append(TeamRosterRow(ROLE_LEAD))
            layout.extend(TeamRosterRow(ROLE_MEMBER, i) for i in range(len(members)))
            layout.append(TeamRosterRow(""))
        elif include_individuals and isinstance(reg, Mapping):
            layout.append(TeamRosterRow(ROLE_INDIVIDUAL))
            layout.append(TeamRosterRow(""))
    return layout


def build_team_members_grid(
    event: Mapping,
    registrations: Sequence[Any],
    generated_at: Optional[datetime] = None,
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
) -> List[List[Any]]:
    """
    Build the Team Members tab: a 4-row banner, the header row, then one block
    per team (lead, members, blank separator). For "both" events, solo
    registrations appear as single-person "Individual" blocks.
    """
    grid: List[List[Any]] = [
        ["TEAM MEMBERS DETAILS"],
        [f"Event: {event.get('title', '')}"],
        [f"Generated: {format_generated_at(generated_at, display_timezone)}"],
        [],
        list(TEAM_HEADERS),
    ]
    separator = [""] * len(TEAM_HEADERS)
    include_individuals = event.get("participation_type") == "both"

    team_number = 1
    for reg in registrations:
        members = team_members(reg)
        if members:
            team_name = _info(reg).get("team_name") or f"Team {reg.get('participant_name')}"
            grid.append(_lead_row(team_number, team_name, ROLE_LEAD, reg))
            for member in members:
                grid.append([
                    team_number,
                    team_name,
                    ROLE_MEMBER,
                    member.get("name") or NOT_AVAILABLE,
                    member.get("rollNumber") or member.get("scholar_id") or NOT_AVAILABLE,
                    member.get("department") or NOT_AVAILABLE,
                    member.get("year") or NOT_AVAILABLE,
                ])
            grid.append(list(separator))
            team_number += 1
        elif include_individuals and isinstance(reg, Mapping):
            name = f"Individual - {reg.get('participant_name')}"
            grid.append(_lead_row(team_number, name, ROLE_INDIVIDUAL, reg))
            grid.append(list(separator))
            team_number += 1

    return grid
