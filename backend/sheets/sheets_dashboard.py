"""
Dashboard tab aggregation.

Pure functions: registrations in, label/value rows out. Team members are
counted as individual participants in the department and year breakdowns.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from sheets.sheets_dates import DEFAULT_DISPLAY_TIMEZONE, format_generated_at
from sheets.sheets_team import team_members

UNKNOWN = "Unknown"


@dataclass
class DashboardStats:
    total_registrations: int = 0
    total_team_members: int = 0
    attended: int = 0
    department_counts: List[Tuple[str, int]] = field(default_factory=list)
    year_counts: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def total_participants(self) -> int:
        return self.total_registrations + self.total_team_members

    @property
    def not_attended(self) -> int:
        return self.total_registrations - self.attended

    @property
    def attendance_rate(self) -> str:
        if self.total_registrations == 0:
            return "0.0"
        return f"{self.attended / self.total_registrations * 100:.1f}"


def _label(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def _participants_frame(registrations: Sequence[Any]) -> pd.DataFrame:
    records: List[Dict[str, str]] = []
    for reg in registrations:
        reg = reg if isinstance(reg, Mapping) else {}
        info = reg.get("additional_info") if isinstance(reg.get("additional_info"), Mapping) else {}
        records.append({
            "department": _label(info.get("department") or reg.get("participant_department")),
            "year": _label(info.get("year") or reg.get("participant_year")),
        })
        for member in team_members(reg):
            records.append({
                "department": _label(member.get("department")),
                "year": _label(member.get("year")),
            })
    return pd.DataFrame.from_records(records, columns=["department", "year"])


def _counts(frame: pd.DataFrame, column: str) -> List[Tuple[str, int]]:
    # sort=False keeps first-seen order
    sizes = frame.groupby(column, sort=False).size()
    return [(str(label), int(count)) for label, count in sizes.items()]


def compute_dashboard_stats(registrations: Sequence[Any]) -> DashboardStats:
    participants = _participants_frame(registrations)
    attended = sum(
        1 for reg in registrations
        if isinstance(reg, Mapping) and reg.get("attendance_status") == "attended"
    )
    return DashboardStats(
        total_registrations=len(registrations),
        total_team_members=sum(len(team_members(reg)) for reg in registrations),
        attended=attended,
        department_counts=_counts(participants, "department"),
        year_counts=_counts(participants, "year"),
    )


def _percentage(count: int, total: int) -> str:
    if total == 0:
        return "0.0%"
    return f"{count / total * 100:.1f}%"


def build_dashboard(
    event: Mapping,
    registrations: Sequence[Any],
    generated_at: Optional[datetime] = None,
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
) -> List[List[Any]]:
    """
    Build the Dashboard tab rows, ready for a single values write.

    Args:
        event: Event descriptor (only the title is used)
        registrations: Registration payloads
        generated_at: Timestamp printed in the banner (defaults to now)
        display_timezone: Zone used for the banner timestamp
    """
    stats = compute_dashboard_stats(registrations)
    total = stats.total_participants

    rows: List[List[Any]] = [
        ["EVENT REGISTRATION DASHBOARD"],
        [f"Event: {event.get('title', '')}"],
        [f"Generated: {format_generated_at(generated_at, display_timezone)}"],
        [],
        ["PARTICIPANT SUMMARY"],
        [],
        ["Total Participants", total],
        ["Total Registrations", stats.total_registrations],
        ["Total Team Members", stats.total_team_members],
        [],
        ["ATTENDANCE SUMMARY"],
        [],
        ["Total Attended", stats.attended],
        ["Not Attended", stats.not_attended],
        ["Attendance Rate", f"{stats.attendance_rate}%"],
        [],
        ["DEPARTMENT DISTRIBUTION"],
        [],
        ["Department", "Count", "Percentage"],
    ]
    rows.extend([dept, count, _percentage(count, total)] for dept, count in stats.department_counts)

    rows.extend([[], ["YEAR DISTRIBUTION"], [], ["Year", "Count", "Percentage"]])
    rows.extend([year, count, _percentage(count, total)] for year, count in stats.year_counts)

    return rows
