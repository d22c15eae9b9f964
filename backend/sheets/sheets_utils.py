"""
Public facade for the spreadsheet data helpers.

Re-exports the pure builders from the smaller focused modules so callers
(routes, the diagnostics script) have one import point.
"""

from gspread.utils import rowcol_to_a1

from sheets.sheet_data import SheetData, SheetDataError, prepare_sheet_data
from sheets.sheets_dashboard import build_dashboard, compute_dashboard_stats
from sheets.sheets_dates import format_display_datetime
from sheets.sheets_email import validate_email
from sheets.sheets_team import build_team_members_grid, needs_team_tab

SHEETS_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit#gid=0"


def shareable_link(spreadsheet_id: str) -> str:
    """Deterministic link to the first tab of a spreadsheet."""
    return SHEETS_URL_TEMPLATE.format(spreadsheet_id=spreadsheet_id)


def column_letter(column_number: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    return rowcol_to_a1(1, column_number).rstrip("0123456789")


__all__ = [
    "SheetData",
    "SheetDataError",
    "prepare_sheet_data",
    "build_dashboard",
    "compute_dashboard_stats",
    "build_team_members_grid",
    "needs_team_tab",
    "format_display_datetime",
    "validate_email",
    "shareable_link",
    "column_letter",
]
