"""
Sheets API batchUpdate request builders.

Pure functions only: each returns the list of request dicts that styles one
tab. Nothing here talks to Google.
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from sheets.sheets_team import ROLE_INDIVIDUAL, ROLE_LEAD, ROLE_MEMBER, TEAM_HEADERS, TeamRosterRow

# Rows above the registration data: title, blank, header
REGISTRATIONS_HEADER_ROWS = 3
TEAM_BANNER_ROWS = 5
DASHBOARD_TITLE_COLUMNS = 5

WHITE = {"red": 1, "green": 1, "blue": 1}
BLACK = {"red": 0, "green": 0, "blue": 0}
BLUE = {"red": 0.267, "green": 0.447, "blue": 0.769}  # #4472C4
HEADER_BLUE = {"red": 0.357, "green": 0.608, "blue": 0.835}  # #5B9BD5
ORANGE = {"red": 0.929, "green": 0.490, "blue": 0.192}  # #ED7D31
TEAM_GREEN = {"red": 0.439, "green": 0.678, "blue": 0.278}  # #70AD47
BAND_GREY = {"red": 0.949, "green": 0.949, "blue": 0.949}  # #F2F2F2
LEAD_BLUE = {"red": 0.847, "green": 0.918, "blue": 0.988}
MEMBER_GREEN = {"red": 0.949, "green": 0.976, "blue": 0.929}
INDIVIDUAL_ORANGE = {"red": 0.996, "green": 0.929, "blue": 0.847}
LINK_GREEN = {"red": 0.0, "green": 0.6, "blue": 0.0}
DARK_GREY = {"red": 0.2, "green": 0.2, "blue": 0.2}
MID_GREY = {"red": 0.6, "green": 0.6, "blue": 0.6}
LIGHT_GREY = {"red": 0.8, "green": 0.8, "blue": 0.8}

REGISTRATION_COLUMN_WIDTHS = [80, 200, 250, 150, 120, 150, 80, 120, 130, 130, 180, 180]
TEAM_COLUMN_WIDTHS = [80, 220, 120, 200, 120, 120, 80]
# S.No., Student ID, Year, Type, Registration Status, Attendance Status
CENTERED_REGISTRATION_COLUMNS = [0, 4, 6, 7, 8, 9]

PAYMENT_LINK_LABEL = "View Payment"


def grid_range(sheet_id: int, start_row: int, end_row: int, start_col: int, end_col: int) -> Dict[str, int]:
    return {
        "sheetId": sheet_id,
        "startRowIndex": start_row,
        "endRowIndex": end_row,
        "startColumnIndex": start_col,
        "endColumnIndex": end_col,
    }


def _borders(color: Dict[str, float]) -> Dict[str, Any]:
    side = {"style": "SOLID", "width": 1, "color": color}
    return {"top": side, "bottom": side, "left": side, "right": side}


def freeze_rows(sheet_id: int, count: int) -> Dict[str, Any]:
    return {
        "updateSheetProperties": {
            "properties": {"sheetId": sheet_id, "gridProperties": {"frozenRowCount": count}},
            "fields": "gridProperties.frozenRowCount",
        }
    }


def title_row(sheet_id: int, column_count: int, background: Dict[str, float], font_size: int = 16) -> List[Dict[str, Any]]:
    """Style and merge the first row across the used columns."""
    title_range = grid_range(sheet_id, 0, 1, 0, column_count)
    return [
        {"unmergeCells": {"range": title_range}},
        {
            "repeatCell": {
                "range": title_range,
                "cell": {
                    "userEnteredFormat": {
                        "backgroundColor": background,
                        "textFormat": {
                            "foregroundColor": WHITE,
                            "bold": True,
                            "fontFamily": "Arial",
                            "fontSize": font_size,
                        },
                        "horizontalAlignment": "CENTER",
                        "verticalAlignment": "MIDDLE",
                    }
                },
                "fields": "userEnteredFormat(backgroundColor,textFormat,horizontalAlignment,verticalAlignment)",
            }
        },
        {"mergeCells": {"range": title_range, "mergeType": "MERGE_ALL"}},
    ]


def header_row(sheet_id: int, row_index: int, column_count: int, background: Dict[str, float]) -> Dict[str, Any]:
    return {
        "repeatCell": {
            "range": grid_range(sheet_id, row_index, row_index + 1, 0, column_count),
            "cell": {
                "userEnteredFormat": {
                    "backgroundColor": background,
                    "textFormat": {
                        "foregroundColor": WHITE,
                        "bold": True,
                        "fontFamily": "Arial",
                        "fontSize": 11,
                    },
                    "horizontalAlignment": "CENTER",
                    "verticalAlignment": "MIDDLE",
                    "borders": _borders(BLACK),
                }
            },
            "fields": "userEnteredFormat(backgroundColor,textFormat,horizontalAlignment,verticalAlignment,borders)",
        }
    }


def column_widths(sheet_id: int, widths: Sequence[int], column_count: Optional[int] = None) -> List[Dict[str, Any]]:
    limit = len(widths) if column_count is None else min(len(widths), column_count)
    return [
        {
            "updateDimensionProperties": {
                "range": {"sheetId": sheet_id, "dimension": "COLUMNS", "startIndex": index, "endIndex": index + 1},
                "properties": {"pixelSize": widths[index]},
                "fields": "pixelSize",
            }
        }
        for index in range(limit)
    ]


def _banded_rows(sheet_id: int, first_row: int, row_count: int, column_count: int) -> List[Dict[str, Any]]:
    """Alternate white / light grey backgrounds over the data rows."""
    requests = []
    for offset in range(row_count):
        requests.append({
            "repeatCell": {
                "range": grid_range(sheet_id, first_row + offset, first_row + offset + 1, 0, column_count),
                "cell": {
                    "userEnteredFormat": {
                        "backgroundColor": WHITE if offset % 2 == 0 else BAND_GREY,
                        "textFormat": {"fontFamily": "Arial", "fontSize": 10},
                        "borders": _borders(LIGHT_GREY),
                    }
                },
                "fields": "userEnteredFormat(backgroundColor,textFormat,borders)",
            }
        })
    return requests


def hyperlink_formula(url: str, label: str = PAYMENT_LINK_LABEL) -> str:
    escaped = url.replace('"', '""')
    return f'=HYPERLINK("{escaped}", "{label}")'


def payment_link_requests(
    sheet_id: int,
    headers: Sequence[str],
    registrations: Sequence[Any],
    payment_required: bool,
) -> List[Dict[str, Any]]:
    """Turn http(s) payment screenshot URLs into green "View Payment" links."""
    if not payment_required or "Payment Screenshot" not in headers:
        return []
    column = list(headers).index("Payment Screenshot")

    requests = []
    for offset, reg in enumerate(registrations):
        url = reg.get("payment_screenshot_url") if isinstance(reg, Mapping) else None
        if not isinstance(url, str) or not url.startswith("http"):
            continue
        row = REGISTRATIONS_HEADER_ROWS + offset
        requests.append({
            "updateCells": {
                "range": grid_range(sheet_id, row, row + 1, column, column + 1),
                "rows": [{
                    "values": [{
                        "userEnteredValue": {"formulaValue": hyperlink_formula(url)},
                        "userEnteredFormat": {"textFormat": {"foregroundColor": LINK_GREEN, "underline": True}},
                    }]
                }],
                "fields": "userEnteredValue,userEnteredFormat.textFormat",
            }
        })
    return requests


def registrations_format_requests(
    sheet_id: int,
    headers: Sequence[str],
    registrations: Sequence[Any],
    payment_required: bool = False,
) -> List[Dict[str, Any]]:
    """
    Style the Registrations tab: frozen title/header rows, merged title, header
    colours, banded data rows, column widths, centred status columns and
    payment proof links.

    Args:
        sheet_id: Numeric id of the Registrations tab
        headers: Header row as written
        registrations: Registrations in row order
        payment_required: Event flag; links are only added for paid events
    """
    column_count = len(headers)
    data_rows = len(registrations)
    last_row = REGISTRATIONS_HEADER_ROWS + data_rows

    requests: List[Dict[str, Any]] = [freeze_rows(sheet_id, REGISTRATIONS_HEADER_ROWS)]
    requests.extend(title_row(sheet_id, column_count, BLUE))
    requests.append(header_row(sheet_id, REGISTRATIONS_HEADER_ROWS - 1, column_count, HEADER_BLUE))
    requests.extend(_banded_rows(sheet_id, REGISTRATIONS_HEADER_ROWS, data_rows, column_count))
    requests.extend(column_widths(sheet_id, REGISTRATION_COLUMN_WIDTHS, column_count))

    if data_rows:
        for column in CENTERED_REGISTRATION_COLUMNS:
            if column >= column_count:
                continue
            requests.append({
                "repeatCell": {
                    "range": grid_range(sheet_id, REGISTRATIONS_HEADER_ROWS, last_row, column, column + 1),
                    "cell": {"userEnteredFormat": {"horizontalAlignment": "CENTER", "verticalAlignment": "MIDDLE"}},
                    "fields": "userEnteredFormat(horizontalAlignment,verticalAlignment)",
                }
            })

    requests.extend(payment_link_requests(sheet_id, headers, registrations, payment_required))
    return requests


def empty_sheet_format_requests(sheet_id: int, column_count: int) -> List[Dict[str, Any]]:
    """Minimal styling for a scaffold sheet with no registrations yet."""
    requests: List[Dict[str, Any]] = [freeze_rows(sheet_id, REGISTRATIONS_HEADER_ROWS)]
    requests.extend(title_row(sheet_id, column_count, BLUE))
    requests.append(header_row(sheet_id, REGISTRATIONS_HEADER_ROWS - 1, column_count, HEADER_BLUE))
    requests.extend(column_widths(sheet_id, REGISTRATION_COLUMN_WIDTHS, column_count))
    return requests


def _roster_row_style(role: str, member_index: int) -> Optional[Dict[str, Any]]:
    if role == ROLE_LEAD:
        return {
            "backgroundColor": LEAD_BLUE,
            "textFormat": {"bold": True, "fontFamily": "Arial", "fontSize": 10, "foregroundColor": BLUE},
            "borders": _borders(MID_GREY),
        }
    if role == ROLE_MEMBER:
        return {
            "backgroundColor": MEMBER_GREEN if member_index % 2 == 0 else WHITE,
            "textFormat": {"fontFamily": "Arial", "fontSize": 10, "foregroundColor": DARK_GREY},
            "borders": _borders(LIGHT_GREY),
        }
    if role == ROLE_INDIVIDUAL:
        return {
            "backgroundColor": INDIVIDUAL_ORANGE,
            "textFormat": {"bold": True, "fontFamily": "Arial", "fontSize": 10, "foregroundColor": ORANGE},
            "borders": _borders(MID_GREY),
        }
    return None


def team_members_format_requests(sheet_id: int, layout: Sequence[TeamRosterRow]) -> List[Dict[str, Any]]:
    """Style the Team Members tab; layout comes from sheets_team.build_team_roster()."""
    column_count = len(TEAM_HEADERS)
    requests: List[Dict[str, Any]] = [freeze_rows(sheet_id, TEAM_BANNER_ROWS)]
    requests.extend(title_row(sheet_id, column_count, BLUE))
    requests.append(header_row(sheet_id, TEAM_BANNER_ROWS - 1, column_count, TEAM_GREEN))
    requests.extend(column_widths(sheet_id, TEAM_COLUMN_WIDTHS))

    for offset, entry in enumerate(layout):
        style = _roster_row_style(entry.role, entry.member_index)
        if style is None:
            continue
        row = TEAM_BANNER_ROWS + offset
        style.update({"horizontalAlignment": "LEFT", "verticalAlignment": "MIDDLE"})
        requests.append({
            "repeatCell": {
                "range": grid_range(sheet_id, row, row + 1, 0, column_count),
                "cell": {"userEnteredFormat": style},
                "fields": "userEnteredFormat(backgroundColor,textFormat,horizontalAlignment,verticalAlignment,borders)",
            }
        })
    return requests


def dashboard_format_requests(sheet_id: int) -> List[Dict[str, Any]]:
    return title_row(sheet_id, DASHBOARD_TITLE_COLUMNS, ORANGE)
