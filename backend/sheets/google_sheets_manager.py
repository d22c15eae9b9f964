"""
Google Sheets Manager for exporting event registrations.

Sequences the remote calls that create, populate, format and share one
spreadsheet per event. Fatal steps (input checks, data preparation, creating
or rewriting the sheet) raise errors from core.errors; cosmetic and secondary
steps are recorded as StepOutcome entries and never abort the export.
"""
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.errors import (
    SheetsBackendError,
    ValidationError,
    classify_upstream_error,
)
from core.logger import logger
from core.validators import check_custom_fields
from sheets.sheet_data import SheetData, SheetDataError, is_payment_required, prepare_sheet_data
from sheets.sheets_dashboard import build_dashboard
from sheets.sheets_dates import DEFAULT_DISPLAY_TIMEZONE
from sheets.sheets_formatting import (
    BLUE,
    ORANGE,
    dashboard_format_requests,
    empty_sheet_format_requests,
    registrations_format_requests,
    team_members_format_requests,
)
from sheets.sheets_team import (
    build_team_members_grid,
    build_team_roster,
    has_team_registrations,
    needs_team_tab,
)
from sheets.sheets_utils import column_letter, shareable_link

TAB_REGISTRATIONS = 'Registrations'
TAB_TEAM_MEMBERS = 'Team Members'
TAB_DASHBOARD = 'Dashboard'

# Title row and blank row sit above the header row
DATA_START_ROW = 4


@dataclass
class StepOutcome:
    step: str
    succeeded: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'step': self.step, 'succeeded': self.succeeded, 'error': self.error}


@dataclass
class SheetResult:
    spreadsheet_id: str
    title: str
    row_count: int
    steps: List[StepOutcome] = field(default_factory=list)

    @property
    def shareable_link(self) -> str:
        return shareable_link(self.spreadsheet_id)

    @property
    def failed_steps(self) -> List[StepOutcome]:
        return [step for step in self.steps if not step.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'spreadsheetId': self.spreadsheet_id,
            'shareableLink': self.shareable_link,
            'title': self.title,
            'rowCount': self.row_count,
            'steps': [step.to_dict() for step in self.steps],
        }


def spreadsheet_title(event: Mapping) -> str:
    return f"{event.get('title')} - Event Registrations"


def registrations_grid(event: Mapping, sheet_data: SheetData) -> List[List[Any]]:
    """Title row, blank row, header row, then the data rows."""
    return [[spreadsheet_title(event)], [], list(sheet_data.headers)] + [list(row) for row in sheet_data.rows]


class GoogleSheetsManager:
    """Creates and maintains event registration spreadsheets."""

    def __init__(
        self,
        client,
        display_timezone: Optional[str] = None,
        locale: Optional[str] = None,
        share_role: Optional[str] = None,
        invalid_field_policy: str = 'drop',
    ):
        """
        Args:
            client: GoogleApiClient (or any object with the same methods)
            display_timezone: Spreadsheet time zone, also used for date cells
            locale: Spreadsheet locale
            share_role: Drive role granted to "anyone with the link"
            invalid_field_policy: "drop" or "placeholder" for bad custom fields
        """
        self.client = client
        self.display_timezone = display_timezone or os.getenv('SHEETS_TIMEZONE', DEFAULT_DISPLAY_TIMEZONE)
        self.locale = locale or os.getenv('SHEETS_LOCALE', 'en_US')
        self.share_role = share_role or os.getenv('SHEETS_SHARE_ROLE', 'writer')
        self.invalid_field_policy = invalid_field_policy

    def _run_step(self, steps: List[StepOutcome], name: str, func: Callable[[], Any]) -> bool:
        """Run a non-fatal step, recording its outcome instead of raising."""
        try:
            func()
        except Exception as e:
            logger.warning(f"Step '{name}' failed: {str(e)}")
            steps.append(StepOutcome(name, False, str(e)))
            return False
        steps.append(StepOutcome(name, True))
        return True

    def _validate_structure(self, event: Any, registrations: Any, allow_empty: bool) -> None:
        if not event or not isinstance(event, Mapping):
            raise ValidationError("Event data is required",
                                  details=[{'field': 'event', 'message': 'Event data is required'}])
        if not event.get('title'):
            raise ValidationError("Event title is required but was not provided",
                                  details=[{'field': 'event.title', 'message': 'Event title is required'}])
        if not isinstance(registrations, list):
            raise ValidationError(
                f"Registrations must be an array, got {type(registrations).__name__}",
                details=[{'field': 'registrations', 'message': 'Registrations must be an array'}],
            )
        if not registrations and not allow_empty:
            raise ValidationError("No registrations provided",
                                  details=[{'field': 'registrations', 'message': 'At least one registration is required'}])

    def _prepare(self, event: Mapping, registrations: List[Any]) -> SheetData:
        try:
            sheet_data = prepare_sheet_data(
                event,
                registrations,
                invalid_field_policy=self.invalid_field_policy,
                display_timezone=self.display_timezone,
            )
        except SheetDataError as e:
            raise ValidationError(f"Failed to prepare sheet data: {str(e)}")
        logger.info(
            f"Sheet data prepared successfully: {sheet_data.column_count} columns, {len(sheet_data.rows)} rows"
        )
        return sheet_data

    def _tabs(self, event: Mapping, registrations: List[Any], column_count: int) -> List[Dict[str, Any]]:
        tabs = [
            {
                'title': TAB_REGISTRATIONS,
                'tab_color': BLUE,
                'row_count': max(1000, len(registrations) + 50),
                'column_count': max(20, column_count),
            },
            {'title': TAB_DASHBOARD, 'tab_color': ORANGE, 'row_count': 100, 'column_count': 10},
        ]
        if needs_team_tab(event, registrations):
            tabs.insert(1, {'title': TAB_TEAM_MEMBERS, 'tab_color': BLUE, 'row_count': 1000, 'column_count': 15})
        return tabs

    def _format_registrations(self, spreadsheet_id: str, sheet_id: int, event: Mapping,
                              sheet_data: SheetData, registrations: List[Any]) -> None:
        requests = registrations_format_requests(
            sheet_id,
            sheet_data.headers,
            registrations,
            payment_required=is_payment_required(event),
        )
        self.client.batch_update(spreadsheet_id, requests)

    def _write_team_members(self, spreadsheet_id: str, sheet_id: int, event: Mapping,
                            registrations: List[Any], generated_at: Optional[datetime]) -> None:
        grid = build_team_members_grid(event, registrations, generated_at, self.display_timezone)
        self.client.write_values(spreadsheet_id, f'{TAB_TEAM_MEMBERS}!A1', grid)
        self.client.batch_update(
            spreadsheet_id,
            team_members_format_requests(sheet_id, build_team_roster(event, registrations)),
        )

    def _write_dashboard(self, spreadsheet_id: str, event: Mapping, registrations: List[Any],
                         generated_at: Optional[datetime]) -> None:
        rows = build_dashboard(event, registrations, generated_at, self.display_timezone)
        self.client.write_values(spreadsheet_id, f'{TAB_DASHBOARD}!A1', rows)

    def create_event_sheet(
        self,
        event: Mapping,
        registrations: List[Any],
        allow_empty: bool = False,
        generated_at: Optional[datetime] = None,
    ) -> SheetResult:
        """
        Create, populate, format and share a spreadsheet for an event.

        Args:
            event: Event descriptor
            registrations: Registration payloads
            allow_empty: Accept an empty registration list (scaffold sheet)
            generated_at: Timestamp printed on the Team Members and Dashboard tabs

        Raises:
            ValidationError: bad input or data preparation failure
            SheetsBackendError: the spreadsheet could not be created
        """
        self._validate_structure(event, registrations, allow_empty)
        check_custom_fields(event)
        sheet_data = self._prepare(event, registrations)

        title = spreadsheet_title(event)
        logger.info(f"Creating Google Sheet for event: {event.get('title')} ({len(registrations)} registrations)")
        try:
            created = self.client.create_spreadsheet(
                title,
                self._tabs(event, registrations, sheet_data.column_count),
                locale=self.locale,
                time_zone=self.display_timezone,
            )
        except Exception as e:
            logger.error(f"Error creating spreadsheet: {str(e)}", exc_info=True)
            raise classify_upstream_error(e, 'Create spreadsheet')

        spreadsheet_id = created['spreadsheet_id']
        sheet_ids = created['sheet_ids']
        logger.info(f"Created spreadsheet with ID: {spreadsheet_id}")

        steps: List[StepOutcome] = []
        registrations_sheet_id = sheet_ids.get(TAB_REGISTRATIONS, 0)

        self._run_step(
            steps,
            'populate_registrations',
            lambda: self.client.write_values(
                spreadsheet_id,
                f'{TAB_REGISTRATIONS}!A1',
                registrations_grid(event, sheet_data),
                value_input_option='USER_ENTERED',
            ),
        )

        formatted = self._run_step(
            steps,
            'format_registrations',
            lambda: self._format_registrations(
                spreadsheet_id, registrations_sheet_id, event, sheet_data, registrations
            ),
        )
        if not formatted and not registrations:
            self._run_step(
                steps,
                'format_registrations_basic',
                lambda: self.client.batch_update(
                    spreadsheet_id,
                    empty_sheet_format_requests(registrations_sheet_id, sheet_data.column_count),
                ),
            )

        if TAB_TEAM_MEMBERS in sheet_ids:
            self._run_step(
                steps,
                'populate_team_members',
                lambda: self._write_team_members(
                    spreadsheet_id, sheet_ids[TAB_TEAM_MEMBERS], event, registrations, generated_at
                ),
            )

        if TAB_DASHBOARD in sheet_ids:
            self._run_step(
                steps,
                'populate_dashboard',
                lambda: self._write_dashboard(spreadsheet_id, event, registrations, generated_at),
            )
            self._run_step(
                steps,
                'format_dashboard',
                lambda: self.client.batch_update(spreadsheet_id, dashboard_format_requests(sheet_ids[TAB_DASHBOARD])),
            )

        self._run_step(steps, 'share', lambda: self.client.share(spreadsheet_id, role=self.share_role))

        result = SheetResult(spreadsheet_id, title, len(registrations), steps)
        if result.failed_steps:
            logger.warning(
                f"Spreadsheet {spreadsheet_id} created with {len(result.failed_steps)} failed step(s): "
                f"{', '.join(step.step for step in result.failed_steps)}"
            )
        else:
            logger.info(f"Spreadsheet {spreadsheet_id} created and shared")
        return result

    def update_event_sheet(
        self,
        spreadsheet_id: str,
        event: Mapping,
        registrations: List[Any],
        generated_at: Optional[datetime] = None,
    ) -> SheetResult:
        """
        Rewrite the registrations of an existing spreadsheet.

        The title, blank and header rows are rewritten in place; rows from
        DATA_START_ROW down are cleared first so removed registrations vanish.
        """
        if not spreadsheet_id:
            raise ValidationError("Spreadsheet ID is required",
                                  details=[{'field': 'spreadsheetId', 'message': 'Spreadsheet ID is required'}])
        self._validate_structure(event, registrations, allow_empty=True)
        sheet_data = self._prepare(event, registrations)

        logger.info(f"Updating spreadsheet {spreadsheet_id} with {len(registrations)} registrations")
        try:
            existing_width = self.client.get_column_counts(spreadsheet_id).get(TAB_REGISTRATIONS, 0)
            last_column = column_letter(max(sheet_data.column_count, existing_width, 26))
            self.client.clear_values(spreadsheet_id, f'{TAB_REGISTRATIONS}!A{DATA_START_ROW}:{last_column}')
            if existing_width > sheet_data.column_count:
                header_row = DATA_START_ROW - 1
                self.client.clear_values(
                    spreadsheet_id,
                    f'{TAB_REGISTRATIONS}!{column_letter(sheet_data.column_count + 1)}{header_row}:'
                    f'{last_column}{header_row}',
                )
            self.client.write_values(
                spreadsheet_id,
                f'{TAB_REGISTRATIONS}!A1',
                registrations_grid(event, sheet_data),
                value_input_option='USER_ENTERED',
            )
        except SheetsBackendError:
            raise
        except Exception as e:
            logger.error(f"Error updating spreadsheet {spreadsheet_id}: {str(e)}", exc_info=True)
            raise classify_upstream_error(e, 'Update spreadsheet')

        steps: List[StepOutcome] = []
        sheet_ids: Dict[str, int] = {}

        def load_sheet_ids():
            sheet_ids.update(self.client.get_sheet_ids(spreadsheet_id))

        if self._run_step(steps, 'read_tabs', load_sheet_ids):
            if TAB_REGISTRATIONS in sheet_ids:
                self._run_step(
                    steps,
                    'format_registrations',
                    lambda: self._format_registrations(
                        spreadsheet_id, sheet_ids[TAB_REGISTRATIONS], event, sheet_data, registrations
                    ),
                )
            if TAB_TEAM_MEMBERS in sheet_ids and has_team_registrations(registrations):
                def refresh_team_members():
                    self.client.clear_values(spreadsheet_id, f'{TAB_TEAM_MEMBERS}!A1:Z')
                    self._write_team_members(
                        spreadsheet_id, sheet_ids[TAB_TEAM_MEMBERS], event, registrations, generated_at
                    )

                self._run_step(steps, 'refresh_team_members', refresh_team_members)
            if TAB_DASHBOARD in sheet_ids:
                def refresh_dashboard():
                    self.client.clear_values(spreadsheet_id, f'{TAB_DASHBOARD}!A1:Z')
                    self._write_dashboard(spreadsheet_id, event, registrations, generated_at)

                self._run_step(steps, 'refresh_dashboard', refresh_dashboard)

        logger.info(f"Updated spreadsheet {spreadsheet_id}")
        return SheetResult(spreadsheet_id, spreadsheet_title(event), len(registrations), steps)

    def get_sheet_info(self, spreadsheet_id: str) -> Dict[str, Any]:
        """Drive metadata of a spreadsheet."""
        try:
            info = self.client.get_file_info(spreadsheet_id)
        except Exception as e:
            logger.error(f"Error getting sheet info for {spreadsheet_id}: {str(e)}", exc_info=True)
            raise classify_upstream_error(e, 'Get sheet info')
        return {
            'spreadsheetId': info.get('id', spreadsheet_id),
            'title': info.get('name'),
            'shareableLink': shareable_link(spreadsheet_id),
            'createdTime': info.get('createdTime'),
            'lastModified': info.get('modifiedTime'),
        }

    def delete_sheet(self, spreadsheet_id: str) -> Dict[str, str]:
        try:
            self.client.delete_file(spreadsheet_id)
        except Exception as e:
            logger.error(f"Error deleting sheet {spreadsheet_id}: {str(e)}", exc_info=True)
            raise classify_upstream_error(e, 'Delete sheet')
        logger.info(f"Deleted spreadsheet {spreadsheet_id}")
        return {'message': 'Google Sheet deleted successfully'}
