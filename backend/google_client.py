"""
Authenticated access to the Google Sheets and Drive APIs.

One GoogleApiClient is built when the app starts and is shared read-only by
every request. Sheets calls go through gspread's HTTP client, Drive calls
(sharing, metadata, deletion) through googleapiclient.
"""
import base64
import json
import os
import time
from typing import Any, Callable, Dict, List, Optional

import gspread
import gspread.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.errors import is_rate_limit_error
from core.logger import logger

SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive'
]

CREDENTIAL_ENV_FIELDS = {
    'type': 'GOOGLE_CREDENTIALS_TYPE',
    'project_id': 'GOOGLE_CREDENTIALS_PROJECT_ID',
    'private_key_id': 'GOOGLE_CREDENTIALS_PRIVATE_KEY_ID',
    'private_key': 'GOOGLE_CREDENTIALS_PRIVATE_KEY',
    'client_email': 'GOOGLE_CREDENTIALS_CLIENT_EMAIL',
    'client_id': 'GOOGLE_CREDENTIALS_CLIENT_ID',
    'auth_uri': 'GOOGLE_CREDENTIALS_AUTH_URI',
    'token_uri': 'GOOGLE_CREDENTIALS_TOKEN_URI',
    'auth_provider_x509_cert_url': 'GOOGLE_CREDENTIALS_AUTH_PROVIDER_CERT_URL',
    'client_x509_cert_url': 'GOOGLE_CREDENTIALS_CLIENT_CERT_URL',
}
REQUIRED_CREDENTIAL_FIELDS = ['type', 'project_id', 'private_key_id', 'private_key', 'client_email', 'client_id']
DEFAULT_TOKEN_URI = 'https://oauth2.googleapis.com/token'


def credentials_info_from_env() -> Optional[Dict[str, str]]:
    """
    Assemble service account info from the individual GOOGLE_CREDENTIALS_* variables.

    Returns None when none of them are set.
    """
    info = {key: os.getenv(env_name) for key, env_name in CREDENTIAL_ENV_FIELDS.items()}
    if not any(info.values()):
        return None

    missing = [key for key in REQUIRED_CREDENTIAL_FIELDS if not info.get(key)]
    if missing:
        raise ValueError(f"Missing required Google credentials: {', '.join(missing)}")

    # Private keys pasted into env files carry literal "\n" sequences
    info['private_key'] = info['private_key'].replace('\\n', '\n')
    info['token_uri'] = info.get('token_uri') or DEFAULT_TOKEN_URI
    return {key: value for key, value in info.items() if value}


def load_service_account_credentials(scopes: Optional[List[str]] = None) -> service_account.Credentials:
    """
    Load service account credentials from the environment.

    Lookup order: SERVICE_ACCOUNT_BASE64, SERVICE_ACCOUNT_JSON, the
    GOOGLE_CREDENTIALS_* fields, then the GOOGLE_SERVICE_ACCOUNT_PATH file.
    """
    scopes = scopes or SCOPES

    service_account_base64 = os.getenv('SERVICE_ACCOUNT_BASE64')
    service_account_json = os.getenv('SERVICE_ACCOUNT_JSON')

    if service_account_base64:
        try:
            decoded_json = base64.b64decode(service_account_base64).decode('utf-8')
            service_account_info = json.loads(decoded_json)
        except (ValueError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid SERVICE_ACCOUNT_BASE64: {e}")
        return service_account.Credentials.from_service_account_info(service_account_info, scopes=scopes)

    if service_account_json:
        try:
            service_account_info = json.loads(service_account_json)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid SERVICE_ACCOUNT_JSON format: {e}")
        return service_account.Credentials.from_service_account_info(service_account_info, scopes=scopes)

    env_info = credentials_info_from_env()
    if env_info:
        return service_account.Credentials.from_service_account_info(env_info, scopes=scopes)

    # Fall back to file path (for local development)
    service_account_path = os.getenv('GOOGLE_SERVICE_ACCOUNT_PATH', './service_account.json')
    if not os.path.exists(service_account_path):
        raise FileNotFoundError(
            f"Service account file not found: {service_account_path}. "
            "Set SERVICE_ACCOUNT_BASE64, SERVICE_ACCOUNT_JSON or the GOOGLE_CREDENTIALS_* variables, "
            "or provide a valid file path."
        )
    return service_account.Credentials.from_service_account_file(service_account_path, scopes=scopes)


class GoogleApiClient:
    """Thin wrapper over the Sheets (gspread) and Drive (googleapiclient) APIs."""

    def __init__(self, credentials=None, max_retries: int = 3, initial_delay: float = 5):
        self.credentials = credentials or load_service_account_credentials()
        self.max_retries = max_retries
        self.initial_delay = initial_delay

        try:
            self.gspread_client = gspread.authorize(self.credentials)
            self.drive = build('drive', 'v3', credentials=self.credentials, cache_discovery=False)
        except Exception as e:
            logger.error(f"Error initializing Google API clients: {str(e)}", exc_info=True)
            raise

        logger.info(f"Google APIs initialized for service account: {self.service_account_email}")

    @property
    def service_account_email(self) -> Optional[str]:
        return getattr(self.credentials, 'service_account_email', None)

    @property
    def _http(self):
        return self.gspread_client.http_client

    def _retry_with_backoff(self, func: Callable[[], Any], action: str) -> Any:
        """
        Run func, retrying with exponential backoff on rate limit errors.

        Delays are initial_delay, 2x, 4x ... for at most max_retries attempts.
        """
        for attempt in range(self.max_retries):
            try:
                return func()
            except (gspread.exceptions.APIError, HttpError) as e:
                if is_rate_limit_error(e) and attempt < self.max_retries - 1:
                    delay = self.initial_delay * (2 ** attempt)
                    logger.warning(
                        f"Rate limit hit during {action}, retrying in {delay} seconds "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise

    def test_authentication(self) -> bool:
        """Refresh the access token; raises google.auth RefreshError / TransportError on failure."""
        self.credentials.refresh(Request())
        logger.debug("Google authentication test successful")
        return True

    def create_spreadsheet(self, title: str, tabs: List[Dict[str, Any]], locale: str = 'en_US',
                           time_zone: str = 'Asia/Kolkata') -> Dict[str, Any]:
        """
        Create a spreadsheet whose tabs are exactly ``tabs`` (in order).

        Each tab dict holds ``title``, ``tab_color``, ``row_count`` and
        ``column_count``. Returns ``{"spreadsheet_id", "sheet_ids"}`` where
        sheet_ids maps tab title to numeric sheet id.
        """
        spreadsheet = self._retry_with_backoff(lambda: self.gspread_client.create(title), 'create spreadsheet')
        spreadsheet_id = spreadsheet.id

        first, rest = tabs[0], tabs[1:]
        requests: List[Dict[str, Any]] = [
            {
                'updateSpreadsheetProperties': {
                    'properties': {'locale': locale, 'timeZone': time_zone},
                    'fields': 'locale,timeZone',
                }
            },
            {
                'updateSheetProperties': {
                    'properties': {
                        'sheetId': spreadsheet.sheet1.id,
                        **_tab_properties(first),
                    },
                    'fields': 'title,tabColor,gridProperties(rowCount,columnCount)',
                }
            },
        ]
        requests.extend({'addSheet': {'properties': _tab_properties(tab)}} for tab in rest)
        try:
            self.batch_update(spreadsheet_id, requests)
        except Exception as e:
            logger.error(f"Tab setup failed for {spreadsheet_id}, deleting the half-built spreadsheet: {str(e)}")
            try:
                self.delete_file(spreadsheet_id)
            except Exception as cleanup_error:
                logger.error(f"Could not delete spreadsheet {spreadsheet_id}: {str(cleanup_error)}")
            raise

        return {'spreadsheet_id': spreadsheet_id, 'sheet_ids': self.get_sheet_ids(spreadsheet_id)}

    def _sheet_properties(self, spreadsheet_id: str) -> List[Dict[str, Any]]:
        metadata = self._retry_with_backoff(
            lambda: self._http.fetch_sheet_metadata(spreadsheet_id, params={'fields': 'sheets.properties'}),
            'read spreadsheet metadata',
        )
        return [sheet['properties'] for sheet in metadata.get('sheets', [])]

    def get_sheet_ids(self, spreadsheet_id: str) -> Dict[str, int]:
        return {props['title']: props['sheetId'] for props in self._sheet_properties(spreadsheet_id)}

    def get_column_counts(self, spreadsheet_id: str) -> Dict[str, int]:
        """Map tab title to the tab's current grid width."""
        return {
            props['title']: props.get('gridProperties', {}).get('columnCount', 0)
            for props in self._sheet_properties(spreadsheet_id)
        }

    def write_values(self, spreadsheet_id: str, range_name: str, values: List[List[Any]],
                     value_input_option: str = 'RAW') -> Dict[str, Any]:
        return self._retry_with_backoff(
            lambda: self._http.values_update(
                spreadsheet_id,
                range_name,
                params={'valueInputOption': value_input_option},
                body={'values': values},
            ),
            f'write {range_name}',
        )

    def clear_values(self, spreadsheet_id: str, range_name: str) -> Dict[str, Any]:
        return self._retry_with_backoff(
            lambda: self._http.values_clear(spreadsheet_id, range_name),
            f'clear {range_name}',
        )

    def batch_update(self, spreadsheet_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not requests:
            return {}
        return self._retry_with_backoff(
            lambda: self._http.batch_update(spreadsheet_id, {'requests': requests}),
            'batch update',
        )

    def share(self, file_id: str, role: str = 'writer', perm_type: str = 'anyone') -> Dict[str, Any]:
        return self._retry_with_backoff(
            lambda: self.drive.permissions().create(
                fileId=file_id,
                body={'role': role, 'type': perm_type},
                fields='id',
            ).execute(),
            'share spreadsheet',
        )

    def get_file_info(self, file_id: str) -> Dict[str, Any]:
        return self._retry_with_backoff(
            lambda: self.drive.files().get(
                fileId=file_id,
                fields='id,name,createdTime,modifiedTime',
            ).execute(),
            'read file metadata',
        )

    def delete_file(self, file_id: str) -> None:
        self._retry_with_backoff(lambda: self.drive.files().delete(fileId=file_id).execute(), 'delete file')


def _tab_properties(tab: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'title': tab['title'],
        'tabColor': tab['tab_color'],
        'gridProperties': {
            'rowCount': tab['row_count'],
            'columnCount': tab['column_count'],
        },
    }
