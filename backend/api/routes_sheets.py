"""
Spreadsheet export routes: create, update, inspect and delete event sheets.
"""
from typing import Any, Dict, Optional

from flask import Blueprint, jsonify, request

from core.errors import SheetsBackendError
from core.logger import logger
from core.validators import validate_sheet_request


def _received_data(body: Any) -> Dict[str, Any]:
    body = body if isinstance(body, dict) else {}
    event = body.get('eventData') if isinstance(body.get('eventData'), dict) else {}
    registrations = body.get('registrations') if isinstance(body.get('registrations'), list) else []
    first = registrations[0] if registrations and isinstance(registrations[0], dict) else {}
    return {
        'eventDataKeys': list(event.keys()),
        'registrationSample': list(first.keys()),
    }


def _validation_failure(body: Any, details):
    logger.warning(f"Validation failed: {details}")
    return jsonify({
        'success': False,
        'error': 'Validation error',
        'message': 'Request body failed validation',
        'details': details,
        'receivedData': _received_data(body),
    }), 400


def _error_response(error: SheetsBackendError):
    return jsonify(error.to_dict()), error.status_code


def _invalid_id_response():
    return jsonify({
        'success': False,
        'error': 'Invalid spreadsheet ID',
        'message': 'Spreadsheet ID must be a valid string',
    }), 400


def register_sheets_routes(api: Blueprint, sheets_manager: Optional[object]) -> None:
    """Register the /sheets routes on the given blueprint."""

    def manager_missing():
        logger.error("Google Sheets manager not configured")
        return jsonify({
            'success': False,
            'error': 'Service unavailable',
            'message': 'Google Sheets manager not configured',
        }), 503

    @api.route('/sheets/create', methods=['POST'])
    def create_sheet():
        """Create a new Google Sheet with event registration data."""
        body = request.get_json(silent=True)
        try:
            if not sheets_manager:
                return manager_missing()

            payload, details = validate_sheet_request(body)
            if details:
                return _validation_failure(body, details)

            # The builder reads the raw dicts so unknown registration keys survive
            event = body['eventData']
            registrations = body['registrations']
            if not payload.registrations and not payload.allow_empty:
                return jsonify({
                    'success': False,
                    'error': 'No registrations provided',
                    'message': 'Cannot create a sheet without registration data',
                }), 400

            logger.info(
                f"Creating sheet for event: {payload.event_data.title} with {len(payload.registrations)} registrations"
            )
            result = sheets_manager.create_event_sheet(event, registrations, allow_empty=payload.allow_empty)
            return jsonify({
                'success': True,
                'data': result.to_dict(),
                'message': 'Google Sheet created successfully',
            }), 201
        except SheetsBackendError as e:
            logger.warning(f"Create sheet failed ({e.status_code}): {e.message}")
            return _error_response(e)
        except Exception as e:
            logger.error(f"Error in create sheet endpoint: {str(e)}", exc_info=True)
            return jsonify({
                'success': False,
                'error': 'Internal server error',
                'message': str(e),
            }), 500

    @api.route('/sheets/<spreadsheet_id>/update', methods=['PUT'])
    def update_sheet(spreadsheet_id):
        """Rewrite an existing Google Sheet with the current registrations."""
        body = request.get_json(silent=True)
        try:
            if not sheets_manager:
                return manager_missing()
            if not spreadsheet_id or not spreadsheet_id.strip():
                return _invalid_id_response()

            payload, details = validate_sheet_request(body)
            if details:
                return _validation_failure(body, details)

            logger.info(f"Updating sheet {spreadsheet_id} for event: {payload.event_data.title}")
            result = sheets_manager.update_event_sheet(spreadsheet_id, body['eventData'], body['registrations'])
            return jsonify({
                'success': True,
                'data': result.to_dict(),
                'message': 'Google Sheet updated successfully',
            }), 200
        except SheetsBackendError as e:
            logger.warning(f"Update sheet {spreadsheet_id} failed ({e.status_code}): {e.message}")
            return _error_response(e)
        except Exception as e:
            logger.error(f"Error updating sheet {spreadsheet_id}: {str(e)}", exc_info=True)
            return jsonify({
                'success': False,
                'error': 'Internal server error',
                'message': str(e),
            }), 500

    @api.route('/sheets/<spreadsheet_id>', methods=['GET'])
    def get_sheet(spreadsheet_id):
        """Get spreadsheet metadata."""
        try:
            if not sheets_manager:
                return manager_missing()
            if not spreadsheet_id or not spreadsheet_id.strip():
                return _invalid_id_response()

            info = sheets_manager.get_sheet_info(spreadsheet_id)
            return jsonify({
                'success': True,
                'data': info,
                'message': 'Sheet information retrieved successfully',
            }), 200
        except SheetsBackendError as e:
            return _error_response(e)
        except Exception as e:
            logger.error(f"Error getting sheet {spreadsheet_id}: {str(e)}", exc_info=True)
            return jsonify({
                'success': False,
                'error': 'Internal server error',
                'message': str(e),
            }), 500

    @api.route('/sheets/<spreadsheet_id>', methods=['DELETE'])
    def delete_sheet(spreadsheet_id):
        try:
            if not sheets_manager:
                return manager_missing()
            if not spreadsheet_id or not spreadsheet_id.strip():
                return _invalid_id_response()

            result = sheets_manager.delete_sheet(spreadsheet_id)
            return jsonify({'success': True, **result}), 200
        except SheetsBackendError as e:
            return _error_response(e)
        except Exception as e:
            logger.error(f"Error deleting sheet {spreadsheet_id}: {str(e)}", exc_info=True)
            return jsonify({
                'success': False,
                'error': 'Internal server error',
                'message': str(e),
            }), 500
