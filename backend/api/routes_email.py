"""
Transactional email routes.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import Blueprint, jsonify, request

from core.logger import logger
from mailer.email_service import EmailError
from mailer.email_templates import (
    QR_CODE_CID,
    attendance_confirmation_email,
    club_approval_email,
    qr_attachment_filename,
    qr_code_email,
)
from sheets.sheets_utils import validate_email


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _request_object() -> Optional[Dict[str, Any]]:
    """The JSON body as a dict, {} when absent, None when it is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _invalid_body():
    return _bad_request('Invalid request body', 'Request body must be a JSON object')


def _missing_fields(data: Dict[str, Any], required: List[str]) -> List[str]:
    return [name for name in required if not data.get(name)]


def _bad_request(error: str, message: str):
    return jsonify({'success': False, 'error': error, 'message': message}), 400


def register_email_routes(api: Blueprint, email_service: Optional[object]) -> None:
    """Register the email sending routes on the given blueprint."""

    def send(to: str, subject: str, html: str, success_message: str, failure_label: str,
             attachments: Optional[List[Dict[str, Any]]] = None):
        if not email_service:
            logger.error("Email service not configured")
            return jsonify({'success': False, 'error': failure_label, 'message': 'Email service not configured'}), 503
        try:
            result = email_service.send_email(to, subject, html, attachments or [])
        except EmailError as e:
            logger.error(f"{failure_label}: {str(e)}")
            return jsonify({
                'success': False,
                'error': failure_label,
                'message': str(e),
                'timestamp': _now_iso(),
            }), 500
        return jsonify({
            'success': True,
            'message': success_message,
            'messageId': result['messageId'],
            'timestamp': _now_iso(),
        }), 200

    @api.route('/send-email', methods=['POST'])
    def send_email():
        """Send an email with optional base64 attachments."""
        data = _request_object()
        if data is None:
            return _invalid_body()
        missing = _missing_fields(data, ['to', 'subject', 'html'])
        if missing:
            return _bad_request('Missing required fields', 'to, subject, and html are required fields')
        if not validate_email(data['to']):
            return _bad_request('Invalid email format', 'Please provide a valid email address')
        if not isinstance(data['subject'], str) or not isinstance(data['html'], str):
            return _bad_request('Invalid request body', 'subject and html must be strings')

        attachments = data.get('attachments') or []
        if not isinstance(attachments, list) or not all(isinstance(item, dict) for item in attachments):
            return _bad_request('Invalid attachments', 'attachments must be a list of objects')

        return send(data['to'], data['subject'], data['html'], 'Email sent successfully',
                    'Failed to send email', attachments)

    @api.route('/send-qr-email', methods=['POST'])
    def send_qr_email():
        """Send the registration QR code email."""
        data = _request_object()
        if data is None:
            return _invalid_body()
        missing = _missing_fields(data, [
            'participantEmail', 'participantName', 'eventTitle', 'eventDate',
            'eventLocation', 'qrCodeImageUrl', 'registrationId',
        ])
        if missing:
            return _bad_request('Missing required fields', f"Missing fields: {', '.join(missing)}")
        if not validate_email(data['participantEmail']):
            return _bad_request('Invalid email format', 'Please provide a valid participant email address')

        # data:image/png;base64,<payload>
        parts = str(data['qrCodeImageUrl']).split(',', 1)
        if len(parts) != 2 or not parts[1]:
            return _bad_request('Invalid QR code image', 'QR code image must be a valid base64 data URL')

        html = qr_code_email(
            data['participantName'],
            data['eventTitle'],
            data['eventDate'],
            data['eventLocation'],
            data['registrationId'],
        )
        attachments = [{
            'filename': qr_attachment_filename(data['eventTitle']),
            'content': parts[1],
            'cid': QR_CODE_CID,
        }]
        return send(
            data['participantEmail'],
            f"Your QR Code for {data['eventTitle']} - NITS Event Manager",
            html,
            'QR code email sent successfully',
            'Failed to send QR code email',
            attachments,
        )

    @api.route('/send-attendance-confirmation', methods=['POST'])
    def send_attendance_confirmation():
        data = _request_object()
        if data is None:
            return _invalid_body()
        missing = _missing_fields(data, ['participantEmail', 'participantName', 'eventTitle', 'attendanceTimestamp'])
        if missing:
            return _bad_request('Missing required fields', f"Missing fields: {', '.join(missing)}")
        if not validate_email(data['participantEmail']):
            return _bad_request('Invalid email format', 'Please provide a valid participant email address')

        html = attendance_confirmation_email(
            data['participantName'], data['eventTitle'], data['attendanceTimestamp']
        )
        return send(
            data['participantEmail'],
            f"Attendance Confirmed - {data['eventTitle']}",
            html,
            'Attendance confirmation email sent successfully',
            'Failed to send attendance confirmation email',
        )

    @api.route('/send-club-approval', methods=['POST'])
    def send_club_approval():
        """Notify a club admin that their club was approved or rejected."""
        data = _request_object()
        if data is None:
            return _invalid_body()
        missing = _missing_fields(data, ['adminEmail', 'adminName', 'clubName', 'status'])
        if missing:
            return _bad_request('Missing required fields', f"Missing fields: {', '.join(missing)}")
        if not validate_email(data['adminEmail']):
            return _bad_request('Invalid email format', 'Please provide a valid admin email address')
        if data['status'] not in ('approved', 'rejected'):
            return _bad_request('Invalid status', "status must be 'approved' or 'rejected'")

        approved = data['status'] == 'approved'
        html = club_approval_email(data['adminName'], data['clubName'], approved, data.get('reason'))
        subject = (f"Club Approved - {data['clubName']}" if approved
                   else f"Club Registration Update - {data['clubName']}")
        return send(
            data['adminEmail'],
            subject,
            html,
            'Club approval email sent successfully',
            'Failed to send club approval email',
        )
