"""
HTML bodies for the transactional emails.
"""
import re
from html import escape
from typing import Optional

from sheets.sheets_dates import format_display_datetime, parse_timestamp

QR_CODE_CID = 'qr_code_image'
FOOTER_NAME = 'NIT Silchar Event Management System'

_BASE_STYLE = """
        body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f8f9fa; }
        .container { background: white; border-radius: 12px; padding: 30px; box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1); }
        .header { text-align: center; border-bottom: 3px solid {accent}; padding-bottom: 20px; margin-bottom: 30px; }
        .header h1 { color: {accent}; margin: 0; font-size: 28px; }
        .details { background: #e3f2fd; border-left: 4px solid {accent}; padding: 20px; margin: 20px 0; border-radius: 0 8px 8px 0; }
        .footer { text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #dee2e6; color: #666; font-size: 14px; }
"""


def _text(value) -> str:
    return escape(str(value))


def _page(title: str, accent: str, body: str, footer_note: str) -> str:
    style = _BASE_STYLE.replace('{accent}', accent)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{_text(title)}</title>
    <style>{style}    </style>
</head>
<body>
    <div class="container">
{body}
        <div class="footer">
            <p><strong>{FOOTER_NAME}</strong></p>
            <p>{footer_note}</p>
        </div>
    </div>
</body>
</html>"""


def _display_date(value) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return _text(value)
    return f"{parsed.day}/{parsed.month}/{parsed.year}"


def qr_attachment_filename(event_title: str) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', str(event_title))}_qr_code.png"


def qr_code_email(participant_name: str, event_title: str, event_date, event_location: str,
                  registration_id: str) -> str:
    """Registration confirmation carrying the attendance QR code as an inline image."""
    body = f"""        <div class="header">
            <h1>&#127915; Event Registration Confirmed!</h1>
            <p>{FOOTER_NAME}</p>
        </div>
        <p>Dear <strong>{_text(participant_name)}</strong>,</p>
        <p>Thank you for registering for <strong>{_text(event_title)}</strong>! Your registration has been confirmed and your unique QR code is ready.</p>
        <div class="details">
            <h3>Event Details</h3>
            <p><strong>Event:</strong> {_text(event_title)}</p>
            <p><strong>Date:</strong> {_display_date(event_date)}</p>
            <p><strong>Location:</strong> {_text(event_location)}</p>
            <p><strong>Registration ID:</strong> {_text(registration_id)}</p>
        </div>
        <div style="text-align: center; background: #f8f9fa; border-radius: 8px; padding: 30px; margin: 30px 0;">
            <h3>Your Attendance QR Code</h3>
            <p>Present this QR code at the event for attendance marking:</p>
            <img src="cid:{QR_CODE_CID}" alt="Event QR Code" style="max-width: 200px; border: 3px solid #007bff; border-radius: 8px; padding: 10px; background: white;">
            <p><small>Save this image to your phone for easy access</small></p>
        </div>
        <ul>
            <li><strong>Save this email</strong> or download the QR code image to your phone</li>
            <li><strong>Arrive on time</strong> - QR codes will be scanned at the event entrance</li>
            <li><strong>Bring a backup</strong> - You can also show your registration ID if needed</li>
        </ul>
        <p>We're excited to see you at the event!</p>"""
    return _page('Your Event QR Code', '#007bff', body, 'This is an automated email. Please do not reply to this message.')


def attendance_confirmation_email(participant_name: str, event_title: str, attendance_timestamp) -> str:
    body = f"""        <div class="header">
            <div style="font-size: 48px; margin: 20px 0;">&#9989;</div>
            <h1>Attendance Confirmed!</h1>
        </div>
        <p>Dear <strong>{_text(participant_name)}</strong>,</p>
        <p>Your attendance for <strong>{_text(event_title)}</strong> has been successfully recorded!</p>
        <p><strong>Attendance Time:</strong> {escape(format_display_datetime(attendance_timestamp, default=str(attendance_timestamp)))}</p>
        <p>Thank you for participating in the event. We hope you have a great experience!</p>"""
    return _page('Attendance Confirmed', '#28a745', body, 'This is an automated confirmation email.')


def club_approval_email(admin_name: str, club_name: str, approved: bool, reason: Optional[str] = None) -> str:
    """Decision on a club registration request, approved or rejected."""
    if approved:
        heading = 'Club Approved!'
        accent = '#28a745'
        message = (f"Great news! Your club <strong>{_text(club_name)}</strong> has been approved. "
                   "You can now sign in and start creating events.")
    else:
        heading = 'Club Registration Update'
        accent = '#dc3545'
        message = (f"Unfortunately your request to register <strong>{_text(club_name)}</strong> "
                   "was not approved at this time.")

    reason_block = ''
    if reason:
        reason_block = f"""
        <div class="details">
            <p><strong>{'Note' if approved else 'Reason'}:</strong> {_text(reason)}</p>
        </div>"""

    body = f"""        <div class="header">
            <h1>{heading}</h1>
        </div>
        <p>Dear <strong>{_text(admin_name)}</strong>,</p>
        <p>{message}</p>{reason_block}"""
    return _page(heading, accent, body, 'This is an automated email. Please do not reply to this message.')
