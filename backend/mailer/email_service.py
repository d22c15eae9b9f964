"""
Email Service
Send transactional emails through Gmail SMTP
"""
import asyncio
import base64
import binascii
import mimetypes
import os
import time
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Any, Dict, List, Optional

import aiosmtplib

from core.logger import logger

SMTP_HOST = 'smtp.gmail.com'
SMTP_PORT = 587
DEFAULT_FROM_NAME = 'NIT Silchar Event Manager'


class EmailError(Exception):
    """Raised when a message could not be built or delivered."""


class EmailService:
    """Service for sending emails"""

    def __init__(self, user: Optional[str] = None, app_password: Optional[str] = None,
                 from_name: Optional[str] = None):
        self.user = user if user is not None else os.getenv('GMAIL_USER')
        self.app_password = app_password if app_password is not None else os.getenv('GMAIL_APP_PASSWORD')
        self.from_name = from_name or os.getenv('EMAIL_FROM_NAME', DEFAULT_FROM_NAME)

        if self.mock_mode:
            logger.warning(
                "No Gmail credentials found. Email service running in mock mode; "
                "set GMAIL_USER and GMAIL_APP_PASSWORD to send real emails."
            )
        else:
            logger.info("Email service initialized with SMTP (app password)")

    @property
    def mock_mode(self) -> bool:
        return not (self.user and self.app_password)

    def build_message(self, to: str, subject: str, html: str,
                      attachments: Optional[List[Dict[str, Any]]] = None) -> MIMEMultipart:
        """
        Build a multipart/related message: the HTML body plus inline attachments.

        Args:
            to: Recipient email
            subject: Subject line
            html: HTML body
            attachments: Dicts with filename, base64 content and an optional cid
        """
        message = MIMEMultipart('related')
        message['Subject'] = subject
        message['From'] = formataddr((self.from_name, self.user or 'noreply@localhost'))
        message['To'] = to
        message['Message-ID'] = make_msgid(domain='event-sheets')
        message.attach(MIMEText(html, 'html', 'utf-8'))

        for attachment in attachments or []:
            filename = attachment.get('filename') or 'attachment'
            content = attachment.get('content') or ''
            if not isinstance(content, str):
                raise EmailError(f"Attachment {filename} content must be a base64 string")
            try:
                payload = base64.b64decode(content, validate=True)
            except (binascii.Error, ValueError) as e:
                raise EmailError(f"Attachment {filename} is not valid base64: {e}")

            mime_type, _ = mimetypes.guess_type(filename)
            maintype, subtype = (mime_type or 'application/octet-stream').split('/', 1)
            part = MIMEBase(maintype, subtype)
            part.set_payload(payload)
            encoders.encode_base64(part)
            if attachment.get('cid'):
                part.add_header('Content-ID', f"<{attachment['cid']}>")
                part.add_header('Content-Disposition', 'inline', filename=filename)
            else:
                part.add_header('Content-Disposition', 'attachment', filename=filename)
            message.attach(part)

        return message

    async def _deliver(self, message: MIMEMultipart):
        return await aiosmtplib.send(
            message,
            hostname=SMTP_HOST,
            port=SMTP_PORT,
            start_tls=True,
            username=self.user,
            password=self.app_password,
        )

    def send_email(self, to: str, subject: str, html: str,
                   attachments: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Send an email, or log it when running in mock mode.

        Returns:
            {'success': True, 'messageId': ..., 'response': ...}

        Raises:
            EmailError: the message could not be built or SMTP delivery failed
        """
        message = self.build_message(to, subject, html, attachments)

        if self.mock_mode:
            logger.info(
                f"MOCK EMAIL - To: {to} | Subject: {subject} | "
                f"Content length: {len(html)} characters | Attachments: {len(attachments or [])}"
            )
            return {
                'success': True,
                'messageId': f"mock-{int(time.time() * 1000)}@test.com",
                'response': 'Mock email service - email logged',
            }

        try:
            _errors, response = asyncio.run(self._deliver(message))
        except aiosmtplib.SMTPException as e:
            logger.error(f"Email sending error: {str(e)}", exc_info=True)
            raise EmailError(f"Failed to send email: {str(e)}")
        except OSError as e:
            logger.error(f"Email connection error: {str(e)}", exc_info=True)
            raise EmailError(f"Failed to send email: {str(e)}")

        logger.info(f"Email sent to {to}: {subject}")
        return {'success': True, 'messageId': message['Message-ID'], 'response': response}
