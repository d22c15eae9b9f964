"""
Health check routes.
"""
import os
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from flask import Blueprint, jsonify

from core.logger import logger

VERSION = '1.0.0'
STARTED_AT = time.time()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def register_health_routes(api: Blueprint, google_client: Optional[object]) -> None:
    """Register /health and /health/detailed on the given blueprint."""

    def check_google_auth():
        """Returns (healthy, error message)."""
        if google_client is None:
            return False, 'Google API client not configured'
        try:
            google_client.test_authentication()
            return True, None
        except Exception as e:
            logger.warning(f"Google authentication test failed: {str(e)}")
            return False, str(e)

    @api.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        status = {
            'status': 'healthy',
            'timestamp': _now_iso(),
            'uptime': round(time.time() - STARTED_AT, 3),
            'environment': os.getenv('FLASK_ENV', 'development'),
            'version': VERSION,
            'services': {'api': 'healthy', 'googleAuth': 'unknown'},
        }

        healthy, error = check_google_auth()
        if healthy:
            status['services']['googleAuth'] = 'healthy'
            status['serviceAccount'] = google_client.service_account_email
        else:
            status['services']['googleAuth'] = 'unhealthy'
            status['googleAuthError'] = error
            status['status'] = 'degraded'

        return jsonify(status), 200 if status['status'] == 'healthy' else 503

    @api.route('/health/detailed', methods=['GET'])
    def detailed_health_check():
        """Health check plus runtime and configuration details."""
        allowed_origins = os.getenv('ALLOWED_ORIGINS')
        info = {
            'status': 'healthy',
            'timestamp': _now_iso(),
            'system': {
                'pythonVersion': sys.version.split()[0],
                'platform': platform.system().lower(),
                'arch': platform.machine(),
                'uptime': round(time.time() - STARTED_AT, 3),
                'pid': os.getpid(),
            },
            'environment': {
                'flaskEnv': os.getenv('FLASK_ENV', 'development'),
                'port': int(os.getenv('PORT', 5000)),
                'apiPrefix': os.getenv('API_PREFIX', '/api/v1'),
            },
            'services': {
                'api': 'healthy',
                'googleAuth': 'unknown',
                'googleSheets': 'unknown',
                'googleDrive': 'unknown',
            },
            'configuration': {
                'hasGoogleCredentials': google_client is not None,
                'serviceAccountEmail': getattr(google_client, 'service_account_email', None) or 'not configured',
                'allowedOrigins': allowed_origins.split(',') if allowed_origins else ['not configured'],
            },
        }

        healthy, error = check_google_auth()
        service_state = 'healthy' if healthy else 'unhealthy'
        for service in ('googleAuth', 'googleSheets', 'googleDrive'):
            info['services'][service] = service_state
        if not healthy:
            info['googleAuthError'] = error
            info['status'] = 'degraded'

        return jsonify(info), 200 if info['status'] == 'healthy' else 503
