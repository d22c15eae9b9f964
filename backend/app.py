from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv
import os
from pathlib import Path

# Load environment variables BEFORE building the clients
# Get the directory where this file is located
backend_dir = Path(__file__).parent
env_path = backend_dir / '.env'
# Only load .env file if it exists (for local development)
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# Also try to load from root directory if not found in backend
root_env_path = backend_dir.parent / '.env'
if root_env_path.exists():
    load_dotenv(dotenv_path=root_env_path)

from api.routes import create_api
from core.logger import logger
from core.rate_limit import RateLimiter
from mailer.email_service import EmailService
from sheets.google_sheets_manager import GoogleSheetsManager

SERVICE_NAME = 'Event Sheets Backend'


def _build_google_client():
    try:
        from google_client import GoogleApiClient

        return GoogleApiClient()
    except Exception as e:
        logger.warning(f"Google API client not initialized: {type(e).__name__}: {str(e)}")
        return None


def create_app(google_client=None, sheets_manager=None, email_service=None, rate_limiter=None,
               build_clients: bool = True) -> Flask:
    """
    Build the Flask app.

    Collaborators are constructed once here and injected into the routes;
    pass them explicitly to override (tests pass fakes with build_clients=False).
    """
    app = Flask(__name__)

    # CORS configuration: "*" or a comma separated list of origins
    allowed_origins = os.getenv('ALLOWED_ORIGINS', '*')
    origins = '*' if allowed_origins.strip() == '*' else [o.strip() for o in allowed_origins.split(',') if o.strip()]
    CORS(app, origins=origins)

    if build_clients:
        if google_client is None:
            google_client = _build_google_client()
        if email_service is None:
            email_service = EmailService()
        if rate_limiter is None:
            rate_limiter = RateLimiter()
    if sheets_manager is None and google_client is not None:
        sheets_manager = GoogleSheetsManager(google_client)

    api_prefix = os.getenv('API_PREFIX', '/api/v1')

    # Register blueprints
    app.register_blueprint(
        create_api(sheets_manager, google_client, email_service, rate_limiter),
        url_prefix=api_prefix,
    )

    endpoints = {
        'health': f'{api_prefix}/health',
        'sheets': f'{api_prefix}/sheets',
        'email': f'{api_prefix}/send-email',
    }

    @app.route('/', methods=['GET'])
    def root():
        """Root endpoint"""
        return jsonify({
            'message': f'{SERVICE_NAME} API',
            'version': '1.0.0',
            'status': 'running',
            'endpoints': endpoints,
        }), 200

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({
            'error': 'Endpoint not found',
            'message': f'The requested endpoint {request.method} {request.path} does not exist',
            'availableEndpoints': list(endpoints.values()),
        }), 404

    logger.info(f"{SERVICE_NAME} ready (API prefix {api_prefix})")
    return app


app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(host='0.0.0.0', port=port, debug=debug)
