from typing import Optional

from flask import Blueprint

from api.routes_email import register_email_routes
from api.routes_health import register_health_routes
from api.routes_sheets import register_sheets_routes
from core.rate_limit import RateLimiter


def create_api(
    sheets_manager: Optional[object],
    google_client: Optional[object],
    email_service: Optional[object],
    rate_limiter: Optional[RateLimiter] = None,
) -> Blueprint:
    """Build the API blueprint with every route group registered on it."""
    api = Blueprint("api", __name__)

    if rate_limiter is not None:
        api.before_request(rate_limiter.check_request)

    # Register route groups on the shared blueprint
    register_health_routes(api, google_client)
    register_sheets_routes(api, sheets_manager)
    register_email_routes(api, email_service)
    return api
