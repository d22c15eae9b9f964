"""
Email address helpers shared by the registration validator and the mailer.
"""
import re
from typing import Any

import pandas as pd

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+'-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Any) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address string (None / NaN are rejected)
    """
    if email is None or not isinstance(email, str):
        return False
    if pd.isna(email) or not email.strip():
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))
