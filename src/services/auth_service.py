"""
Admin sign-in.

There is exactly one admin account, configured through ADMIN_EMAIL and
ADMIN_PASSWORD. ADMIN_PASSWORD may hold either the plain password or a
Werkzeug password hash (``pbkdf2:...`` / ``scrypt:...``).
"""
from __future__ import annotations

import hmac
import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from werkzeug.security import check_password_hash

from src.observability import increment_counter

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 20
PASSWORD_HASH_PREFIXES = ("pbkdf2:", "scrypt:")

# Session key set on successful sign-in
SESSION_FLAG = "is_authenticated"

LOGIN_SUCCESS_MESSAGE = "Login successful"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
MISSING_CREDENTIALS_MESSAGE = "Server misconfiguration: Missing credentials"
INVALID_PAYLOAD_MESSAGE = "Invalid login details"


def validate_login_payload(payload: Any) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return (cleaned values, field errors) for a login submission."""
    if not isinstance(payload, Mapping):
        payload = {}
    email = payload.get("email")
    password = payload.get("password")
    email = email.strip() if isinstance(email, str) else ""
    password = password if isinstance(password, str) else ""

    errors: Dict[str, str] = {}
    if not EMAIL_PATTERN.match(email):
        errors["email"] = "Invalid email address"
    if len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    elif len(password) > PASSWORD_MAX_LENGTH:
        errors["password"] = f"Password must not exceed {PASSWORD_MAX_LENGTH} characters"
    return {"email": email, "password": password}, errors


def _is_password_hash(value: str) -> bool:
    return value.startswith(PASSWORD_HASH_PREFIXES)


def credentials_match(email: str, password: str, admin_email: str, admin_password: str) -> bool:
    email_ok = hmac.compare_digest(email.encode("utf-8"), admin_email.encode("utf-8"))
    if _is_password_hash(admin_password):
        password_ok = check_password_hash(admin_password, password)
    else:
        password_ok = hmac.compare_digest(password.encode("utf-8"), admin_password.encode("utf-8"))
    return email_ok and password_ok


class AuthService:
    """Checks a login submission against the configured admin credentials."""

    def __init__(self, admin_email: Optional[str], admin_password: Optional[str]) -> None:
        self.admin_email = admin_email
        self.admin_password = admin_password

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuthService":
        return cls(config.get("ADMIN_EMAIL"), config.get("ADMIN_PASSWORD"))

    def login(self, payload: Any) -> Tuple[bool, str, int, Dict[str, str]]:
        """
        Returns (success flag, message, HTTP status, field errors).
        """
        values, errors = validate_login_payload(payload)
        if errors:
            increment_counter("auth_login_attempts_total", labels={"outcome": "invalid"})
            return False, INVALID_PAYLOAD_MESSAGE, 400, errors

        if not self.admin_email or not self.admin_password:
            logger.error("Login attempted but ADMIN_EMAIL/ADMIN_PASSWORD are not configured")
            increment_counter("auth_login_attempts_total", labels={"outcome": "misconfigured"})
            return False, MISSING_CREDENTIALS_MESSAGE, 500, {}

        if credentials_match(values["email"], values["password"], self.admin_email, self.admin_password):
            increment_counter("auth_login_attempts_total", labels={"outcome": "success"})
            logger.info("Admin signed in")
            return True, LOGIN_SUCCESS_MESSAGE, 200, {}

        increment_counter("auth_login_attempts_total", labels={"outcome": "rejected"})
        logger.warning("Rejected admin sign-in attempt")
        return False, INVALID_CREDENTIALS_MESSAGE, 401, {}
