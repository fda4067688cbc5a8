"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ..users.model import Principal
from ..users.repository import UserDirectory

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (InvalidTransitionError, 403),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RateLimitError, 429),
)


def status_code_for(exc: DomainError) -> int:
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 400


def json_errors(view):
    """Answer DomainErrors as ``{"error": msg}`` with their status code, anything else as 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return jsonify({"error": str(e)}), status_code_for(e)
        except Exception:
            logger.exception("unhandled error in %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error"}), 500

    return wrapper


def session_principal(directory: UserDirectory) -> Optional[Principal]:
    user_id = session.get("user_id")
    if user_id is None:
        return None
    principal = directory.get_principal(int(user_id))
    if principal is None or not principal.is_active:
        return None
    return principal


def require_session_principal(directory: UserDirectory) -> Principal:
    principal = session_principal(directory)
    if principal is None:
        raise AuthenticationError("Unauthenticated")
    return principal


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
