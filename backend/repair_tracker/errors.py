"""Domain error taxonomy and the JSON error boundary.

Services raise these; ``register_error_handlers`` turns them (and any
werkzeug HTTPException or unexpected exception) into
``{'success': False, 'error': <message>}`` responses. Validation failures
additionally carry ``errors``: a list of ``{'field', 'message'}``.
"""
from __future__ import annotations
import logging
from typing import List, Dict, Optional
from flask import request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class RepairTrackerError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {'success': False, 'error': self.message}


class ValidationError(RepairTrackerError):
    status_code = 400
    default_message = 'Validation failed'

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload['errors'] = self.errors
        return payload


class InvalidStatus(ValidationError):
    default_message = 'Invalid status'

    def __init__(self, status=None):
        super().__init__([{'field': 'status', 'message': 'Invalid status'}])
        self.status = status


class AuthenticationError(RepairTrackerError):
    status_code = 401
    default_message = 'Invalid username or password'


class AuthorizationError(RepairTrackerError):
    status_code = 403
    default_message = 'Insufficient permissions'


class InsufficientPermission(AuthorizationError):
    pass


class NotFoundError(RepairTrackerError):
    status_code = 404
    default_message = 'Not found'


class RepairNotFound(NotFoundError):
    default_message = 'Repair not found'


class ConflictError(RepairTrackerError):
    status_code = 409
    default_message = 'Conflict'


class DuplicateIdentifier(ConflictError):
    default_message = 'رقم الطلب موجود مسبقاً. الرجاء استخدام رقم آخر.'


class GenerationExhausted(RepairTrackerError):
    status_code = 503
    default_message = 'Failed to generate unique repair ID after maximum attempts'


class DependencyFailure(RepairTrackerError):
    status_code = 502
    default_message = 'Dependency failure'


def register_error_handlers(app):
    @app.errorhandler(RepairTrackerError)
    def handle_domain_error(e: RepairTrackerError):  # type: ignore
        if e.status_code >= 500:
            logger.error('%s: %s', type(e).__name__, e.message)
        return e.to_payload(), e.status_code

    @app.errorhandler(429)
    def handle_rate_limit(e):  # type: ignore
        logger.warning('Rate limit exceeded for %s on %s', request.remote_addr, request.path)
        return {'success': False, 'error': e.description}, 429

    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return {'success': False, 'error': e.description or e.name}, e.code
        # Unhandled exception; no internals leak to the client
        logger.exception('Unhandled exception')
        return {'success': False, 'error': 'Internal server error'}, 500
