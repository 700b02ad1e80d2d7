"""
Domain errors and the unified API exception handler.

Services raise the :class:`DomainError` subclasses below; they carry no
HTTP knowledge beyond a suggested status code, so the services stay safe
to call directly (management commands, tests).  The DRF handler turns
them, DRF's own exceptions and integrity errors into the
``{'ok': False, 'error': {...}}`` envelope.
"""
import logging

from django.conf import settings
from django.db import IntegrityError
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    code = 'domain_error'
    status_code = 400

    def __init__(self, message: str = ''):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFound(DomainError):
    code = 'not_found'
    status_code = 404


class Conflict(DomainError):
    code = 'conflict'
    status_code = 409


class InvalidArgument(DomainError):
    code = 'invalid_argument'


class InvalidState(DomainError):
    code = 'invalid_state'


class InvalidTransition(InvalidState):
    code = 'invalid_transition'


class InsufficientFunds(DomainError):
    code = 'insufficient_funds'


class InsufficientStock(DomainError):
    code = 'insufficient_stock'


class Unavailable(DomainError):
    code = 'unavailable'
    status_code = 409


def _error(code, message, status_code, details=None):
    body = {'ok': False, 'error': {'code': code, 'message': message}}
    if details is not None:
        body['error']['details'] = details
    return Response(body, status=status_code)


def _field_details(data, prefix=''):
    # flatten DRF's nested {field: [messages]} into [{field, message}]
    details = []
    if isinstance(data, dict):
        for key, value in data.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            details.extend(_field_details(value, field))
    elif isinstance(data, list):
        for value in data:
            details.extend(_field_details(value, prefix))
    else:
        details.append({'field': prefix or 'non_field_errors', 'message': str(data)})
    return details


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        return _error(exc.code, exc.message, exc.status_code)
    if isinstance(exc, IntegrityError):
        logger.warning('integrity error: %s', exc)
        return _error('conflict', 'Resource already exists', 409)
    if isinstance(exc, drf_exceptions.ValidationError):
        return _error('validation_error', 'Validation Error', exc.status_code, _field_details(exc.detail))

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', type(context.get('view')).__name__)
        message = str(exc) if settings.DEBUG else 'Internal Server Error'
        return _error('server_error', message, 500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    code = getattr(exc, 'default_code', 'api_error')
    headers = {k: v for k, v in resp.headers.items() if k.lower() in ('retry-after', 'allow')}
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code, headers=headers)
