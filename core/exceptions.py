# core/exceptions.py

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


UNIQUE_VIOLATION_SQLSTATE = '23505'
MYSQL_DUPLICATE_ENTRY = 1062
CONSTRAINT_REJECTED = 'The write was rejected by a database constraint.'


def is_unique_violation(exc):
    """True when an IntegrityError comes from a unique index or constraint."""
    cause = exc.__cause__
    sqlstate = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    if cause is not None and cause.args and cause.args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    message = str(exc).lower()
    return 'unique' in message or 'duplicate' in message


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error.'
    default_code = 'internal_error'


def _flatten_errors(data, path=()):
    """Turn DRF's nested error structure into a flat list of {path, message}."""
    if isinstance(data, dict):
        errors = []
        for key, value in data.items():
            sub_path = path if key == 'non_field_errors' else path + (key,)
            errors.extend(_flatten_errors(value, sub_path))
        return errors
    if isinstance(data, list):
        errors = []
        for index, value in enumerate(data):
            if isinstance(value, (dict, list)):
                errors.extend(_flatten_errors(value, path + (index,)))
            else:
                errors.extend(_flatten_errors(value, path))
        return errors
    return [{'path': list(path), 'message': str(data)}]


def _first_message(detail):
    if isinstance(detail, dict):
        detail = next(iter(detail.values()), '')
    if isinstance(detail, list):
        detail = detail[0] if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    Maps every error raised by a view onto the API error taxonomy.

    Validation failures render as {"success": false, "error": [...]}, every
    other error as {"error": "..."}; unexpected exceptions are logged and
    returned as a bare 500 without internals.
    """
    if isinstance(exc, Http404):
        exc = NotFound(*exc.args)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = PermissionDenied(*exc.args)
    elif isinstance(exc, ProtectedError):
        exc = ValidationError({'detail': 'Resource is still referenced by other records.'})
    elif isinstance(exc, IntegrityError):
        logger.warning("Database rejected write: %s", exc)
        exc = Conflict() if is_unique_violation(exc) else ValidationError({'detail': CONSTRAINT_REJECTED})
    elif isinstance(exc, DjangoValidationError):
        exc = ValidationError(as_serializer_error(exc))

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            "Unhandled error in %s", view.__class__.__name__ if view else 'view', exc_info=exc
        )
        return Response(
            {'error': InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        response.data = {'success': False, 'error': _flatten_errors(exc.detail)}
    else:
        body = {'error': _first_message(exc.detail)}
        codes = exc.get_codes()
        if isinstance(codes, str):
            body['code'] = codes
        response.data = body
    return response
