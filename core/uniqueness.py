# core/uniqueness.py

import logging
from contextlib import contextmanager

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from rest_framework.exceptions import ValidationError

from .exceptions import CONSTRAINT_REJECTED, Conflict, is_unique_violation

logger = logging.getLogger(__name__)


def assert_available(model, exclude_id=None, message=None, **lookup):
    """
    Raise Conflict if a row matching ``lookup`` already exists.

    ``exclude_id`` leaves the record being updated out of the check. This is
    only the fast path; the unique index stays the final authority (see
    ``atomic_write``).
    """
    queryset = model._default_manager.filter(**lookup)
    if exclude_id is not None:
        queryset = queryset.exclude(pk=exclude_id)
    if queryset.exists():
        if message is None:
            fields = ', '.join(lookup)
            message = f"{model._meta.verbose_name.capitalize()} with this {fields} already exists."
        raise Conflict(message)


def assert_slug_available(model, slug, exclude_id=None):
    assert_available(model, exclude_id=exclude_id, message="Slug already exists.", slug=slug)


@contextmanager
def atomic_write(conflict_message=None):
    """
    Run a group of writes in one transaction.

    Commits when the block exits cleanly and rolls back on any exception. A
    unique violation raised by the database is re-raised as Conflict so racing
    inserts surface as 409 instead of a server error. Any other integrity
    error (a foreign key or check constraint) becomes a 400 with a neutral
    message.
    """
    try:
        with transaction.atomic():
            yield
    except ProtectedError:
        raise
    except IntegrityError as exc:
        logger.warning("Write rolled back on integrity error: %s", exc)
        if is_unique_violation(exc):
            raise Conflict(conflict_message) from exc
        raise ValidationError({'detail': CONSTRAINT_REJECTED}) from exc
