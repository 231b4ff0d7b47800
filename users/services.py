# users/services.py

import logging
from dataclasses import dataclass
from uuid import UUID

from django.contrib.auth import get_user_model
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, NotFound

from .roles import RoleLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleInfo:
    level: RoleLevel
    name: str


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of one request."""

    user_id: UUID
    role: RoleLevel

    @property
    def is_admin(self):
        return self.role == RoleLevel.ADMIN

    def at_least(self, level):
        return self.role <= level


def resolve_role(user_id):
    """
    Look up the role of ``user_id``.

    Raises NotFound when the user row or its role is missing, which means the
    token and the account data disagree.
    """
    User = get_user_model()
    row = (
        User.objects.filter(pk=user_id)
        .values('role__level', 'role__name')
        .first()
    )
    if row is None:
        raise NotFound("User not found.")
    if row['role__level'] is None:
        raise NotFound("User has no role assigned.")
    try:
        level = RoleLevel(row['role__level'])
    except ValueError:
        raise NotFound("User role is not recognised.") from None
    return RoleInfo(level=level, name=row['role__name'])


def get_principal(request):
    """
    Build the Principal for an authenticated request.

    A missing user or role is treated as an authentication failure (401), not
    a server error.
    """
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        raise NotAuthenticated()
    try:
        role = resolve_role(user.pk)
    except NotFound as exc:
        logger.warning("Rejecting token for user %s: %s", user.pk, exc.detail)
        raise AuthenticationFailed("Account has no valid role.") from exc
    return Principal(user_id=user.pk, role=role.level)
