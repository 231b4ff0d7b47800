from enum import IntEnum


class RoleLevel(IntEnum):
    """
    Closed role hierarchy. A lower level means more privilege, so
    ``principal.role <= RoleLevel.VENDOR`` reads as "vendor or above".
    """

    ADMIN = 0
    VENDOR = 1
    CUSTOMER = 2

    @property
    def role_name(self):
        return self.name.lower()

    @classmethod
    def from_name(cls, name):
        try:
            return cls[str(name).upper()]
        except KeyError:
            raise ValueError(f"Unknown role: {name!r}") from None

    @classmethod
    def choices(cls):
        return [(level.value, level.role_name) for level in cls]


def ensure_roles():
    """Create or update the role rows so every level exists exactly once."""
    from .models import Role

    for level in RoleLevel:
        Role.objects.update_or_create(level=level.value, defaults={'name': level.role_name})
