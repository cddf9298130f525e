"""Role and ownership checks shared by every task-scoped operation."""

from enum import Enum

from marketplace.models.enums import Role
from marketplace.models.payment import Payment
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.errors import ForbiddenError


class Capability(str, Enum):
    """What an operation requires of its caller."""

    CLIENT = "client"  # any authenticated caller
    ADMIN = "admin"


def authorize(
    caller: User,
    resource: Task | Payment | None = None,
    capability: Capability = Capability.CLIENT,
) -> None:
    """Raise ForbiddenError unless ``caller`` may act on ``resource``.

    The role check runs first: ``Capability.ADMIN`` requires the admin role.
    Then, when a resource is given, a non-admin caller must be its owning
    client. Admins pass every ownership check.
    """
    is_admin = caller.role == Role.ADMIN

    if capability == Capability.ADMIN and not is_admin:
        raise ForbiddenError("Admin access required")

    if resource is not None and not is_admin and resource.client_id != caller.id:
        raise ForbiddenError("Access denied")
