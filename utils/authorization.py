"""Single decision point for role, ownership, and lifecycle gates on grievance operations."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from models import ROLE_GOVERNMENT_OFFICIAL, STATUS_PENDING, STATUS_SOLVED
from utils.errors import AuthorizationError, StateConflictError


class Operation(enum.Enum):
    READ = "read"
    SEARCH = "search"
    CREATE = "create"
    UPVOTE = "upvote"
    EDIT = "edit"
    DELETE = "delete"
    CHANGE_STATUS = "change_status"
    VIEW_STATISTICS = "view_statistics"


OFFICIAL_OPERATIONS = frozenset({Operation.CHANGE_STATUS, Operation.VIEW_STATISTICS})
OWNER_OPERATIONS = frozenset({Operation.EDIT, Operation.DELETE})

REASON_ROLE = "role"
REASON_NOT_OWNER = "not owner"
REASON_NOT_PENDING = "not pending"
REASON_ALREADY_SOLVED = "already solved"

# Reasons where the actor may perform the operation class but the resource state forbids it.
STATE_REASONS = frozenset({REASON_NOT_PENDING, REASON_ALREADY_SOLVED})

DENIAL_MESSAGES = {
    (Operation.CHANGE_STATUS, REASON_ROLE): "Only Government Officials can update grievance status.",
    (Operation.VIEW_STATISTICS, REASON_ROLE): "Only Government Officials can view statistics.",
    (Operation.EDIT, REASON_NOT_OWNER): "You can only update your own grievances.",
    (Operation.DELETE, REASON_NOT_OWNER): "You can only delete your own grievances.",
    (Operation.DELETE, REASON_NOT_PENDING): "Cannot delete grievance. Only pending grievances can be deleted.",
    (Operation.EDIT, REASON_ALREADY_SOLVED): "Cannot update a solved grievance.",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @property
    def is_state_conflict(self) -> bool:
        return not self.allowed and self.reason in STATE_REASONS


ALLOW = Decision(True)


def decide(
    actor_role: str,
    actor_id: str,
    operation: Operation,
    owner_id: Optional[str] = None,
    status: Optional[str] = None,
) -> Decision:
    """Evaluate the rules in precedence order: role, ownership, then resource state."""
    if operation in OFFICIAL_OPERATIONS:
        return ALLOW if actor_role == ROLE_GOVERNMENT_OFFICIAL else Decision(False, REASON_ROLE)

    if operation in OWNER_OPERATIONS:
        if owner_id is None or str(actor_id) != str(owner_id):
            return Decision(False, REASON_NOT_OWNER)
        if operation is Operation.DELETE and status != STATUS_PENDING:
            return Decision(False, REASON_NOT_PENDING)
        if operation is Operation.EDIT and status == STATUS_SOLVED:
            return Decision(False, REASON_ALREADY_SOLVED)
        return ALLOW

    return ALLOW


def enforce(actor, operation: Operation, owner_id: Optional[str] = None, status: Optional[str] = None) -> None:
    """Raise the error kind matching a denial; return silently when allowed."""
    decision = decide(actor.role, actor.id, operation, owner_id=owner_id, status=status)
    if decision.allowed:
        return

    message = DENIAL_MESSAGES.get((operation, decision.reason), "You are not allowed to perform this action.")
    current_app.logger.warning(
        "Grievance operation denied",
        extra={"user_id": actor.id, "role": actor.role, "operation": operation.value, "reason": decision.reason},
    )
    if decision.is_state_conflict:
        raise StateConflictError(message)
    raise AuthorizationError(message)
