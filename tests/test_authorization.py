"""Decision table for the grievance authorization policy."""
import pytest

from models import ROLE_GOVERNMENT_OFFICIAL, ROLE_LOCALITY_MEMBER, STATUS_IN_PROCESS, STATUS_PENDING, STATUS_SOLVED
from utils.authorization import Operation, decide

OWNER = "owner-id"
STRANGER = "stranger-id"


class TestRoleGatedOperations:
    @pytest.mark.parametrize("operation", [Operation.CHANGE_STATUS, Operation.VIEW_STATISTICS])
    def test_official_allowed(self, operation):
        assert decide(ROLE_GOVERNMENT_OFFICIAL, STRANGER, operation).allowed

    @pytest.mark.parametrize("operation", [Operation.CHANGE_STATUS, Operation.VIEW_STATISTICS])
    def test_member_denied_for_role(self, operation):
        decision = decide(ROLE_LOCALITY_MEMBER, OWNER, operation, owner_id=OWNER, status=STATUS_PENDING)
        assert not decision.allowed
        assert decision.reason == "role"
        assert not decision.is_state_conflict

    def test_role_checked_before_resource_state(self):
        decision = decide(ROLE_LOCALITY_MEMBER, OWNER, Operation.CHANGE_STATUS, owner_id=OWNER, status=STATUS_SOLVED)
        assert decision.reason == "role"


class TestOwnership:
    @pytest.mark.parametrize("status", [STATUS_PENDING, STATUS_IN_PROCESS, STATUS_SOLVED])
    @pytest.mark.parametrize("operation", [Operation.EDIT, Operation.DELETE])
    def test_non_owner_denied_regardless_of_state(self, operation, status):
        decision = decide(ROLE_LOCALITY_MEMBER, STRANGER, operation, owner_id=OWNER, status=status)
        assert decision.reason == "not owner"
        assert not decision.is_state_conflict

    def test_official_is_not_an_owner(self):
        decision = decide(ROLE_GOVERNMENT_OFFICIAL, STRANGER, Operation.EDIT, owner_id=OWNER, status=STATUS_PENDING)
        assert decision.reason == "not owner"


class TestLifecycleGates:
    def test_delete_pending_allowed(self):
        assert decide(ROLE_LOCALITY_MEMBER, OWNER, Operation.DELETE, owner_id=OWNER, status=STATUS_PENDING).allowed

    @pytest.mark.parametrize("status", [STATUS_IN_PROCESS, STATUS_SOLVED])
    def test_delete_requires_pending(self, status):
        decision = decide(ROLE_LOCALITY_MEMBER, OWNER, Operation.DELETE, owner_id=OWNER, status=status)
        assert decision.reason == "not pending"
        assert decision.is_state_conflict

    @pytest.mark.parametrize("status", [STATUS_PENDING, STATUS_IN_PROCESS])
    def test_edit_allowed_until_solved(self, status):
        assert decide(ROLE_LOCALITY_MEMBER, OWNER, Operation.EDIT, owner_id=OWNER, status=status).allowed

    def test_edit_solved_is_state_conflict(self):
        decision = decide(ROLE_LOCALITY_MEMBER, OWNER, Operation.EDIT, owner_id=OWNER, status=STATUS_SOLVED)
        assert decision.reason == "already solved"
        assert decision.is_state_conflict


@pytest.mark.parametrize("operation", [Operation.READ, Operation.SEARCH, Operation.CREATE, Operation.UPVOTE])
@pytest.mark.parametrize("role", [ROLE_LOCALITY_MEMBER, ROLE_GOVERNMENT_OFFICIAL])
def test_open_operations_allowed_for_any_role(operation, role):
    assert decide(role, STRANGER, operation).allowed
