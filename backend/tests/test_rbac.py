import pytest
from sqlalchemy.exc import OperationalError

from taskdesk.modules.auth.roles import ParseRole, UserRole
from taskdesk.modules.auth.utils.rbac import (
    AccessDenied,
    Actor,
    CanAccessUser,
    DenialReason,
    IsLockedForOwner,
    RequireActiveActor,
    ResolveTargetUserId,
)


class _RecordingLookup:
    def __init__(self, assignments=None):
        self._assignments = assignments or {}
        self.calls = []

    def IsManagerOfUser(self, manager_id, target_user_id):
        self.calls.append((manager_id, target_user_id))
        return self._assignments.get(target_user_id) == manager_id


class _FailingLookup:
    def IsManagerOfUser(self, manager_id, target_user_id):
        raise OperationalError("SELECT users.Id ...", {}, Exception("connection reset"))


def _actor(actor_id, role, is_active=True, manager_id=None):
    return Actor(Id=actor_id, Role=role, IsActive=is_active, ManagerId=manager_id)


ALL_ROLES = [UserRole.User, UserRole.Manager, UserRole.Admin]


def test_require_active_actor_rejects_missing_session():
    result = RequireActiveActor(None)
    assert isinstance(result, AccessDenied)
    assert result.Reason is DenialReason.Unauthenticated
    assert result.StatusCode == 401


@pytest.mark.parametrize("role", ALL_ROLES)
def test_require_active_actor_rejects_deactivated_for_every_role(role):
    result = RequireActiveActor(_actor("a1", role, is_active=False))
    assert isinstance(result, AccessDenied)
    assert result.Reason is DenialReason.Deactivated
    assert result.StatusCode == 403
    assert result.Message == "Account is deactivated"


def test_require_active_actor_passes_active_actor_through():
    actor = _actor("u1", UserRole.User)
    assert RequireActiveActor(actor) is actor


@pytest.mark.parametrize("role", ALL_ROLES)
@pytest.mark.parametrize("is_active", [True, False])
def test_self_access_always_allowed(role, is_active):
    lookup = _RecordingLookup()
    actor = _actor("self", role, is_active=is_active)
    assert CanAccessUser(actor, "self", lookup)
    assert lookup.calls == []


@pytest.mark.parametrize("target", ["u1", "m2", "a2", "missing"])
def test_admin_can_access_any_target_without_lookup(target):
    lookup = _RecordingLookup()
    assert CanAccessUser(_actor("a1", UserRole.Admin), target, lookup)
    assert lookup.calls == []


@pytest.mark.parametrize("target", ["u2", "m1", "a1"])
def test_plain_user_cannot_access_others(target):
    lookup = _RecordingLookup({"u2": "u1"})
    assert not CanAccessUser(_actor("u1", UserRole.User), target, lookup)
    assert lookup.calls == []


def test_manager_access_follows_assignment_lookup():
    lookup = _RecordingLookup({"u2": "m1", "u3": "m2"})
    manager = _actor("m1", UserRole.Manager)

    assert CanAccessUser(manager, "u2", lookup)
    assert not CanAccessUser(manager, "u3", lookup)
    assert not CanAccessUser(manager, "a1", lookup)
    assert lookup.calls == [("m1", "u2"), ("m1", "u3"), ("m1", "a1")]


def test_manager_lookup_failure_propagates():
    with pytest.raises(OperationalError):
        CanAccessUser(_actor("m1", UserRole.Manager), "u2", _FailingLookup())


def test_resolve_target_lookup_failure_is_not_forbidden():
    with pytest.raises(OperationalError):
        ResolveTargetUserId(_actor("m1", UserRole.Manager), "u2", _FailingLookup())


@pytest.mark.parametrize("requested", [None, "", "   ", "\t"])
@pytest.mark.parametrize("role", ALL_ROLES)
def test_resolve_target_blank_returns_actor_without_lookup(requested, role):
    lookup = _RecordingLookup()
    assert ResolveTargetUserId(_actor("x1", role), requested, lookup) == "x1"
    assert lookup.calls == []


def test_resolve_target_blank_with_failing_lookup_still_resolves():
    assert ResolveTargetUserId(_actor("m1", UserRole.Manager), None, _FailingLookup()) == "m1"


def test_resolve_target_returns_requested_when_allowed():
    lookup = _RecordingLookup({"u2": "m1"})
    assert ResolveTargetUserId(_actor("m1", UserRole.Manager), " u2 ", lookup) == "u2"
    assert ResolveTargetUserId(_actor("a1", UserRole.Admin), "u9", lookup) == "u9"


def test_resolve_target_forbidden_for_unrelated_target():
    lookup = _RecordingLookup({"u2": "m2"})
    result = ResolveTargetUserId(_actor("m1", UserRole.Manager), "u2", lookup)
    assert isinstance(result, AccessDenied)
    assert result.Reason is DenialReason.Forbidden
    assert result.StatusCode == 403

    result = ResolveTargetUserId(_actor("u1", UserRole.User), "u2", lookup)
    assert isinstance(result, AccessDenied)
    assert result.Reason is DenialReason.Forbidden


def test_locked_for_owner_examples():
    user = _actor("u1", UserRole.User)
    manager = _actor("m1", UserRole.Manager)

    assert IsLockedForOwner(user, "u1", "m1")
    assert not IsLockedForOwner(user, "u1", "u1")
    assert not IsLockedForOwner(manager, "u1", "m1")


@pytest.mark.parametrize("role", ALL_ROLES)
@pytest.mark.parametrize("owner", ["u1", "other"])
@pytest.mark.parametrize("created_by", ["u1", "other", "third"])
def test_locked_for_owner_only_for_plain_owner_of_foreign_record(role, owner, created_by):
    actor = _actor("u1", role)
    expected = role is UserRole.User and owner == "u1" and created_by != "u1"
    assert IsLockedForOwner(actor, owner, created_by) is expected


def test_manager_with_team_scenario():
    lookup = _RecordingLookup({"u2": "m1", "u3": "m1", "u4": "m1", "u1": None})
    manager = _actor("m1", UserRole.Manager)
    admin = _actor("a1", UserRole.Admin)

    assert not CanAccessUser(manager, "u1", lookup)
    assert CanAccessUser(manager, "u2", lookup)
    assert CanAccessUser(manager, "u3", lookup)
    assert CanAccessUser(manager, "u4", lookup)
    assert CanAccessUser(admin, "u1", lookup)


def test_role_order_and_parsing():
    assert UserRole.Admin.Covers(UserRole.Manager)
    assert UserRole.Manager.Covers(UserRole.User)
    assert not UserRole.User.Covers(UserRole.Manager)
    assert ParseRole("manager") is UserRole.Manager
    assert ParseRole("Parent") is None
    assert ParseRole(None) is None
