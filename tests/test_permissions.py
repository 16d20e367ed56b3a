import uuid

import pytest

from core.permissions import (
    Principal,
    can_access_location,
    ensure_home_location,
    ensure_location_access,
    ensure_role,
)
from services.exceptions import ForbiddenError

HOME = uuid.uuid4()
ELSEWHERE = uuid.uuid4()


def _principal(role, location_id=HOME):
    return Principal(id=uuid.uuid4(), role=role, location_id=location_id)


def test_admin_reaches_every_location():
    admin = _principal("admin", location_id=None)
    assert admin.is_elevated
    assert can_access_location(admin, HOME)
    assert can_access_location(admin, ELSEWHERE)


@pytest.mark.parametrize("role", ["commander", "logistics", "unit_leader"])
def test_other_roles_are_confined_to_their_base(role):
    p = _principal(role)
    assert not p.is_elevated
    assert can_access_location(p, HOME)
    assert not can_access_location(p, ELSEWHERE)
    assert not can_access_location(p, None)


def test_missing_home_base_denies_everything():
    p = _principal("commander", location_id=None)
    assert not can_access_location(p, HOME)
    with pytest.raises(ForbiddenError, match="no base assigned"):
        ensure_home_location(p)


def test_ensure_helpers_raise_forbidden():
    p = _principal("unit_leader")
    ensure_role(p, ("unit_leader", "admin"))
    with pytest.raises(ForbiddenError):
        ensure_role(p, ("admin", "logistics"))
    with pytest.raises(ForbiddenError, match="not yours"):
        ensure_location_access(p, ELSEWHERE, "not yours")
    assert ensure_home_location(p) == HOME
