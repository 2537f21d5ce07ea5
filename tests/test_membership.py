import uuid
from types import SimpleNamespace

from app.rbac.membership import resolve_role
from app.rbac.roles import Role

OWNER = uuid.uuid4()
OTHER = uuid.uuid4()
TEAM = uuid.uuid4()

def project(team_id=TEAM, owner_id=OWNER):
    return SimpleNamespace(id=uuid.uuid4(), owner_id=owner_id, team_id=team_id)

def lookup_from(rows: dict):
    calls = []

    def _find(team_id, user_id):
        calls.append((team_id, user_id))
        role = rows.get((team_id, user_id), "__missing__")
        if role == "__missing__":
            return None
        return SimpleNamespace(role=role)

    _find.calls = calls
    return _find

def test_owner_wins_over_team_role():
    find = lookup_from({(TEAM, OWNER): "viewer"})
    assert resolve_role(project(), OWNER, find) is Role.owner
    # ownership is decided before the team is consulted
    assert find.calls == []

def test_owner_without_team():
    assert resolve_role(project(team_id=None), OWNER, lookup_from({})) is Role.owner

def test_no_team_means_no_access_for_non_owner():
    find = lookup_from({(TEAM, OTHER): "admin"})
    assert resolve_role(project(team_id=None), OTHER, find) is None
    assert find.calls == []

def test_team_role_is_inherited():
    for stored, expected in (("admin", Role.admin), ("member", Role.member), ("viewer", Role.viewer)):
        find = lookup_from({(TEAM, OTHER): stored})
        assert resolve_role(project(), OTHER, find) is expected

def test_not_on_team_resolves_to_none():
    assert resolve_role(project(), OTHER, lookup_from({})) is None

def test_empty_stored_role_defaults_to_member():
    assert resolve_role(project(), OTHER, lookup_from({(TEAM, OTHER): None})) is Role.member
    assert resolve_role(project(), OTHER, lookup_from({(TEAM, OTHER): ""})) is Role.member

def test_corrupt_stored_role_is_unknown_not_an_error():
    role = resolve_role(project(), OTHER, lookup_from({(TEAM, OTHER): "superadmin"}))
    assert role is Role.unknown

def test_case_variants_of_a_stored_role_are_unknown():
    for stored in ("ADMIN", " admin", "Owner"):
        role = resolve_role(project(), OTHER, lookup_from({(TEAM, OTHER): stored}))
        assert role is Role.unknown
