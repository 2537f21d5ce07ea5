import uuid

from sqlalchemy.exc import IntegrityError

def login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    r = client.post("/auth/redeem", json={"token": r.json()["token"]})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def me(client, jwt: str) -> str:
    return client.get("/users/me", headers=auth(jwt)).json()["id"]

def new_user(client, prefix: str) -> tuple[str, str]:
    jwt = login(client, f"{prefix}-{uuid.uuid4().hex[:8]}@example.com")
    return jwt, me(client, jwt)

def test_creator_leads_the_team(client, owner_jwt):
    r = client.post("/teams", json={"name": "core", "description": "core team"}, headers=auth(owner_jwt))
    assert r.status_code == 200, r.text
    team = r.json()
    assert team["leader_id"] == me(client, owner_jwt)

    r = client.get(f"/teams/{team['id']}/members", headers=auth(owner_jwt))
    assert [(m["user_id"], m["role"]) for m in r.json()] == [(team["leader_id"], "admin")]

    r = client.get("/teams", headers=auth(owner_jwt))
    assert [t["id"] for t in r.json()] == [team["id"]]

def test_outsiders_cannot_see_a_team(client, team_project):
    outsider, _ = new_user(client, "outsider")
    team_id = team_project["team_id"]

    assert client.get(f"/teams/{team_id}", headers=auth(outsider)).status_code == 404
    assert client.get(f"/teams/{team_id}/members", headers=auth(outsider)).status_code == 404
    assert client.get("/teams", headers=auth(outsider)).json() == []

def test_granting_team_roles(client, owner_jwt, team_project):
    team_id = team_project["team_id"]
    admin, admin_id = new_user(client, "admin")
    member, member_id = new_user(client, "member")
    _, other_id = new_user(client, "other")

    # the leader hands out admin
    r = client.post(f"/teams/{team_id}/members", json={"user_id": admin_id, "role": "admin"}, headers=auth(owner_jwt))
    assert r.status_code == 200, r.text

    # an admin can't
    r = client.post(f"/teams/{team_id}/members", json={"user_id": other_id, "role": "admin"}, headers=auth(admin))
    assert r.status_code == 403
    assert r.json()["reason"] == "insufficient-role"

    r = client.post(f"/teams/{team_id}/members", json={"user_id": member_id, "role": "member"}, headers=auth(admin))
    assert r.status_code == 200, r.text

    # members can't add anyone
    r = client.post(f"/teams/{team_id}/members", json={"user_id": other_id, "role": "viewer"}, headers=auth(member))
    assert r.status_code == 403

    r = client.post(f"/teams/{team_id}/members", json={"user_id": member_id, "role": "viewer"}, headers=auth(admin))
    assert r.status_code == 409

    r = client.post(f"/teams/{team_id}/members", json={"user_id": other_id, "role": "superuser"}, headers=auth(admin))
    assert r.status_code == 422

    r = client.post(
        f"/teams/{team_id}/members", json={"user_id": str(uuid.uuid4()), "role": "viewer"}, headers=auth(admin)
    )
    assert r.status_code == 404

    # team roles carry over to the team's projects
    r = client.get(f"/projects/{team_project['project_id']}", headers=auth(member))
    assert r.status_code == 200
    assert r.json()["my_role"] == "member"

def test_leaving_and_removing(client, owner_jwt, team_project):
    team_id = team_project["team_id"]
    leader_id = me(client, owner_jwt)
    admin, admin_id = new_user(client, "admin")
    member, member_id = new_user(client, "member")
    viewer, viewer_id = new_user(client, "viewer")
    for user_id, role in ((admin_id, "admin"), (member_id, "member"), (viewer_id, "viewer")):
        r = client.post(f"/teams/{team_id}/members", json={"user_id": user_id, "role": role}, headers=auth(owner_jwt))
        assert r.status_code == 200, r.text

    r = client.delete(f"/teams/{team_id}/members/{leader_id}", headers=auth(admin))
    assert r.status_code == 400

    r = client.delete(f"/teams/{team_id}/members/{viewer_id}", headers=auth(member))
    assert r.status_code == 403

    # anyone may leave
    r = client.delete(f"/teams/{team_id}/members/{viewer_id}", headers=auth(viewer))
    assert r.status_code == 200
    assert client.get(f"/teams/{team_id}", headers=auth(viewer)).status_code == 404

    r = client.delete(f"/teams/{team_id}/members/{member_id}", headers=auth(admin))
    assert r.status_code == 200

    r = client.delete(f"/teams/{team_id}/members/{admin_id}", headers=auth(owner_jwt))
    assert r.status_code == 200

    r = client.delete(f"/teams/{team_id}/members/{admin_id}", headers=auth(owner_jwt))
    assert r.status_code == 404

def test_deleting_a_team_keeps_its_projects(client, owner_jwt, team_project):
    team_id, project_id = team_project["team_id"], team_project["project_id"]
    member, member_id = new_user(client, "member")
    r = client.post(f"/teams/{team_id}/members", json={"user_id": member_id, "role": "admin"}, headers=auth(owner_jwt))
    assert r.status_code == 200

    r = client.delete(f"/teams/{team_id}", headers=auth(member))
    assert r.status_code == 403

    r = client.delete(f"/teams/{team_id}", headers=auth(owner_jwt))
    assert r.status_code == 200, r.text

    r = client.get(f"/projects/{project_id}", headers=auth(owner_jwt))
    assert r.status_code == 200
    assert r.json()["team_id"] is None

    r = client.get(f"/projects/{project_id}", headers=auth(member))
    assert r.status_code == 403
    assert r.json()["reason"] == "not-a-member"

def test_updating_a_team(client, owner_jwt, team_project):
    team_id = team_project["team_id"]
    admin, admin_id = new_user(client, "admin")
    member, member_id = new_user(client, "member")
    outsider, _ = new_user(client, "outsider")
    for user_id, role in ((admin_id, "admin"), (member_id, "member")):
        r = client.post(f"/teams/{team_id}/members", json={"user_id": user_id, "role": role}, headers=auth(owner_jwt))
        assert r.status_code == 200, r.text

    r = client.patch(f"/teams/{team_id}", json={"description": "ships things"}, headers=auth(admin))
    assert r.status_code == 200, r.text
    assert r.json()["description"] == "ships things"

    r = client.patch(f"/teams/{team_id}", json={"name": "renamed", "description": None}, headers=auth(owner_jwt))
    assert r.status_code == 200
    assert r.json()["name"] == "renamed"
    assert r.json()["description"] is None

    # null name is ignored rather than blanking the team
    r = client.patch(f"/teams/{team_id}", json={"name": None}, headers=auth(owner_jwt))
    assert r.json()["name"] == "renamed"

    r = client.patch(f"/teams/{team_id}", json={"name": "nope"}, headers=auth(member))
    assert r.status_code == 403
    assert r.json()["reason"] == "insufficient-role"

    assert client.patch(f"/teams/{team_id}", json={"name": "nope"}, headers=auth(outsider)).status_code == 404

def test_concurrent_duplicate_team_add_is_a_conflict(client, db_session, owner_jwt, team_project, monkeypatch):
    team_id = team_project["team_id"]
    _, other_id = new_user(client, "other")

    def duplicate_key():
        raise IntegrityError("INSERT INTO team_members", {}, Exception("UNIQUE constraint failed"))

    with monkeypatch.context() as m:
        m.setattr(db_session, "commit", duplicate_key)
        r = client.post(f"/teams/{team_id}/members", json={"user_id": other_id, "role": "member"}, headers=auth(owner_jwt))
    assert r.status_code == 409

    r = client.get(f"/teams/{team_id}/members", headers=auth(owner_jwt))
    assert other_id not in [m["user_id"] for m in r.json()]
