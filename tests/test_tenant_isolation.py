def login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200
    token = r.json()["token"]
    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200
    return r.json()["access_token"]

def auth_headers(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def create_team_project(client, jwt: str, name: str) -> tuple[str, str]:
    r = client.post("/teams", json={"name": f"team-{name}"}, headers=auth_headers(jwt))
    assert r.status_code == 200
    team_id = r.json()["id"]

    r = client.post("/projects", json={"name": name, "team_id": team_id}, headers=auth_headers(jwt))
    assert r.status_code == 200
    return team_id, r.json()["id"]

def test_projects_are_isolated_between_teams(client):
    a = login(client, "a@example.com")
    b = login(client, "b@example.com")

    team_a, project_a = create_team_project(client, a, "p-a")
    _, project_b = create_team_project(client, b, "p-b")

    r = client.get("/projects", headers=auth_headers(b))
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == [project_b]

    # b is not on team a, so every route on a's project is denied (even if you guessed the id)
    for r in (
        client.get(f"/projects/{project_a}", headers=auth_headers(b)),
        client.patch(f"/projects/{project_a}", json={"name": "hacked"}, headers=auth_headers(b)),
        client.delete(f"/projects/{project_a}", headers=auth_headers(b)),
        client.get(f"/projects/{project_a}/members", headers=auth_headers(b)),
    ):
        assert r.status_code == 403
        assert r.json()["reason"] == "not-a-member"

    # can't plant a project inside someone else's team either
    r = client.post("/projects", json={"name": "squatter", "team_id": team_a}, headers=auth_headers(b))
    assert r.status_code == 403
    assert r.json()["reason"] == "not-a-member"

def test_missing_resources_are_404(client):
    a = login(client, "a404@example.com")
    missing = "00000000-0000-0000-0000-000000000000"

    assert client.get(f"/projects/{missing}", headers=auth_headers(a)).status_code == 404
    assert client.get(f"/tasks/{missing}", headers=auth_headers(a)).status_code == 404
    assert client.delete(f"/comments/{missing}", headers=auth_headers(a)).status_code == 404
    assert client.get(f"/attachments/{missing}/download", headers=auth_headers(a)).status_code == 404

def test_my_tasks_drop_projects_i_left(client):
    a = login(client, "lead@example.com")
    b = login(client, "worker@example.com")
    b_id = client.get("/users/me", headers=auth_headers(b)).json()["id"]

    _, project_id = create_team_project(client, a, "p-shared")
    r = client.post(
        f"/projects/{project_id}/members",
        json={"user_id": b_id, "role": "member"},
        headers=auth_headers(a),
    )
    assert r.status_code == 200

    r = client.post(
        f"/projects/{project_id}/tasks",
        json={"title": "for b", "assignee_id": b_id},
        headers=auth_headers(a),
    )
    assert r.status_code == 200

    r = client.get("/users/me/tasks", headers=auth_headers(b))
    assert [t["title"] for t in r.json()] == ["for b"]

    r = client.delete(f"/projects/{project_id}/members/{b_id}", headers=auth_headers(a))
    assert r.status_code == 200

    r = client.get("/users/me/tasks", headers=auth_headers(b))
    assert r.status_code == 200
    assert r.json() == []

def test_project_listing_pages(client):
    a = login(client, "pager@example.com")
    for i in range(5):
        r = client.post("/projects", json={"name": f"p{i}"}, headers=auth_headers(a))
        assert r.status_code == 200

    first = client.get("/projects", params={"limit": 2}, headers=auth_headers(a)).json()
    second = client.get("/projects", params={"limit": 2, "page": 2}, headers=auth_headers(a)).json()
    third = client.get("/projects", params={"limit": 2, "page": 3}, headers=auth_headers(a)).json()

    assert [len(p) for p in (first, second, third)] == [2, 2, 1]
    ids = [p["id"] for p in first + second + third]
    assert len(set(ids)) == 5

    assert client.get("/projects", params={"page": 0}, headers=auth_headers(a)).status_code == 422
    assert client.get("/projects", params={"limit": 1000}, headers=auth_headers(a)).status_code == 422
