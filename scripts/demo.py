from __future__ import annotations

import os
import time

import requests
from rich import print

BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")

def _headers(jwt: str | None) -> dict[str, str]:
    headers = {"content-type": "application/json"}
    if jwt:
        headers["authorization"] = f"bearer {jwt}"
    return headers

def post(path: str, *, jwt: str | None = None, json: dict | None = None) -> requests.Response:
    return requests.post(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def patch(path: str, *, jwt: str | None = None, json: dict | None = None) -> requests.Response:
    return requests.patch(f"{BASE}{path}", headers=_headers(jwt), json=json, timeout=10)

def get(path: str, *, jwt: str | None = None) -> requests.Response:
    return requests.get(f"{BASE}{path}", headers=_headers(jwt), timeout=10)

def delete(path: str, *, jwt: str | None = None) -> requests.Response:
    return requests.delete(f"{BASE}{path}", headers=_headers(jwt), timeout=10)

def login(email: str) -> str:
    r = post("/auth/request-link", json={"email": email})
    r.raise_for_status()
    token = r.json()["token"]

    r2 = post("/auth/redeem", json={"token": token})
    r2.raise_for_status()
    return r2.json()["access_token"]

def me(jwt: str) -> str:
    r = get("/users/me", jwt=jwt)
    r.raise_for_status()
    return r.json()["id"]

def wait_ready(timeout_s: float = 30.0) -> None:
    deadline = time.time() + timeout_s
    last_err: Exception | None = None

    while time.time() < deadline:
        try:
            r = get("/ready")
            if r.status_code == 200:
                return
        except requests.RequestException as e:
            last_err = e
        time.sleep(0.5)

    if last_err:
        raise RuntimeError(f"api not ready after {timeout_s}s (last error: {last_err})")
    raise RuntimeError(f"api not ready after {timeout_s}s")

def main() -> None:
    print("[bold]demo: auth -> team -> project -> task -> permission checks[/bold]")

    wait_ready()
    print("[green]ready ok[/green]")

    owner_jwt = login("owner@example.com")
    assignee_jwt = login("assignee@example.com")
    assignee_id = me(assignee_jwt)
    print("users authed")

    r = post("/teams", jwt=owner_jwt, json={"name": f"demo team {int(time.time())}"})
    r.raise_for_status()
    team_id = r.json()["id"]

    r = post("/projects", jwt=owner_jwt, json={"name": "demo project", "team_id": team_id})
    r.raise_for_status()
    project_id = r.json()["id"]
    print("created project:", project_id)

    r = post(f"/projects/{project_id}/members", jwt=owner_jwt, json={"user_id": assignee_id, "role": "member"})
    r.raise_for_status()
    print("added member:", assignee_id)

    r = post(
        f"/projects/{project_id}/tasks",
        jwt=owner_jwt,
        json={"title": "demo task", "assignee_id": assignee_id},
    )
    r.raise_for_status()
    task_id = r.json()["id"]
    print("created task:", task_id)

    r = patch(f"/tasks/{task_id}", jwt=assignee_jwt, json={"status": "in_progress"})
    print("assignee update ->", r.status_code)

    r = delete(f"/tasks/{task_id}", jwt=assignee_jwt)
    print("assignee delete ->", r.status_code, r.json().get("reason"))

    r = get("/notifications", jwt=assignee_jwt)
    r.raise_for_status()
    print("assignee notifications:", len(r.json()))
    print("[bold green]demo complete[/bold green]")

if __name__ == "__main__":
    main()
