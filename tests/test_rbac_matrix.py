import uuid

from sqlalchemy.orm import Session

from portal.auth.tokens import issue_access_token
from portal.models.enums import UserRole
from portal.models.user import User

def auth(user: User) -> dict[str, str]:
    return {"authorization": f"bearer {issue_access_token(user.id)}"}

def create_project(client, user: User, name: str = "p") -> dict:
    r = client.post("/projects", json={"name": name}, headers=auth(user))
    assert r.status_code == 200, r.text
    return r.json()

def project_roles(client, user: User, project_id: str) -> dict[str, str]:
    r = client.get(f"/projects/{project_id}/roles", headers=auth(user))
    assert r.status_code == 200, r.text
    return {role["name"]: role["id"] for role in r.json()}

def add_member(client, manager: User, project_id: str, user: User, role_id: str | None = None) -> int:
    body = {"user_id": str(user.id)}
    if role_id is not None:
        body["project_role_id"] = role_id
    r = client.post(f"/projects/{project_id}/members", json=body, headers=auth(manager))
    return r.status_code

def create_task(client, user: User, project_id: str, title: str) -> tuple[int, dict]:
    r = client.post(f"/projects/{project_id}/tasks", json={"title": title}, headers=auth(user))
    return r.status_code, r.json()

def test_requires_bearer_token(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"authorization": "bearer nope"}).status_code == 401

def test_inactive_user_rejected(client, db_session: Session, make_user):
    u = make_user(UserRole.analyst)
    u.is_active = False
    db_session.commit()
    assert client.get("/me", headers=auth(u)).status_code == 403

def test_project_manager_bootstraps_project(client, make_user):
    pm = make_user(UserRole.project_manager, name="Pat")
    p = create_project(client, pm, "apollo")

    assert [m["user_id"] for m in p["team_members"]] == [str(pm.id)]
    assert p["team_members"][0]["project_role_name"] == "Project Admin"
    assert set(project_roles(client, pm, p["id"])) == {"Project Admin", "Developer", "Reviewer", "Observer"}

    r = client.get("/me", headers=auth(pm))
    assert r.json()["projects"] == [p["id"]]

def test_analyst_cannot_create_projects(client, make_user):
    analyst = make_user(UserRole.analyst)
    r = client.post("/projects", json={"name": "nope"}, headers=auth(analyst))
    assert r.status_code == 403

def test_project_visibility(client, make_user):
    pm = make_user(UserRole.project_manager)
    member = make_user(UserRole.analyst)
    outsider = make_user(UserRole.analyst)
    finance = make_user(UserRole.finance_incharge)

    p = create_project(client, pm)
    assert add_member(client, pm, p["id"], member) == 200

    assert client.get(f"/projects/{p['id']}", headers=auth(member)).status_code == 200
    assert client.get(f"/projects/{p['id']}", headers=auth(outsider)).status_code == 403
    assert client.get(f"/projects/{p['id']}", headers=auth(finance)).status_code == 200

    assert [x["id"] for x in client.get("/projects", headers=auth(member)).json()] == [p["id"]]
    assert client.get("/projects", headers=auth(outsider)).json() == []
    assert [x["id"] for x in client.get("/projects", headers=auth(finance)).json()] == [p["id"]]

def test_only_the_managing_pm_edits_membership(client, make_user):
    pm = make_user(UserRole.project_manager)
    other_pm = make_user(UserRole.project_manager)
    finance = make_user(UserRole.finance_incharge)
    analyst = make_user(UserRole.analyst)

    p = create_project(client, pm)
    assert add_member(client, other_pm, p["id"], analyst) == 403
    assert add_member(client, finance, p["id"], analyst) == 403
    assert add_member(client, pm, p["id"], analyst) == 200
    assert add_member(client, pm, p["id"], analyst) == 409

    r = client.delete(f"/projects/{p['id']}/members/{analyst.id}", headers=auth(pm))
    assert r.status_code == 200
    r = client.delete(f"/projects/{p['id']}/members/{analyst.id}", headers=auth(pm))
    assert r.status_code == 404

def test_project_role_grants_add_to_system_role(client, make_user):
    pm = make_user(UserRole.project_manager)
    analyst = make_user(UserRole.analyst)
    p = create_project(client, pm)
    roles = project_roles(client, pm, p["id"])

    assert add_member(client, pm, p["id"], analyst) == 200  # observer by default
    status, task = create_task(client, pm, p["id"], "t1")
    assert status == 200

    # analyst system role has no tasks:delete, observer neither
    r = client.delete(f"/projects/{p['id']}/tasks/{task['id']}", headers=auth(analyst))
    assert r.status_code == 403

    r = client.patch(
        f"/projects/{p['id']}/members/{analyst.id}",
        json={"project_role_id": roles["Developer"]},
        headers=auth(pm),
    )
    assert r.status_code == 200
    assert r.json()["project_role_name"] == "Developer"

    r = client.delete(f"/projects/{p['id']}/tasks/{task['id']}", headers=auth(analyst))
    assert r.status_code == 200

def test_system_grant_needs_the_project_in_scope(client, make_user):
    pm = make_user(UserRole.project_manager)
    qa = make_user(UserRole.qa_manager)
    p = create_project(client, pm)
    assert create_task(client, pm, p["id"], "secret")[0] == 200

    # qa_manager tasks scope is project, which only reaches their own projects
    assert client.get(f"/projects/{p['id']}/tasks", headers=auth(qa)).status_code == 403
    assert create_task(client, qa, p["id"], "from qa")[0] == 403

    assert add_member(client, pm, p["id"], qa) == 200
    # observer has no tasks:create, the system role supplies it
    assert create_task(client, qa, p["id"], "from qa")[0] == 200
    titles = {t["title"] for t in client.get(f"/projects/{p['id']}/tasks", headers=auth(qa)).json()}
    assert titles == {"secret", "from qa"}

def test_task_listing_respects_scope(client, make_user):
    pm = make_user(UserRole.project_manager)
    member = make_user(UserRole.analyst)
    guest = make_user(UserRole.analyst)
    outsider = make_user(UserRole.analyst)
    p = create_project(client, pm)

    no_grants = {
        m: {"actions": [], "scope": "none"}
        for m in ("finance", "documents", "projects", "assets", "tasks", "announcements", "rbac")
    }
    r = client.post(f"/projects/{p['id']}/roles", json={"name": "Guest", "permissions": no_grants}, headers=auth(pm))
    assert r.status_code == 200, r.text
    assert add_member(client, pm, p["id"], member) == 200
    assert add_member(client, pm, p["id"], guest, role_id=r.json()["id"]) == 200

    assert create_task(client, pm, p["id"], "pm task")[0] == 200
    assert create_task(client, guest, p["id"], "guest task")[0] == 200

    # observer role widens the member's read scope to the project
    titles = {t["title"] for t in client.get(f"/projects/{p['id']}/tasks", headers=auth(member)).json()}
    assert titles == {"pm task", "guest task"}

    # analyst system scope is own
    titles = {t["title"] for t in client.get(f"/projects/{p['id']}/tasks", headers=auth(guest)).json()}
    assert titles == {"guest task"}

    # own scope does not reach projects the user is not part of
    assert create_task(client, outsider, p["id"], "outsider task")[0] == 403
    assert client.get(f"/projects/{p['id']}/tasks", headers=auth(outsider)).status_code == 403

def test_read_only_project_role_does_not_widen_edits(client, make_user):
    pm = make_user(UserRole.project_manager)
    observer = make_user(UserRole.analyst)
    p = create_project(client, pm)
    assert add_member(client, pm, p["id"], observer) == 200
    _, task = create_task(client, pm, p["id"], "pm task")

    # observer reads the whole project but still only edits at own scope
    r = client.patch(
        f"/projects/{p['id']}/tasks/{task['id']}", json={"title": "hacked"}, headers=auth(observer)
    )
    assert r.status_code == 403
    r = client.delete(f"/projects/{p['id']}/tasks/{task['id']}", headers=auth(observer))
    assert r.status_code == 403

    r = client.patch(
        f"/projects/{p['id']}/tasks/{task['id']}",
        json={"status": "in_progress", "assigned_to": str(observer.id)},
        headers=auth(pm),
    )
    assert r.status_code == 200
    assert r.json()["status"] == "in_progress"

    # assignee may now edit
    r = client.patch(
        f"/projects/{p['id']}/tasks/{task['id']}", json={"title": "mine now"}, headers=auth(observer)
    )
    assert r.status_code == 200
    assert r.json()["title"] == "mine now"

def test_task_assignee_must_be_a_project_member(client, make_user):
    pm = make_user(UserRole.project_manager)
    outsider = make_user(UserRole.analyst)
    p = create_project(client, pm)
    url = f"/projects/{p['id']}/tasks"

    r = client.post(url, json={"title": "t", "assigned_to": str(uuid.uuid4())}, headers=auth(pm))
    assert r.status_code == 404
    r = client.post(url, json={"title": "t", "assigned_to": str(outsider.id)}, headers=auth(pm))
    assert r.status_code == 400

    status, task = create_task(client, pm, p["id"], "t")
    assert status == 200
    r = client.patch(f"{url}/{task['id']}", json={"title": "x", "assigned_to": str(outsider.id)}, headers=auth(pm))
    assert r.status_code == 400

    [t] = client.get(url, headers=auth(pm)).json()
    assert t["title"] == "t"
    assert t["assigned_to"] is None

def test_unrelated_pm_cannot_edit_or_delete_project(client, make_user):
    pm = make_user(UserRole.project_manager)
    other_pm = make_user(UserRole.project_manager)
    root = make_user(UserRole.superuser)
    p = create_project(client, pm, "apollo")

    r = client.patch(f"/projects/{p['id']}", json={"name": "taken"}, headers=auth(other_pm))
    assert r.status_code == 403
    r = client.delete(f"/projects/{p['id']}", headers=auth(other_pm))
    assert r.status_code == 403
    assert client.get(f"/projects/{p['id']}", headers=auth(pm)).json()["name"] == "apollo"

    r = client.patch(f"/projects/{p['id']}", json={"name": "renamed"}, headers=auth(pm))
    assert r.status_code == 200
    r = client.patch(f"/projects/{p['id']}", json={"code": "R"}, headers=auth(root))
    assert r.status_code == 200
    assert r.json()["name"] == "renamed"

def test_malformed_project_ids_are_skipped(client, db_session: Session, make_user):
    pm = make_user(UserRole.project_manager)
    p = create_project(client, pm)
    db_session.refresh(pm)
    pm.projects = ["not-a-uuid", *pm.projects]
    db_session.commit()

    r = client.get("/projects", headers=auth(pm))
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == [p["id"]]

def test_project_roles_admin(client, make_user):
    pm = make_user(UserRole.project_manager)
    member = make_user(UserRole.analyst)
    p = create_project(client, pm)
    assert add_member(client, pm, p["id"], member) == 200
    roles = project_roles(client, pm, p["id"])

    body = {
        "name": "Contractor",
        "permissions": {
            m: {"actions": ["read"], "scope": "project"}
            for m in ("finance", "documents", "projects", "assets", "tasks", "announcements", "rbac")
        },
    }
    r = client.post(f"/projects/{p['id']}/roles", json=body, headers=auth(member))
    assert r.status_code == 403

    r = client.post(f"/projects/{p['id']}/roles", json=body, headers=auth(pm))
    assert r.status_code == 200, r.text
    custom_id = r.json()["id"]
    assert r.json()["is_default"] is False

    # all seven modules are required
    partial = {"name": "Broken", "permissions": {"tasks": {"actions": ["read"], "scope": "project"}}}
    r = client.post(f"/projects/{p['id']}/roles", json=partial, headers=auth(pm))
    assert r.status_code == 422

    r = client.patch(
        f"/projects/{p['id']}/roles/{roles['Observer']}", json={"name": "Watcher"}, headers=auth(pm)
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Observer"

    r = client.delete(f"/projects/{p['id']}/roles/{roles['Observer']}", headers=auth(pm))
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete default project roles"

    r = client.delete(f"/projects/{p['id']}/roles/{custom_id}", headers=auth(pm))
    assert r.status_code == 200

def test_system_roles_admin(client, make_user):
    root = make_user(UserRole.analyst, email="root@example.com")
    pm = make_user(UserRole.project_manager)

    assert client.get("/roles", headers=auth(pm)).status_code == 403

    r = client.get("/roles", headers=auth(root))
    assert r.status_code == 200
    assert {x["id"] for x in r.json()} == {t.value for t in UserRole}

    r = client.patch("/roles/analyst", json={"name": "Intern", "description": "d"}, headers=auth(root))
    assert r.status_code == 200
    assert r.json()["name"] == "Analyst"
    assert r.json()["description"] == "d"

    r = client.delete("/roles/analyst", headers=auth(root))
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete system roles"

def test_me_reports_flags_and_matrix(client, make_user):
    finance = make_user(UserRole.finance_incharge)
    pm = make_user(UserRole.project_manager)
    p = create_project(client, pm)

    me = client.get("/me", headers=auth(finance)).json()
    assert me["can_access_sensitive_data"] is True
    assert me["is_super_admin"] is False

    me = client.get("/me", headers=auth(pm)).json()
    assert me["can_access_all_projects"] is False

    r = client.get("/me/permissions", params={"project_id": p["id"]}, headers=auth(pm))
    assert r.status_code == 200
    body = r.json()
    assert body["project_role"] == "Project Admin"
    assert body["permissions"]["tasks"] == ["create", "read", "update", "delete"]
    assert body["permissions"]["rbac"] == ["read"]

def test_pm_deletes_own_project(client, make_user):
    pm = make_user(UserRole.project_manager)
    p = create_project(client, pm)

    r = client.delete(f"/projects/{p['id']}", headers=auth(pm))
    assert r.status_code == 200
    assert client.get(f"/projects/{p['id']}", headers=auth(pm)).status_code == 404
    assert client.get("/me", headers=auth(pm)).json()["projects"] == []

def test_user_administration(client, make_user):
    root = make_user(UserRole.superuser)
    pm = make_user(UserRole.project_manager)

    body = {"email": "New.Hire@Example.com", "display_name": "New Hire"}
    assert client.post("/users", json=body, headers=auth(pm)).status_code == 403

    r = client.post("/users", json=body, headers=auth(root))
    assert r.status_code == 200, r.text
    created = r.json()
    assert created["email"] == "new.hire@example.com"
    assert created["role"] == "analyst"
    assert created["projects"] == []

    assert client.post("/users", json=body, headers=auth(root)).status_code == 409

    r = client.patch(f"/users/{created['id']}", json={"role": "qa_manager"}, headers=auth(root))
    assert r.status_code == 200
    assert r.json()["role"] == "qa_manager"

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json()["checks"] == {"db": True}
