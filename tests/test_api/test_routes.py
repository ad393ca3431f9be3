"""
End-to-end route tests: global security dependency, transparent scoping and the
single-resource 403 path.

The app runs against the seeded test DB; the id of each demo user is its bearer token
(see welfare.db.init_db).
"""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import select

from welfare.db.filters import attach_authz
from welfare.db.session import get_db
from welfare.main import create_app
from welfare.models.programs import Application
from welfare.models.security import Region
from welfare.security.config import load_security_config

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "security_config.yaml"


@pytest.fixture
def client(seeded, session_factory):
    def _test_db(request: Request):
        db = session_factory()
        try:
            authz = getattr(request.state, "authz", None)
            if authz is not None:
                attach_authz(db, authz)
            yield db
        finally:
            db.close()

    app = create_app()
    app.state.security_config = load_security_config(CONFIG_PATH)
    app.dependency_overrides[get_db] = _test_db
    return TestClient(app)


@pytest.fixture
def ids(seeded):
    regions = {r.code: r.id for r in seeded.scalars(select(Region)).all()}
    applications = {a.application_number: a.id for a in seeded.scalars(select(Application)).all()}
    return {**regions, **applications}


def as_user(user_id):
    return {"Authorization": f"Bearer {user_id}"}


# ---- Authentication -------------------------------------------------------------------


def test_health_is_public(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_missing_token_is_401(client):
    assert client.get("/applications").status_code == 401


def test_malformed_header_is_400(client):
    assert client.get("/applications", headers={"Authorization": "Token 3"}).status_code == 400
    assert client.get("/applications", headers={"Authorization": "Bearer abc"}).status_code == 400


def test_unknown_user_is_401(client):
    assert client.get("/me", headers=as_user(999)).status_code == 401


def test_me_returns_scope(client, ids):
    body = client.get("/me", headers=as_user(3)).json()
    assert body["role"] == "district_admin"
    assert [r["id"] for r in body["regions"]] == [ids["KL-KKD"]]


def test_route_roles_from_config(client):
    assert client.get("/donors", headers=as_user(8)).status_code == 403
    assert client.get("/admin/users", headers=as_user(7)).status_code == 403


# ---- Lists are scoped -------------------------------------------------------------------


def _numbers(response):
    assert response.status_code == 200, response.text
    return sorted(a["application_number"] for a in response.json())


@pytest.mark.parametrize(
    "user_id, expected",
    [
        (1, ["APP-0001", "APP-0002", "APP-0003"]),
        (2, ["APP-0001", "APP-0002", "APP-0003"]),
        (3, ["APP-0001", "APP-0002"]),
        (4, ["APP-0001"]),
        (5, ["APP-0001"]),
        (6, []),
        (7, ["APP-0001"]),
        (8, ["APP-0001"]),
    ],
)
def test_application_list_is_scoped(client, user_id, expected):
    assert _numbers(client.get("/applications", headers=as_user(user_id))) == expected


def test_list_filters_combine_with_scope(client):
    assert _numbers(client.get("/applications", params={"status": "under_review"}, headers=as_user(3))) == ["APP-0002"]
    assert _numbers(client.get("/applications", params={"status": "approved"}, headers=as_user(3))) == []
    assert _numbers(client.get("/applications", params={"search": "0003"}, headers=as_user(1))) == ["APP-0003"]


def test_stats_are_scoped(client):
    body = client.get("/applications/stats", headers=as_user(4)).json()
    assert body["total"] == 1
    assert body["by_status"]["pending"] == 1


def test_programs_are_scoped(client):
    projects = client.get("/projects", headers=as_user(4)).json()
    assert [p["code"] for p in projects] == ["EDU-2025"]
    schemes = client.get("/schemes", headers=as_user(3)).json()
    assert sorted(s["code"] for s in schemes) == ["SCH-ROOF", "SCH-SCHOL"]


def test_finance_lists_are_scoped(client):
    assert len(client.get("/donors", headers=as_user(3)).json()) == 1
    assert len(client.get("/donors", headers=as_user(2)).json()) == 2
    assert client.get("/payments", headers=as_user(3)).json() == []
    assert len(client.get("/payments", headers=as_user(1)).json()) == 1


def test_beneficiary_sees_only_self(client):
    body = client.get("/beneficiaries", headers=as_user(8)).json()
    assert [b["name"] for b in body] == ["Bina Beneficiary"]


# ---- Single resources ---------------------------------------------------------------------


def test_single_application_in_scope(client, ids):
    response = client.get(f"/applications/{ids['APP-0001']}", headers=as_user(5))
    assert response.status_code == 200
    assert response.json()["history"] == []


def test_single_application_out_of_scope_is_403_without_data(client, ids):
    response = client.get(f"/applications/{ids['APP-0002']}", headers=as_user(4))
    assert response.status_code == 403
    assert response.json() == {"detail": "Access denied"}


def test_missing_application_is_404(client):
    assert client.get("/applications/9999", headers=as_user(1)).status_code == 404


def test_single_beneficiary_out_of_scope_is_403(client):
    response = client.get("/beneficiaries", headers=as_user(1)).json()
    meera = next(b for b in response if b["name"] == "Meera")
    assert client.get(f"/beneficiaries/{meera['id']}", headers=as_user(3)).status_code == 403
    assert client.get(f"/beneficiaries/{meera['id']}", headers=as_user(2)).status_code == 200


# ---- Status changes -----------------------------------------------------------------------


def test_area_admin_moves_application_to_review(client, ids):
    url = f"/applications/{ids['APP-0001']}/status"
    response = client.put(url, json={"status": "under_review", "comment": "Checked"}, headers=as_user(4))
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "under_review"

    detail = client.get(f"/applications/{ids['APP-0001']}", headers=as_user(4)).json()
    assert [(h["from_status"], h["to_status"]) for h in detail["history"]] == [("pending", "under_review")]


def test_invalid_transition_is_400(client, ids):
    url = f"/applications/{ids['APP-0001']}/status"
    assert client.put(url, json={"status": "approved"}, headers=as_user(4)).status_code == 400


def test_status_change_outside_scope_is_403(client, ids):
    url = f"/applications/{ids['APP-0002']}/status"
    assert client.put(url, json={"status": "approved"}, headers=as_user(4)).status_code == 403


def test_status_change_requires_reviewer_role(client, ids):
    url = f"/applications/{ids['APP-0001']}/status"
    response = client.put(url, json={"status": "under_review"}, headers=as_user(5))
    assert response.status_code == 403
    assert "Insufficient role" in response.json()["detail"]


# ---- User administration ------------------------------------------------------------------


def test_district_admin_lists_manageable_users(client):
    body = client.get("/admin/users", headers=as_user(3)).json()
    assert [u["id"] for u in body] == [3, 4, 5]


def test_super_admin_assigns_scope_to_new_unit_admin(client, ids):
    response = client.put(
        "/admin/users/6/role",
        json={"role": "unit_admin", "region_ids": [ids["FRK-U2"]]},
        headers=as_user(1),
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["scope_level"] == "unit"
    assert [r["id"] for r in body["regions"]] == [ids["FRK-U2"]]

    assert _numbers(client.get("/applications", headers=as_user(6))) == []


def test_area_admin_reassigns_unit_inside_its_area(client, ids):
    response = client.put(
        "/admin/users/5/role",
        json={"role": "unit_admin", "region_ids": [ids["FRK-U2"]]},
        headers=as_user(4),
    )
    assert response.status_code == 200, response.text
    assert _numbers(client.get("/applications", headers=as_user(5))) == []


def test_grant_outside_actor_scope_is_403(client, ids):
    response = client.put(
        "/admin/users/5/role",
        json={"role": "unit_admin", "region_ids": [ids["TIR-U1"]]},
        headers=as_user(4),
    )
    assert response.status_code == 403


def test_role_escalation_is_403(client, ids):
    response = client.put(
        "/admin/users/4/role",
        json={"role": "state_admin"},
        headers=as_user(3),
    )
    assert response.status_code == 403


def test_unmanageable_user_is_403(client, ids):
    response = client.put(
        "/admin/users/6/role",
        json={"role": "unit_admin", "region_ids": [ids["FRK-U1"]]},
        headers=as_user(4),
    )
    assert response.status_code == 403


def test_region_level_must_match_role(client, ids):
    response = client.put(
        "/admin/users/6/role",
        json={"role": "unit_admin", "region_ids": [ids["KKD-FRK"]]},
        headers=as_user(1),
    )
    assert response.status_code == 400


def test_unknown_user_is_404(client):
    assert client.put("/admin/users/999/role", json={"role": "beneficiary"}, headers=as_user(1)).status_code == 404


def test_region_children_within_scope(client, ids):
    body = client.get(f"/admin/regions/{ids['KKD-FRK']}/children", headers=as_user(4)).json()
    assert [r["code"] for r in body] == ["FRK-U1", "FRK-U2"]


def test_region_children_outside_scope_is_403(client, ids):
    assert client.get(f"/admin/regions/{ids['KL-KKD']}/children", headers=as_user(4)).status_code == 403
    assert client.get("/admin/regions/9999/children", headers=as_user(4)).status_code == 404


def test_regional_role_cannot_receive_project_grants(client, ids):
    response = client.put(
        "/admin/users/6/role",
        json={"role": "district_admin", "region_ids": [ids["KL-KKD"]], "project_ids": [1]},
        headers=as_user(1),
    )
    assert response.status_code == 403
