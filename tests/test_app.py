from __future__ import annotations

from io import BytesIO
from urllib.parse import parse_qs, urlparse

import pytest

from school_portal.core.exceptions import StorageUnavailable

from tests.fakes import PASSWORD, SchoolWorld as W


def csrf(client) -> str:
    return client.get("/login").get_json()["csrf_token"]


def login(client, username: str) -> str:
    """Log in and return the fresh CSRF token of the new session."""
    resp = client.post("/login", data={"username": username, "password": PASSWORD, "csrf_token": csrf(client)})
    assert resp.status_code == 302
    return csrf(client)


def location(resp):
    parsed = urlparse(resp.headers["Location"])
    return parsed.path, {k: v[0] for k, v in parse_qs(parsed.query).items()}


def test_anonymous_is_sent_to_login_with_next(client):
    resp = client.get("/reports/grades?student_id=20")

    path, query = location(resp)
    assert resp.status_code == 302
    assert path == "/login"
    assert query["next"] == "/reports/grades?student_id=20"


def test_login_returns_to_the_remembered_page(client):
    client.get("/reports/attendance")

    resp = client.post("/login", data={"username": "tina", "password": PASSWORD, "csrf_token": csrf(client)})

    assert location(resp)[0] == "/reports/attendance"


def test_login_without_remembered_page_goes_to_dashboard(client):
    resp = client.post("/login", data={"username": "sara", "password": PASSWORD, "csrf_token": csrf(client)})

    assert location(resp)[0] == "/dashboard"
    assert client.get("/dashboard").get_json()["role"] == "student"


def test_login_ignores_offsite_next(client):
    resp = client.post(
        "/login?next=https://evil.example/",
        data={"username": "sara", "password": PASSWORD, "csrf_token": csrf(client)},
    )

    assert location(resp)[0] == "/dashboard"


def test_login_with_wrong_password(client):
    resp = client.post("/login", data={"username": "tina", "password": "nope", "csrf_token": csrf(client)})

    assert resp.status_code == 401


def test_login_with_wrong_csrf_token(client):
    csrf(client)

    resp = client.post("/login", data={"username": "tina", "password": PASSWORD, "csrf_token": "forged"})

    assert resp.status_code == 403
    assert client.get("/login").get_json()["authenticated"] is False


def test_csrf_token_changes_on_login(client):
    before = csrf(client)

    after = login(client, "tina")

    assert after != before


def test_teacher_on_admin_page_goes_to_error_page(client):
    login(client, "tina")

    resp = client.get("/admin/users")

    assert resp.status_code == 302
    assert location(resp)[0] == "/error"


def test_mutation_without_csrf_is_refused_and_not_applied(client, world):
    login(client, "tina")

    resp = client.post("/attendance", json={"enrollment_id": W.SARA_7A, "period_id": W.MATHS_7A_MON, "status": "A"})

    assert resp.status_code == 403
    assert world.attendance.insert_calls == 0


def test_teacher_records_attendance_with_header_token(client, world):
    token = login(client, "tina")

    resp = client.post(
        "/attendance",
        json={"enrollment_id": W.SARA_7A, "period_id": W.MATHS_7A_MON, "status": "A"},
        headers={"X-CSRF-Token": token},
    )

    assert resp.status_code == 200
    assert len(world.attendance.records) == 1


def test_out_of_range_grade_names_the_field(client, container, tina):
    item_id = container.grading_ledger.add_item(tina, class_subject_id=W.MATHS_7A, name="Quiz", max_points=10)
    token = login(client, "tina")

    resp = client.post(
        "/grades",
        json={"enrollment_id": W.SARA_7A, "item_id": item_id, "points": 11, "csrf_token": token},
    )

    assert resp.status_code == 400
    assert resp.get_json()["field"] == "points"


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"name": "Quiz", "max_points": "nan"}, "max_points"),
        ({"name": "Quiz", "max_points": 1000}, "max_points"),
        ({"name": "Quiz", "max_points": 10, "weight": 10}, "weight"),
    ],
)
def test_item_outside_column_range_is_400(client, world, payload, field):
    token = login(client, "tina")

    resp = client.post(f"/assignments/{W.MATHS_7A}/grade-items", json={**payload, "csrf_token": token})

    assert resp.status_code == 400
    assert resp.get_json()["field"] == field
    assert world.grading.items == {}


def test_period_attendance_and_gradebook_pages(client, container, tina):
    container.attendance_ledger.record_status(tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="L")
    login(client, "tina")

    students = client.get(f"/periods/{W.MATHS_7A_MON}/attendance").get_json()["students"]
    book = client.get(f"/assignments/{W.MATHS_7A}/grades").get_json()

    assert [(s["student_id"], s["status"]) for s in students] == [(W.BEN, None), (W.SARA, "L")]
    assert [s["student_id"] for s in book["students"]] == [W.BEN, W.SARA]
    assert book["class_average"] is None
    assert client.get(f"/periods/{W.PHYSICS_7A_MON}/attendance").status_code == 302


def test_teacher_edits_and_deletes_a_period(client, world):
    token = login(client, "tina")

    resp = client.post(
        f"/periods/{W.MATHS_7A_MON}",
        data={"period_date": "2026-10-20", "period_label": "2", "csrf_token": token},
    )
    assert resp.status_code == 200
    assert world.school.periods[W.MATHS_7A_MON].period_label == "2"

    bad = client.post(f"/periods/{W.MATHS_7A_MON}", data={"period_date": "20.10.2026", "period_label": "2", "csrf_token": token})
    assert bad.status_code == 400

    resp = client.post(f"/periods/{W.MATHS_7A_MON}/delete", data={"csrf_token": token})
    assert resp.get_json() == {"period_id": W.MATHS_7A_MON, "deleted": True}
    assert W.MATHS_7A_MON not in world.school.periods


def test_justification_upload_and_download(client, container, tina):
    att_id = container.attendance_ledger.record_status(
        tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A"
    )

    token = login(client, "sara")
    resp = client.post(
        f"/justifications/{att_id}",
        data={"justification": "Dentist", "csrf_token": token, "document": (BytesIO(b"%PDF-1.4"), "note.pdf")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert resp.get_json()["approval_state"] == "PENDING"
    client.post("/logout", data={"csrf_token": token})

    token = login(client, "tina")
    resp = client.get(f"/justifications/{att_id}/document?csrf_token={token}")

    assert resp.status_code == 200
    assert resp.data == b"%PDF-1.4"
    assert resp.mimetype == "application/pdf"
    assert "Sara_Novak_7A_justification.pdf" in resp.headers["Content-Disposition"]
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_download_needs_the_token(client, container, tina, sara):
    att_id = container.attendance_ledger.record_status(
        tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A"
    )
    container.attendance_ledger.submit_justification(sara, attendance_id=att_id, text="Sick")
    login(client, "tina")

    assert client.get(f"/justifications/{att_id}/document").status_code == 403


def test_missing_document_is_404(client, container, tina, sara):
    att_id = container.attendance_ledger.record_status(
        tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A"
    )
    container.attendance_ledger.submit_justification(sara, attendance_id=att_id, text="Sick")
    token = login(client, "tina")

    assert client.get(f"/justifications/{att_id}/document?csrf_token={token}").status_code == 404


def test_other_students_record_is_404(client, container, tina):
    att_id = container.attendance_ledger.record_status(
        tina, enrollment_id=W.SARA_7A, period_id=W.MATHS_7A_MON, status="A"
    )
    token = login(client, "ben")

    resp = client.post(f"/justifications/{att_id}", data={"justification": "Mine?", "csrf_token": token})

    assert resp.status_code == 404


def test_storage_failure_is_503(client, world, monkeypatch):
    def broken(**kwargs):
        raise StorageUnavailable("database down")

    monkeypatch.setattr(world.reports, "attendance_by_assignment", broken)
    login(client, "admin")

    assert client.get("/reports/attendance").status_code == 503


def test_idle_session_times_out(client):
    login(client, "tina")
    with client.session_transaction() as sess:
        sess["last_activity"] = sess["last_activity"] - 4000

    resp = client.get("/dashboard")

    path, query = location(resp)
    assert path == "/login"
    assert query == {"next": "/dashboard", "error": "session_timeout"}
    assert client.get("/login").get_json()["authenticated"] is False


def test_logout_ends_the_session(client):
    token = login(client, "tina")

    client.post("/logout", data={"csrf_token": token})

    assert client.get("/dashboard").status_code == 302


@pytest.mark.parametrize("username", ["admin", "tina", "paula"])
def test_dashboard_for_each_role(client, username):
    login(client, username)

    data = client.get("/dashboard").get_json()

    assert data["username"] == username
    assert data["csrf_token"]
