import re

import pytest
from fastapi.testclient import TestClient

from backend.app.core.exceptions import BatchCommitError
from backend.app.core.security import get_password_hash
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.dependencies.services import get_document_store
from backend.app.main import app
from backend.app.models.document import Document
from backend.app.models.enrollment_form import EnrollmentForm
from backend.app.models.user import ROLE_ADMIN, ROLE_PARENT, User
from backend.app.services.document_store import DocumentStore


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


class RejectingDocumentStore(DocumentStore):
    def batch_write(self, writes):
        raise BatchCommitError("Failed to save enrollment records. Nothing was written.")


def create_user_and_login(client: TestClient, email: str, password: str, role: str = ROLE_ADMIN) -> str:
    db = SessionLocal()
    db.add(User(email=email, hashed_password=get_password_hash(password), role=role))
    db.commit()
    db.close()
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def start_form(client: TestClient, token: str) -> dict:
    response = client.post("/enrollments/", headers=auth(token))
    assert response.status_code == 201
    return response.json()


def fill_student(client: TestClient, token: str, form_id: int, **overrides):
    payload = {"full_name": "Amit Kumar", "class_name": "5B", "date_of_birth": "2015-03-01"}
    payload.update(overrides)
    response = client.patch(f"/enrollments/{form_id}/student", json=payload, headers=auth(token))
    assert response.status_code == 200
    return response.json()


def fill_guardian(client: TestClient, token: str, form_id: int, index: int, full_name: str, phone="9876543210"):
    response = client.patch(
        f"/enrollments/{form_id}/guardians/{index}",
        json={"full_name": full_name, "phone_number": phone},
        headers=auth(token),
    )
    assert response.status_code == 200
    return response.json()


def advance_to_review(client: TestClient, token: str, form_id: int):
    for _ in range(2):
        response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
        assert response.status_code == 200
    assert response.json()["form"]["step"]["title"] == "Review"


def rejecting_document_store():
    db = SessionLocal()
    try:
        yield RejectingDocumentStore(db)
    finally:
        db.close()


def test_new_form_starts_on_student_step_with_one_primary_guardian():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form = start_form(client, token)
    assert form["step_index"] == 0
    assert form["step"]["title"] == "Student"
    assert form["status"] == "idle"
    assert len(form["guardians"]) == 1
    assert form["guardians"][0]["is_primary"] is True
    assert form["guardians"][0]["relationship"] == "Parent"


def test_full_wizard_flow_enrolls_student():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]

    response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"full_name", "class_name", "date_of_birth"}

    fill_student(client, token, form_id)
    response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["form"]["step_index"] == 1

    response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    assert response.status_code == 422
    assert response.json()["errors"]["guardians.0.full_name"] == "Full name is required"

    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    assert response.json()["form"]["step"]["title"] == "Review"

    review = client.get(f"/enrollments/{form_id}/review", headers=auth(token)).json()
    assert review["student"]["full_name"] == "Amit Kumar"
    assert [g["full_name"] for g in review["guardians"]] == ["Sunita Kumar"]

    response = client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    assert response.status_code == 200
    body = response.json()
    result = body["result"]
    assert result["status"] == "succeeded"
    assert re.fullmatch(r"SID\d+", result["student_id"])
    assert result["guardians"][0]["login_identifier"] == f"kumar-{result['student_id']}@student-id.app"

    # The form starts over for the next student
    assert body["form"]["status"] == "succeeded"
    assert body["form"]["step_index"] == 0
    assert body["form"]["student"]["full_name"] == ""
    assert body["form"]["last_result"]["student_id"] == result["student_id"]

    students = client.get("/students/", headers=auth(token)).json()
    assert [s["full_name"] for s in students] == ["Amit Kumar"]


def test_step_validation_endpoint_does_not_move_the_form():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id, class_name="")

    response = client.get(f"/enrollments/{form_id}/steps/0/validation", headers=auth(token))
    assert response.status_code == 200
    assert response.json() == {"valid": False, "errors": {"class_name": "Class is required"}}
    assert client.get(f"/enrollments/{form_id}", headers=auth(token)).json()["step_index"] == 0


def test_back_and_jump_to_completed_step():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    client.post(f"/enrollments/{form_id}/next", headers=auth(token))
    client.post(f"/enrollments/{form_id}/next", headers=auth(token))

    response = client.post(f"/enrollments/{form_id}/back", headers=auth(token))
    assert response.json()["step_index"] == 1

    response = client.post(f"/enrollments/{form_id}/steps/2", headers=auth(token))
    assert response.status_code == 400

    response = client.post(f"/enrollments/{form_id}/steps/0", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["step_index"] == 0

    response = client.post(f"/enrollments/{form_id}/back", headers=auth(token))
    assert response.json()["step_index"] == 0


def test_guardian_limit_returns_409():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    for _ in range(5):
        assert client.post(f"/enrollments/{form_id}/guardians", headers=auth(token)).status_code == 201

    response = client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))
    assert response.status_code == 409
    assert response.json()["detail"] == "Maximum 6 guardians allowed."
    assert len(client.get(f"/enrollments/{form_id}", headers=auth(token)).json()["guardians"]) == 6


def test_remove_guardian_needs_confirmation_and_keeps_one():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]

    response = client.delete(f"/enrollments/{form_id}/guardians/0?confirm=true", headers=auth(token))
    assert response.status_code == 409
    assert response.json()["detail"] == "At least one guardian is required."

    client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))
    response = client.delete(f"/enrollments/{form_id}/guardians/1", headers=auth(token))
    assert response.status_code == 409
    assert response.json()["detail"] == "Are you sure you want to remove this guardian?"

    response = client.delete(f"/enrollments/{form_id}/guardians/1?confirm=true", headers=auth(token))
    assert response.status_code == 200
    assert len(response.json()["guardians"]) == 1

    response = client.patch(f"/enrollments/{form_id}/guardians/4", json={"full_name": "X"}, headers=auth(token))
    assert response.status_code == 404


def test_primary_toggle_is_capped():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))
    client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))

    response = client.post(f"/enrollments/{form_id}/guardians/1/toggle-primary", headers=auth(token))
    assert response.status_code == 200
    response = client.post(f"/enrollments/{form_id}/guardians/2/toggle-primary", headers=auth(token))
    assert response.status_code == 409
    assert response.json()["detail"] == "Maximum 2 primary guardians allowed."

    response = client.post(f"/enrollments/{form_id}/guardians/0/toggle-primary", headers=auth(token))
    assert [g["is_primary"] for g in response.json()["guardians"]] == [False, True, False]


def test_surname_collision_fails_submission_without_documents():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id, student_id="SID77")
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))
    fill_guardian(client, token, form_id, 1, "Raj Kumar", phone="9123456780")
    advance_to_review(client, token, form_id)

    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert "kumar-SID77@student-id.app" in detail["message"]
    assert detail["failed_guardian"] == 1
    assert [fact["full_name"] for fact in detail["provisioned"]] == ["Sunita Kumar"]

    form = client.get(f"/enrollments/{form_id}", headers=auth(token)).json()
    assert form["status"] == "failed"
    assert form["last_error"] == detail["message"]
    assert form["student"]["full_name"] == "Amit Kumar"

    db = SessionLocal()
    assert db.query(Document).count() == 0
    assert db.query(User).filter(User.role == ROLE_PARENT).count() == 1
    db.close()


def test_commit_failure_returns_502():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    advance_to_review(client, token, form_id)

    app.dependency_overrides[get_document_store] = rejecting_document_store
    try:
        response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    finally:
        app.dependency_overrides.pop(get_document_store, None)

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "Failed to save enrollment records. Nothing was written."
    form = client.get(f"/enrollments/{form_id}", headers=auth(token)).json()
    assert form["status"] == "failed"


def test_submit_with_invalid_form_returns_422():
    client = TestClient(app)
    token = create_user_and_login(client, "admin.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    advance_to_review(client, token, form_id)
    # Edits stay open on the Review step, so the aggregate can turn invalid again
    fill_student(client, token, form_id, class_name="")

    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 422
    assert response.json() == {"valid": False, "errors": {"class_name": "Class is required"}}
    assert client.get(f"/enrollments/{form_id}", headers=auth(token)).json()["status"] == "idle"


def test_submit_before_review_step_is_rejected():
    client = TestClient(app)
    token = create_user_and_login(client, "admin.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")

    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 400

    assert client.post(f"/enrollments/{form_id}/next", headers=auth(token)).status_code == 200
    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 400

    form = client.get(f"/enrollments/{form_id}", headers=auth(token)).json()
    assert form["status"] == "idle"
    assert form["step_index"] == 1
    db = SessionLocal()
    assert db.query(User).filter(User.role == ROLE_PARENT).count() == 0
    assert db.query(Document).count() == 0
    db.close()


def test_submit_from_review_step_enrolls_student():
    client = TestClient(app)
    token = create_user_and_login(client, "admin.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id, student_id="SID88")
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    advance_to_review(client, token, form_id)

    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 201
    assert response.json()["student_id"] == "SID88"
    db = SessionLocal()
    assert db.query(Document).count() == 2
    db.close()


def test_null_clears_date_of_birth_but_not_name():
    client = TestClient(app)
    token = create_user_and_login(client, "admin.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id, profile_image="file:///amit.png")

    response = client.patch(
        f"/enrollments/{form_id}/student",
        json={"full_name": None, "date_of_birth": None, "profile_image": None},
        headers=auth(token),
    )
    assert response.status_code == 200
    student = response.json()["student"]
    assert student["full_name"] == "Amit Kumar"
    assert student["date_of_birth"] is None
    assert student["profile_image"] is None

def test_second_submission_while_in_flight_is_rejected():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    fill_guardian(client, token, form_id, 0, "Sunita Kumar")
    advance_to_review(client, token, form_id)

    db = SessionLocal()
    db.query(EnrollmentForm).filter(EnrollmentForm.id == form_id).update({"status": "submitting"})
    db.commit()
    db.close()

    response = client.post(f"/enrollments/{form_id}/submit", headers=auth(token))
    assert response.status_code == 409
    response = client.post(f"/enrollments/{form_id}/guardians", headers=auth(token))
    assert response.status_code == 409

    db = SessionLocal()
    assert db.query(User).filter(User.role == ROLE_PARENT).count() == 0
    db.close()


def test_reset_clears_the_draft():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    fill_student(client, token, form_id)
    client.post(f"/enrollments/{form_id}/next", headers=auth(token))

    response = client.post(f"/enrollments/{form_id}/reset", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["step_index"] == 0
    assert response.json()["student"]["full_name"] == ""


def test_forms_are_private_to_their_admin():
    client = TestClient(app)
    token = create_user_and_login(client, "admin@example.com", "admin123")
    other = create_user_and_login(client, "admin2@example.com", "admin123")
    form_id = start_form(client, token)["id"]
    assert client.get(f"/enrollments/{form_id}", headers=auth(other)).status_code == 404


def test_parent_cannot_enroll():
    client = TestClient(app)
    token = create_user_and_login(client, "parent@example.com", "secret1", role=ROLE_PARENT)
    assert client.post("/enrollments/", headers=auth(token)).status_code == 403


def test_enrollment_requires_token():
    client = TestClient(app)
    assert client.post("/enrollments/").status_code == 401
