"""HTTP surface: auth, role gating, patients, upload/review/reanalyze, dashboards."""
from models.activity import ActivityLog
from models.enums import AI_DIAGNOSIS_FAILED
from core.exceptions import InferenceError
from tests.conftest import BUCKET


def _create_patient(client, name="Jane Doe"):
    response = client.post("/api/patients/", json={"name": name, "email": "jane@test.com", "phone": "0812"})
    assert response.status_code == 201
    return response.json()


def _upload(client, patient_id, content=b"\x89PNG-data", filename="scan.png", content_type="image/png"):
    return client.post(
        f"/api/patients/{patient_id}/records",
        files={"file": (filename, content, content_type)},
    )


class TestAuth:
    def test_login_returns_token_and_role(self, api_client, doctor_user):
        response = api_client.post("/api/auth/login", data={"username": "doctor@test.com", "password": "doctorpass"})

        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "doctor"
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "doctor@test.com"

        me = api_client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == doctor_user.id

    def test_login_wrong_password(self, api_client, doctor_user):
        response = api_client.post("/api/auth/login", data={"username": "doctor@test.com", "password": "bad"})
        assert response.status_code == 401

    def test_requires_token(self, api_client):
        assert api_client.get("/api/patients/").status_code == 401

    def test_rejects_garbage_token(self, api_client):
        response = api_client.get("/api/patients/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_token_of_deleted_doctor_is_rejected(self, doctor_client, admin_client, doctor_user, db_session):
        patient = _create_patient(doctor_client)
        doctor_id = doctor_user.id
        assert admin_client.delete(f"/api/admin/doctors/{doctor_id}").status_code == 200
        db_session.expire_all()
        logs_before = db_session.query(ActivityLog).count()

        assert doctor_client.get("/api/patients/").status_code == 401
        assert _upload(doctor_client, patient["id"]).status_code == 401

        db_session.expire_all()
        assert db_session.query(ActivityLog).count() == logs_before
        assert db_session.query(ActivityLog).filter(ActivityLog.user_id == doctor_id).count() == 0

    def test_token_of_deactivated_doctor_is_forbidden(self, doctor_client, admin_client, doctor_user):
        assert doctor_client.get("/api/patients/").status_code == 200
        response = admin_client.put(f"/api/admin/doctors/{doctor_user.id}", json={"status": "Inactive"})
        assert response.status_code == 200

        assert doctor_client.get("/api/patients/").status_code == 403

    def test_change_password(self, doctor_client):
        response = doctor_client.post("/api/auth/change-password",
                                      json={"current_password": "wrong", "new_password": "x"})
        assert response.status_code == 400
        assert response.json()["detail"] == "incorrect_password"

        response = doctor_client.post("/api/auth/change-password",
                                      json={"current_password": "doctorpass", "new_password": "fresh"})
        assert response.status_code == 200


class TestRoleGating:
    def test_doctor_cannot_manage_doctors(self, doctor_client):
        assert doctor_client.get("/api/admin/doctors").status_code == 403

    def test_admin_manages_doctors(self, admin_client):
        created = admin_client.post("/api/admin/doctors", json={
            "name": "Dr. House", "email": "house@test.com", "password": "vicodin", "specialization": "Diagnostics",
        })
        assert created.status_code == 201
        doctor_id = created.json()["id"]

        listed = admin_client.get("/api/admin/doctors").json()
        assert [d["email"] for d in listed] == ["house@test.com"]

        updated = admin_client.put(f"/api/admin/doctors/{doctor_id}", json={"phone": "555"})
        assert updated.json()["phone"] == "555"

        assert admin_client.delete(f"/api/admin/doctors/{doctor_id}").status_code == 200
        assert admin_client.delete(f"/api/admin/doctors/{doctor_id}").status_code == 404

    def test_duplicate_doctor_email_is_conflict(self, admin_client, doctor_user):
        response = admin_client.post("/api/admin/doctors", json={
            "name": "Copy", "email": "doctor@test.com", "password": "x",
        })
        assert response.status_code == 409


class TestPatients:
    def test_list_shows_latest_image_and_review(self, doctor_client):
        patient = _create_patient(doctor_client)
        empty = _create_patient(doctor_client, name="No Records")
        record = _upload(doctor_client, patient["id"]).json()["record"]

        listed = {p["id"]: p for p in doctor_client.get("/api/patients/").json()}

        assert listed[empty["id"]]["review"] == "-"
        assert listed[empty["id"]]["image"] is None
        assert listed[patient["id"]]["review"] == "PENDING"
        assert listed[patient["id"]]["image"].endswith(f"/{BUCKET}/{record['original_image_path']}")

    def test_detail_follows_latest_revision(self, doctor_client):
        patient = _create_patient(doctor_client)
        record = _upload(doctor_client, patient["id"]).json()["record"]
        doctor_client.post(f"/api/records/{record['id']}/review", data={"agreement": "agree", "note": "ok"})

        detail = doctor_client.get(f"/api/patients/{patient['id']}").json()

        assert detail["latest_record"]["revision"] == 2
        assert detail["latest_record"]["validation_status"] == "VALIDATED"
        assert detail["image"].startswith("https://")
        assert detail["ai_gradcam_image"] is None

    def test_update_and_delete(self, admin_client):
        patient = _create_patient(admin_client)
        updated = admin_client.put(f"/api/patients/{patient['id']}", json={"address": "Jl. Melati 2"})
        assert updated.json()["address"] == "Jl. Melati 2"
        assert updated.json()["name"] == "Jane Doe"

        assert admin_client.delete(f"/api/patients/{patient['id']}").status_code == 200
        assert admin_client.get(f"/api/patients/{patient['id']}").status_code == 404

    def test_history(self, doctor_client):
        patient = _create_patient(doctor_client)
        _upload(doctor_client, patient["id"])
        _upload(doctor_client, patient["id"])

        history = doctor_client.get(f"/api/patients/{patient['id']}/records").json()
        assert [r["revision"] for r in history] == [1, 2]


class TestPipelinesOverHttp:
    def test_upload_end_to_end(self, doctor_client, storage):
        patient = _create_patient(doctor_client)

        response = _upload(doctor_client, patient["id"])

        assert response.status_code == 201
        body = response.json()
        assert body["warnings"] == []
        assert body["record"]["validation_status"] == "PENDING"
        assert "malignant" in body["record"]["ai_diagnosis"]
        assert "93" in body["record"]["ai_diagnosis"]
        assert body["record"]["ai_gradcam_path"] is None
        assert (BUCKET, body["record"]["original_image_path"]) in storage.objects

    def test_upload_with_ai_down_reports_warning(self, doctor_client, ai):
        patient = _create_patient(doctor_client)
        ai.error = InferenceError("AI service unreachable")

        body = _upload(doctor_client, patient["id"]).json()

        assert body["record"]["ai_diagnosis"] == AI_DIAGNOSIS_FAILED
        assert len(body["warnings"]) == 1

    def test_upload_rejects_non_image(self, doctor_client):
        patient = _create_patient(doctor_client)
        response = _upload(doctor_client, patient["id"], filename="notes.txt", content_type="text/plain")
        assert response.status_code == 400

    def test_upload_storage_failure_is_bad_gateway(self, doctor_client, storage):
        patient = _create_patient(doctor_client)
        storage.failing_prefixes.add("raw/")
        assert _upload(doctor_client, patient["id"]).status_code == 502

    def test_upload_unknown_patient(self, doctor_client):
        assert _upload(doctor_client, 999).status_code == 404

    def test_review_with_annotation(self, doctor_client, doctor_user, storage):
        patient = _create_patient(doctor_client)
        record = _upload(doctor_client, patient["id"]).json()["record"]

        response = doctor_client.post(
            f"/api/records/{record['id']}/review",
            data={"agreement": "disagree", "note": "Benign"},
            files={"annotation": ("mask.png", b"mask-bytes", "image/png")},
        )

        assert response.status_code == 201
        reviewed = response.json()["record"]
        assert reviewed["id"] != record["id"]
        assert reviewed["validator_id"] == doctor_user.id
        assert reviewed["is_ai_accurate"] is False
        assert reviewed["doctor_diagnosis"] == "Disagreed with AI"
        assert storage.objects[(BUCKET, reviewed["doctor_brush_path"])] == b"mask-bytes"

        unchanged = doctor_client.get(f"/api/records/{record['id']}").json()
        assert unchanged == record

    def test_review_invalid_agreement(self, doctor_client):
        patient = _create_patient(doctor_client)
        record = _upload(doctor_client, patient["id"]).json()["record"]
        response = doctor_client.post(f"/api/records/{record['id']}/review", data={"agreement": "maybe"})
        assert response.status_code == 400

    def test_review_unknown_record(self, doctor_client):
        response = doctor_client.post("/api/records/404/review", data={"agreement": "agree"})
        assert response.status_code == 404

    def test_reanalyze(self, doctor_client, ai):
        patient = _create_patient(doctor_client)
        record = _upload(doctor_client, patient["id"]).json()["record"]
        ai.result = {"class": "benign", "confidence": 0.12}

        response = doctor_client.post(f"/api/patients/{patient['id']}/reanalyze")

        assert response.status_code == 200
        body = response.json()["record"]
        assert body["id"] == record["id"]
        assert "benign" in body["ai_diagnosis"]
        assert body["validation_status"] == "PENDING"

    def test_reanalyze_without_image(self, doctor_client):
        patient = _create_patient(doctor_client)
        response = doctor_client.post(f"/api/patients/{patient['id']}/reanalyze")
        assert response.status_code == 400
        assert response.json()["detail"] == "No image found for this patient."


class TestDashboards:
    def test_admin_stats(self, admin_client, doctor_user):
        patient = _create_patient(admin_client)
        record = _upload(admin_client, patient["id"]).json()["record"]
        _upload(admin_client, patient["id"])
        admin_client.post(f"/api/records/{record['id']}/review", data={"agreement": "agree"})

        stats = {s["label"]: s["value"] for s in admin_client.get("/api/admin/stats").json()}

        assert stats == {
            "Total Patient": 1,
            "Total Doctor": 1,
            "Image Uploaded": 3,
            "Waiting For Review": 2,
        }

    def test_doctor_stats(self, doctor_client):
        patient = _create_patient(doctor_client)
        record = _upload(doctor_client, patient["id"]).json()["record"]
        doctor_client.post(f"/api/records/{record['id']}/review", data={"agreement": "agree"})

        stats = doctor_client.get("/api/doctor/stats").json()

        assert stats == {"total": 1, "pending": 1, "completed": 1, "attention": 0}

    def test_recent_activities(self, admin_client, db_session, admin_user):
        for i in range(12):
            _create_patient(admin_client, name=f"Patient {i}")

        activities = admin_client.get("/api/admin/activities").json()

        assert len(activities) == 10
        assert activities[0]["title"] == "ADD_PATIENT"
        assert activities[0]["user"] == "Admin"
        assert activities[0]["description"] == "Added new patient: Patient 11"

    def test_activity_of_deleted_actor_shows_unknown(self, admin_client, db_session):
        doctor = admin_client.post("/api/admin/doctors", json={
            "name": "Dr. Gone", "email": "gone@test.com", "password": "pw",
        }).json()
        admin_client.delete(f"/api/admin/doctors/{doctor['id']}")

        activities = admin_client.get("/api/admin/activities").json()
        add_entry = next(a for a in activities if a["title"] == "ADD_DOCTOR")
        assert add_entry["user"] == "Unknown"
        assert db_session.query(ActivityLog).count() == 2


def test_health(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}


def test_request_id_header(api_client):
    response = api_client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
