import pytest

from .utils import (
    admin_login, doctor_id_for, login_headers, register_and_verify,
    test_doctor_data, test_user_data
)

class TestDoctorApproval:

    def test_pending_doctors_only_lists_verified(self, client):
        register_and_verify(client, test_doctor_data)
        unverified = {**test_doctor_data, "email": "unverified@example.com"}
        client.post("/api/v1/auth/register", json=unverified)

        response = client.get("/api/v1/admin/doctors/pending", headers=admin_login(client))
        assert response.status_code == 200

        emails = [doctor["email"] for doctor in response.json()]
        assert emails == [test_doctor_data["email"]]

    def test_approve_doctor(self, client, outbox):
        register_and_verify(client, test_doctor_data)
        doctor_id = doctor_id_for(test_doctor_data["email"])

        response = client.post(
            f"/api/v1/admin/doctors/{doctor_id}/approve", headers=admin_login(client)
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Doctor approved successfully"
        assert response.json()["doctor"]["status"] == "approved"

        assert outbox[-1]["to"] == test_doctor_data["email"]
        assert outbox[-1]["subject"].startswith("Registration Approved")

        # Approved doctors can sign in and drop off the pending list
        login_headers(client, test_doctor_data["email"], test_doctor_data["password"])
        pending = client.get("/api/v1/admin/doctors/pending", headers=admin_login(client))
        assert pending.json() == []

    def test_reject_doctor_with_reason(self, client, outbox):
        register_and_verify(client, test_doctor_data)
        doctor_id = doctor_id_for(test_doctor_data["email"])

        response = client.post(
            f"/api/v1/admin/doctors/{doctor_id}/reject",
            json={"reason": "License could not be confirmed"},
            headers=admin_login(client)
        )
        assert response.status_code == 200
        assert response.json()["doctor"]["status"] == "rejected"
        assert outbox[-1]["subject"].startswith("Registration Rejected")
        assert "License could not be confirmed" in outbox[-1]["html"]

        login = client.post(
            "/api/v1/auth/login",
            json={"email": test_doctor_data["email"], "password": test_doctor_data["password"]}
        )
        assert login.status_code == 403

    def test_reject_doctor_without_body(self, client):
        register_and_verify(client, test_doctor_data)
        doctor_id = doctor_id_for(test_doctor_data["email"])

        response = client.post(
            f"/api/v1/admin/doctors/{doctor_id}/reject", headers=admin_login(client)
        )
        assert response.status_code == 200
        assert response.json()["doctor"]["status"] == "rejected"

    def test_approve_unknown_doctor(self, client):
        response = client.post("/api/v1/admin/doctors/9999/approve", headers=admin_login(client))
        assert response.status_code == 404
        assert response.json()["detail"] == "Doctor not found"

    def test_admin_routes_require_admin(self, client):
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])

        response = client.get("/api/v1/admin/doctors/pending", headers=headers)
        assert response.status_code == 403

        response = client.post("/api/v1/admin/doctors/1/approve", headers=headers)
        assert response.status_code == 403

    def test_admin_routes_require_token(self, client):
        response = client.get("/api/v1/admin/doctors")
        assert response.status_code in (401, 403)

if __name__ == "__main__":
    pytest.main([__file__])
