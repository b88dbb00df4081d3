import pytest
from datetime import date, datetime, timedelta

from healthbot.core.config import settings
from healthbot.services.appointment_service import day_bounds, months_ago

from .utils import (
    admin_login, booking_data, create_approved_doctor, doctor_id_for,
    login_headers, register_and_verify, test_doctor_data, test_user_data
)

def book(client, doctor_id, **overrides):
    return client.post("/api/v1/appointments/book", json=booking_data(doctor_id, **overrides))

class TestBooking:

    def test_book_appointment(self, client):
        doctor_id, _ = create_approved_doctor(client)

        response = book(client, doctor_id)
        assert response.status_code == 201

        appointment = response.json()["appointment"]
        assert appointment["status"] == "pending"
        assert appointment["doctor_name"] == test_doctor_data["name"]
        assert appointment["appointment_time"] == "10:00 AM"
        assert appointment["appointment_date"].endswith("T00:00:00")

    def test_same_slot_conflicts(self, client):
        doctor_id, _ = create_approved_doctor(client)
        book(client, doctor_id)

        response = book(client, doctor_id, patient_name="Someone Else")
        assert response.status_code == 409
        assert response.json()["detail"] == "This time slot is already booked. Please choose another time."

    def test_different_slot_or_day_is_free(self, client):
        doctor_id, _ = create_approved_doctor(client)
        book(client, doctor_id)

        assert book(client, doctor_id, appointment_time="10:30 AM").status_code == 201
        next_day = (date.today() + timedelta(days=8)).isoformat()
        assert book(client, doctor_id, appointment_date=next_day).status_code == 201

    def test_same_slot_with_other_doctor_is_free(self, client):
        doctor_id, _ = create_approved_doctor(client)
        other_id, _ = create_approved_doctor(client, email="other@example.com")
        book(client, doctor_id)

        assert book(client, other_id).status_code == 201

    def test_cancelled_slot_can_be_rebooked(self, client):
        doctor_id, _ = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/cancel", headers=admin_login(client)
        )
        assert response.status_code == 200

        assert book(client, doctor_id).status_code == 201

    @pytest.mark.parametrize("status,expected", [
        ("pending", 409),
        ("confirmed", 409),
        ("approved", 201),
        ("rejected", 201),
        ("completed", 201),
        ("cancelled", 201),
        ("rescheduled", 201),
    ])
    def test_only_pending_and_confirmed_hold_slot(self, client, status, expected):
        doctor_id, headers = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": status},
            headers=headers
        )
        assert response.status_code == 200

        assert book(client, doctor_id, patient_name="Second Patient").status_code == expected

    def test_reactivating_into_taken_slot_conflicts(self, client):
        doctor_id, headers = create_approved_doctor(client)
        first_id = book(client, doctor_id).json()["appointment"]["id"]
        client.put(
            f"/api/v1/appointments/{first_id}/status",
            json={"status": "rejected"},
            headers=headers
        )
        second_id = book(client, doctor_id).json()["appointment"]["id"]

        response = client.put(
            f"/api/v1/appointments/{first_id}/status",
            json={"status": "confirmed"},
            headers=headers
        )
        assert response.status_code == 409

        # The appointment that holds the slot can still move between active statuses
        response = client.put(
            f"/api/v1/appointments/{second_id}/status",
            json={"status": "confirmed"},
            headers=headers
        )
        assert response.status_code == 200

    def test_unknown_doctor(self, client):
        response = book(client, 9999)
        assert response.status_code == 404
        assert response.json()["detail"] == "Doctor not found"

    def test_unverified_doctor(self, client):
        client.post("/api/v1/auth/register", json=test_doctor_data)
        doctor_id = doctor_id_for(test_doctor_data["email"])

        response = book(client, doctor_id)
        assert response.status_code == 400
        assert response.json()["detail"] == "Doctor is not verified yet"

    def test_unapproved_doctor(self, client):
        register_and_verify(client, test_doctor_data)
        doctor_id = doctor_id_for(test_doctor_data["email"])

        response = book(client, doctor_id)
        assert response.status_code == 400
        assert response.json()["detail"] == "Doctor is not approved yet"

    @pytest.mark.parametrize("field,value", [
        ("patient_phone", "12345"),
        ("patient_gender", "Unknown"),
        ("patient_age", 151),
        ("patient_email", "not-an-email"),
        ("reason", ""),
    ])
    def test_invalid_booking_fields(self, client, field, value):
        response = client.post(
            "/api/v1/appointments/book", json=booking_data(1, **{field: value})
        )
        assert response.status_code == 422

    def test_booking_rate_limited(self, client, monkeypatch):
        doctor_id, _ = create_approved_doctor(client)
        monkeypatch.setattr(settings, "BOOKING_RATE_LIMIT", 1)

        assert book(client, doctor_id).status_code == 201
        response = book(client, doctor_id, appointment_time="11:00 AM")
        assert response.status_code == 429

    def test_signed_in_patient_is_linked(self, client):
        doctor_id, _ = create_approved_doctor(client)
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])

        appointment_id = client.post(
            "/api/v1/appointments/book", json=booking_data(doctor_id), headers=headers
        ).json()["appointment"]["id"]

        response = client.get(f"/api/v1/appointments/{appointment_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["patient_id"] is not None

class TestAppointmentManagement:

    def test_doctor_confirms_appointment(self, client, outbox):
        doctor_id, headers = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "confirmed", "notes": "Bring previous reports"},
            headers=headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["notes"] == "Bring previous reports"

        assert outbox[-1]["to"] == test_user_data["email"]
        assert outbox[-1]["subject"].startswith("Appointment Confirmed")

    def test_completed_status_sends_no_email(self, client, outbox):
        doctor_id, headers = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]
        sent_before = len(outbox)

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "completed", "diagnosis": "Muscle strain"},
            headers=headers
        )
        assert response.status_code == 200
        assert response.json()["diagnosis"] == "Muscle strain"
        assert len(outbox) == sent_before

    def test_other_doctor_cannot_update_status(self, client):
        doctor_id, _ = create_approved_doctor(client)
        _, other_headers = create_approved_doctor(client, email="other@example.com")
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "confirmed"},
            headers=other_headers
        )
        assert response.status_code == 403

    def test_patient_cancels_own_appointment(self, client):
        doctor_id, _ = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])

        response = client.put(
            f"/api/v1/appointments/{appointment_id}/cancel",
            json={"reason": "Feeling better"},
            headers=headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert "Cancellation reason: Feeling better" in response.json()["notes"]

        response = client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Appointment is already cancelled"

    def test_completed_appointment_cannot_be_cancelled(self, client):
        doctor_id, headers = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]
        client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": "completed"},
            headers=headers
        )

        response = client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=headers)
        assert response.status_code == 400

    def test_stranger_cannot_view_appointment(self, client):
        doctor_id, _ = create_approved_doctor(client)
        appointment_id = book(client, doctor_id).json()["appointment"]["id"]
        stranger = {**test_user_data, "email": "stranger@example.com"}
        register_and_verify(client, stranger)
        headers = login_headers(client, stranger["email"], stranger["password"])

        response = client.get(f"/api/v1/appointments/{appointment_id}", headers=headers)
        assert response.status_code == 403

        response = client.put(f"/api/v1/appointments/{appointment_id}/cancel", headers=headers)
        assert response.status_code == 403

    def test_unknown_appointment(self, client):
        response = client.get("/api/v1/appointments/9999", headers=admin_login(client))
        assert response.status_code == 404

class TestAppointmentListings:

    def test_doctor_lists_and_filters(self, client):
        doctor_id, headers = create_approved_doctor(client)
        book(client, doctor_id)
        later = (date.today() + timedelta(days=9)).isoformat()
        book(client, doctor_id, appointment_date=later)

        response = client.get(f"/api/v1/appointments/doctor/{doctor_id}", headers=headers)
        assert response.json()["count"] == 2

        response = client.get(
            f"/api/v1/appointments/doctor/{doctor_id}", params={"date": later}, headers=headers
        )
        assert response.json()["count"] == 1

        response = client.get(f"/api/v1/appointments/doctor/{doctor_id}/pending", headers=headers)
        assert response.json()["count"] == 2

    def test_doctor_cannot_list_other_doctor(self, client):
        doctor_id, _ = create_approved_doctor(client)
        _, other_headers = create_approved_doctor(client, email="other@example.com")

        response = client.get(f"/api/v1/appointments/doctor/{doctor_id}", headers=other_headers)
        assert response.status_code == 403

    def test_stats(self, client):
        doctor_id, headers = create_approved_doctor(client)
        today = date.today().isoformat()
        todays_id = book(client, doctor_id, appointment_date=today).json()["appointment"]["id"]
        book(client, doctor_id)
        cancelled_id = book(client, doctor_id, appointment_time="2:00 PM").json()["appointment"]["id"]

        client.put(
            f"/api/v1/appointments/{todays_id}/status",
            json={"status": "confirmed"},
            headers=headers
        )
        client.put(f"/api/v1/appointments/{cancelled_id}/cancel", headers=headers)

        stats = client.get(f"/api/v1/appointments/stats/{doctor_id}", headers=headers).json()
        assert stats["total"] == 3
        assert stats["today"] == 1
        assert stats["confirmed_today"] == 1
        assert stats["pending"] == 1
        assert stats["completed"] == 0
        assert stats["upcoming"] == 2
        assert stats["by_status"]["cancelled"] == 1

    def test_patient_history(self, client):
        doctor_id, _ = create_approved_doctor(client)
        book(client, doctor_id)
        past = (date.today() - timedelta(days=20)).isoformat()
        book(client, doctor_id, appointment_date=past)
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])

        response = client.get(
            f"/api/v1/appointments/patient/{test_user_data['email']}", headers=headers
        )
        assert response.status_code == 200

        data = response.json()
        assert data["count"] == 2
        assert data["upcoming_count"] == 1
        assert data["completed_count"] == 1

    def test_patient_history_months_window(self, client):
        doctor_id, _ = create_approved_doctor(client)
        old = (date.today() - timedelta(days=200)).isoformat()
        book(client, doctor_id, appointment_date=old)
        book(client, doctor_id)
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])
        url = f"/api/v1/appointments/patient/{test_user_data['email']}"

        assert client.get(url, params={"months": 12}, headers=headers).json()["count"] == 2
        assert client.get(url, params={"months": 3}, headers=headers).json()["count"] == 1
        # Unsupported windows fall back to three months
        assert client.get(url, params={"months": 5}, headers=headers).json()["count"] == 1

    def test_patient_cannot_view_others(self, client):
        register_and_verify(client, test_user_data)
        headers = login_headers(client, test_user_data["email"], test_user_data["password"])

        response = client.get("/api/v1/appointments/patient/someone@example.com", headers=headers)
        assert response.status_code == 403

    def test_admin_lists_all_with_pagination(self, client):
        doctor_id, _ = create_approved_doctor(client)
        for slot in ("9:00 AM", "9:30 AM", "10:00 AM"):
            book(client, doctor_id, appointment_time=slot)

        response = client.get(
            "/api/v1/appointments/admin/all",
            params={"page": 2, "limit": 2},
            headers=admin_login(client)
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data["appointments"]) == 1
        assert data["pagination"] == {"current": 2, "pages": 2, "total": 3}

    def test_admin_listing_requires_admin(self, client):
        _, headers = create_approved_doctor(client)
        response = client.get("/api/v1/appointments/admin/all", headers=headers)
        assert response.status_code == 403

class TestDateHelpers:

    def test_day_bounds(self):
        start, end = day_bounds(datetime(2024, 3, 5, 14, 30))
        assert start == datetime(2024, 3, 5, 0, 0, 0)
        assert end == datetime(2024, 3, 5, 23, 59, 59, 999000)

    def test_months_ago_clamps_day(self):
        assert months_ago(datetime(2024, 5, 31, 8, 0), 3) == datetime(2024, 2, 29, 8, 0)
        assert months_ago(datetime(2024, 1, 15), 12) == datetime(2023, 1, 15)

if __name__ == "__main__":
    pytest.main([__file__])
