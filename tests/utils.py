from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from healthbot.core.config import settings
from healthbot.models.doctor import Doctor
from healthbot.models.user import User

# Test database shared with the application's startup hook
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Test data
test_user_data = {
    "name": "Test Patient",
    "email": "patient@example.com",
    "password": "TestPassword123",
    "role": "patient"
}

test_doctor_data = {
    "name": "Jane Heart",
    "email": "doctor@example.com",
    "password": "DoctorPass123",
    "role": "doctor",
    "specialization": "Cardiologist",
    "experience": "10 years",
    "hospital": "City Hospital",
    "phone": "9876543210",
    "location": "Springfield"
}

def stored_otp(email):
    db = TestingSessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        return user.otp_code if user else None
    finally:
        db.close()

def doctor_id_for(email):
    db = TestingSessionLocal()
    try:
        return db.query(Doctor).join(User).filter(User.email == email).first().id
    finally:
        db.close()

def register_and_verify(client, data):
    response = client.post("/api/v1/auth/register", json=data)
    assert response.status_code == 201, response.text
    response = client.post(
        "/api/v1/auth/verify-otp",
        json={"email": data["email"], "otp": stored_otp(data["email"])}
    )
    assert response.status_code == 200, response.text
    return response.json()

def login_headers(client, email, password):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

def admin_login(client):
    return login_headers(client, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

def create_approved_doctor(client, **overrides):
    """Register, verify and approve a doctor; returns (doctor_id, auth headers)."""
    data = {**test_doctor_data, **overrides}
    register_and_verify(client, data)
    doctor_id = doctor_id_for(data["email"])

    response = client.post(
        f"/api/v1/admin/doctors/{doctor_id}/approve", headers=admin_login(client)
    )
    assert response.status_code == 200, response.text
    return doctor_id, login_headers(client, data["email"], data["password"])

def booking_data(doctor_id, **overrides):
    data = {
        "patient_name": "Test Patient",
        "patient_email": test_user_data["email"],
        "patient_phone": "9123456780",
        "patient_age": 34,
        "patient_gender": "Female",
        "doctor_id": doctor_id,
        "appointment_date": (date.today() + timedelta(days=7)).isoformat(),
        "appointment_time": "10:00 AM",
        "reason": "Chest discomfort after exercise",
        "symptoms": "chest pain",
    }
    data.update(overrides)
    return data
