"""
HealthBot

A FastAPI backend for healthcare appointment booking, with email OTP
verification, doctor approval, conflict-checked scheduling and a
symptom-triage chat.
"""

__version__ = "1.0.0"
