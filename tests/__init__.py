"""
Test suite for HealthBot.

Contains unit and integration tests for the application's functionality.
"""
import os

# Set environment for testing before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["OTP_RATE_LIMIT"] = "1000"
os.environ["BOOKING_RATE_LIMIT"] = "1000"
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("SMTP_HOST", None)
