import html
import logging
from typing import Optional

from ..core.config import settings
from ..core.exceptions import EmailDeliveryError
from ..models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

def _layout(title: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: auto; padding: 20px;">
      <div style="background: #667eea; color: white; padding: 30px; border-radius: 10px 10px 0 0; text-align: center;">
        <h1 style="margin: 0; font-size: 28px;">{settings.APP_NAME}</h1>
        <p style="margin-top: 10px; opacity: 0.9;">{title}</p>
      </div>
      <div style="background: #f8f9fa; padding: 30px; border-radius: 0 0 10px 10px;">
        {body}
      </div>
    </div>
    """

STATUS_SUBJECTS = {
    AppointmentStatus.APPROVED: "Appointment Approved",
    AppointmentStatus.REJECTED: "Appointment Rejected",
    AppointmentStatus.CONFIRMED: "Appointment Confirmed",
    AppointmentStatus.CANCELLED: "Appointment Cancelled",
}

class NotificationService:
    def __init__(self, sender):
        self.sender = sender

    def send_otp_email(self, email: str, otp: str, name: str) -> None:
        """Send a verification code. Raises EmailDeliveryError on failure."""
        body = f"""
        <h2 style="color: #333;">Hello {html.escape(name)},</h2>
        <p style="color: #555;">Use the code below to verify your email address:</p>
        <h3 style="color: #667eea; font-size: 32px; text-align: center;">{otp}</h3>
        <p style="color: #666;">This code is valid for {settings.OTP_EXPIRE_MINUTES} minutes.</p>
        """
        self.sender.send(email, f"Email Verification - {settings.APP_NAME}", _layout("Email Verification", body))

    def send_doctor_approval_email(self, email: str, name: str) -> bool:
        body = f"""
        <h2 style="color: #333;">Congratulations Dr. {html.escape(name)}!</h2>
        <p style="color: #555;">Your registration request has been approved. You can now log in,
        complete your profile and start accepting patient appointments.</p>
        """
        return self._send_quietly(email, f"Registration Approved - {settings.APP_NAME}", _layout("Registration Approved", body))

    def send_doctor_rejection_email(self, email: str, name: str, reason: Optional[str] = None) -> bool:
        reason_html = f"<p style=\"color: #666;\"><strong>Reason:</strong> {html.escape(reason)}</p>" if reason else ""
        body = f"""
        <h2 style="color: #333;">Dear Dr. {html.escape(name)},</h2>
        <p style="color: #555;">We regret to inform you that your registration request has been rejected.</p>
        {reason_html}
        <p style="color: #666;">If you have any questions or would like to reapply, please contact our support team.</p>
        """
        return self._send_quietly(email, f"Registration Rejected - {settings.APP_NAME}", _layout("Registration Rejected", body))

    def send_appointment_status_email(self, appointment: Appointment) -> bool:
        """Notify the patient of a status change; only some statuses send mail."""
        subject = STATUS_SUBJECTS.get(AppointmentStatus(appointment.status))
        if subject is None:
            return False

        body = f"""
        <h2 style="color: #333;">Dear {html.escape(appointment.patient_name)},</h2>
        <p style="color: #555;">Your appointment with Dr. {html.escape(appointment.doctor_name)}
        ({html.escape(appointment.doctor_specialization)}, {html.escape(appointment.doctor_hospital)}) on
        {appointment.appointment_date:%d %b %Y} at {html.escape(appointment.appointment_time)}
        is now <strong>{AppointmentStatus(appointment.status).value}</strong>.</p>
        """
        if appointment.notes:
            body += f"<p style=\"color: #666;\">Notes: {html.escape(appointment.notes)}</p>"

        return self._send_quietly(
            appointment.patient_email,
            f"{subject} - {settings.APP_NAME}",
            _layout(subject, body),
        )

    def _send_quietly(self, to: str, subject: str, html: str) -> bool:
        # Notification failures must not fail the request that triggered them
        try:
            self.sender.send(to, subject, html)
            return True
        except EmailDeliveryError as e:
            logger.error(f"Failed to send '{subject}' to {to}: {str(e)}")
            return False
