"""
services/email_service.py

Transactional email over SMTP. Every send is fire-and-forget: routers queue
these methods as background tasks, failures are logged and reported as False,
and nothing here ever raises into a request.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


def _layout(title: str, body: str) -> str:
    return f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
        <div style="background: #1e3a8a; color: #fff; padding: 20px; text-align: center;">
          <h1 style="margin: 0;">{escape(settings.EMAIL_FROM_NAME)}</h1>
        </div>
        <div style="padding: 24px;">
          <h2>{escape(title)}</h2>
          {body}
        </div>
        <div style="padding: 12px; font-size: 12px; color: #888; text-align: center;">
          This is an automated message from {escape(settings.EMAIL_FROM_NAME)}.
        </div>
      </body>
    </html>
    """


class EmailService:
    def __init__(self):
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.user = settings.EMAIL_USER
        self.password = settings.EMAIL_PASSWORD
        self.use_ssl = settings.EMAIL_USE_SSL
        self.from_name = settings.EMAIL_FROM_NAME

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def send(self, recipient: str, subject: str, html: str) -> bool:
        if not self.configured:
            logger.info("Email not configured, skipping '%s' to %s", subject, recipient)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.user}>"
        message["To"] = recipient
        message["Subject"] = subject
        message.attach(MIMEText(html, "html"))

        try:
            if self.use_ssl:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=15) as server:
                    server.login(self.user, self.password)
                    server.send_message(message)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=15) as server:
                    server.starttls()
                    server.login(self.user, self.password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' to %s: %s", subject, recipient, e)
            return False

        logger.info("Email '%s' sent to %s", subject, recipient)
        return True

    # ─── Account lifecycle ────────────────────────────────────────────────────

    def send_welcome(self, email: str, first_name: str) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Your account has been created. Sign in and choose how you want to use
          the platform: as a freelancer, an equipment owner, or both.</p>
          <p><a href="{settings.FRONTEND_URL}/select-role">Select your role</a></p>
        """
        return self.send(email, f"Welcome to {self.from_name}!", _layout("Welcome aboard", body))

    def send_role_selection(self, email: str, first_name: str, is_freelancer: bool, is_equipment_owner: bool) -> bool:
        roles = []
        if is_freelancer:
            roles.append("<li>Freelancer: complete your profile and upload your CV</li>")
        if is_equipment_owner:
            roles.append("<li>Equipment owner: list your equipment for hire</li>")
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Your roles are set up:</p>
          <ul>{''.join(roles)}</ul>
          <p><a href="{settings.FRONTEND_URL}/dashboard">Go to your dashboard</a></p>
        """
        return self.send(email, "Your roles are ready", _layout("Roles confirmed", body))

    def send_profile_completed(self, email: str, first_name: str, title: Optional[str]) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Your freelancer profile{f' as <strong>{escape(title)}</strong>' if title else ''}
          is complete and now visible to recruiters.</p>
        """
        return self.send(email, "Your profile is live", _layout("Profile completed", body))

    def send_profile_updated(self, email: str, first_name: str) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Your profile was updated. If you did not make this change, reset your
          password straight away.</p>
        """
        return self.send(email, "Your profile was updated", _layout("Profile updated", body))

    # ─── Password reset ───────────────────────────────────────────────────────

    def send_password_reset_code(self, email: str, first_name: str, code: str) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Use this code to reset your password:</p>
          <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{code}</p>
          <p>The code expires in {settings.RESET_CODE_EXPIRE_MINUTES} minutes and can be used once.
          If you did not ask for it, ignore this email.</p>
        """
        return self.send(email, "Your password reset code", _layout("Password reset", body))

    def send_password_changed(self, email: str, first_name: str) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>Your password has just been changed.</p>
        """
        return self.send(email, "Your password was changed", _layout("Password changed", body))

    # ─── Marketplace ──────────────────────────────────────────────────────────

    def send_equipment_listed(self, email: str, first_name: str, equipment_name: str) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p><strong>{escape(equipment_name)}</strong> is now listed and searchable.</p>
        """
        return self.send(email, "Equipment listed", _layout("Listing published", body))

    def send_equipment_inquiry(
        self,
        email: str,
        contact_person: str,
        equipment_name: str,
        requester_name: str,
        requester_email: str,
        requester_phone: Optional[str],
        message: str,
    ) -> bool:
        body = f"""
          <p>Hi {escape(contact_person)},</p>
          <p>You have a new inquiry about <strong>{escape(equipment_name)}</strong>.</p>
          <p><strong>From:</strong> {escape(requester_name)} ({escape(requester_email)})
          {f'<br><strong>Phone:</strong> {escape(requester_phone)}' if requester_phone else ''}</p>
          <blockquote style="border-left: 3px solid #1e3a8a; padding-left: 12px;">{escape(message)}</blockquote>
        """
        return self.send(email, f"New inquiry: {equipment_name}", _layout("Equipment inquiry", body))

    def send_freelancer_contact(
        self,
        email: str,
        first_name: str,
        recruiter_name: str,
        recruiter_email: str,
        recruiter_phone: Optional[str],
        company: Optional[str],
        message: str,
    ) -> bool:
        body = f"""
          <p>Hi {escape(first_name)},</p>
          <p>{escape(recruiter_name)}{f' from {escape(company)}' if company else ''} wants to get in touch.</p>
          <p><strong>Email:</strong> {escape(recruiter_email)}
          {f'<br><strong>Phone:</strong> {escape(recruiter_phone)}' if recruiter_phone else ''}</p>
          <blockquote style="border-left: 3px solid #1e3a8a; padding-left: 12px;">{escape(message)}</blockquote>
        """
        return self.send(email, "A recruiter wants to contact you", _layout("New opportunity", body))


email_service = EmailService()
