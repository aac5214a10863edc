"""
Unified Email Service using Resend (fallback) or Custom SMTP
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    PASSWORD_RESET_EXPIRE_MINUTES,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
)
from .email_templates import (
    booking_confirmed_client_template,
    booking_notification_staff_template,
    password_reset_template,
    quote_request_notification_template,
)

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[HandyPro]"

# Initialize Resend as fallback
resend.api_key = RESEND_API_KEY


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
) -> dict:
    """Send email via the configured SMTP server"""
    try:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = ", ".join(to)
        msg.attach(MIMEText(html_content, "html"))

        if SMTP_PORT == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
        else:
            server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
            if SMTP_USE_TLS:
                context = ssl.create_default_context()
                server.starttls(context=context)

        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD or "")
        server.sendmail(from_address.split("<")[-1].rstrip(">"), to, msg.as_string())
        server.quit()

        logger.info(f"✅ SMTP email sent successfully via {SMTP_HOST}")
        return {"id": f"smtp-{datetime.now(timezone.utc).timestamp()}", "success": True}

    except Exception as e:
        logger.error(f"❌ SMTP send failed: {e}")
        raise Exception(f"SMTP failed: {str(e)}") from e


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line, prefixed with [HandyPro]
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else list(to)
    sender = from_address or EMAIL_FROM_ADDRESS
    full_subject = f"{SUBJECT_PREFIX} {subject}"

    if SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(
                to=recipients,
                subject=full_subject,
                html_content=html_content,
                from_address=sender,
            )
        except Exception as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": full_subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Emails for Common Events
# ============================================


async def send_password_reset_email(to: str, reset_link: str) -> dict:
    """Send password reset email"""
    mjml_content = password_reset_template(reset_link, PASSWORD_RESET_EXPIRE_MINUTES)
    return await send_email(to=to, subject="Reset Your Password", mjml_content=mjml_content)


async def send_booking_confirmation_to_client(
    client_email: str,
    client_name: str,
    service_name: str,
    appointment_date: str,
    appointment_time: str,
    notes: Optional[str] = None,
) -> dict:
    """Send appointment confirmation email to client"""
    mjml_content = booking_confirmed_client_template(
        client_name=client_name,
        service_name=service_name,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        notes=notes,
    )
    return await send_email(
        to=client_email,
        subject=f"Your {service_name} appointment is confirmed",
        mjml_content=mjml_content,
    )


async def send_booking_notification_to_staff(
    recipients: list[str],
    client_name: str,
    client_email: str,
    client_phone: str,
    service_name: str,
    appointment_date: str,
    appointment_time: str,
    notes: Optional[str] = None,
) -> dict:
    """Notify internal recipients of a confirmed booking"""
    mjml_content = booking_notification_staff_template(
        client_name=client_name,
        client_email=client_email,
        client_phone=client_phone,
        service_name=service_name,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        notes=notes,
    )
    return await send_email(
        to=recipients,
        subject=f"New Booking - {client_name}",
        mjml_content=mjml_content,
    )


async def send_quote_request_notification(
    recipients: list[str],
    name: str,
    email: str,
    phone: str,
    service_name: str,
    address: str,
    description: str,
) -> dict:
    """Notify internal recipients of a new quote request"""
    mjml_content = quote_request_notification_template(
        name=name,
        email=email,
        phone=phone,
        service_name=service_name,
        address=address,
        description=description,
    )
    return await send_email(
        to=recipients,
        subject=f"New Quote Request - {service_name}",
        mjml_content=mjml_content,
    )
