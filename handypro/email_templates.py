"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility

Callers pass values that are already HTML-escaped (see utils/sanitization.py).
"""

from typing import Optional

from .config import FRONTEND_URL

# Brand colors - Blue/Slate color scheme
THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

BRAND_NAME = "HandyPro Service"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_user_email: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_user_email:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because you have an account with {BRAND_NAME}.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary']}" align="center" padding="0 0 24px 0">
              {BRAND_NAME}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © {BRAND_NAME}. All rights reserved.
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def password_reset_template(reset_link: str, expires_minutes: int) -> str:
    """Password reset MJML template"""
    content = f"""
    <mj-text>
      We received a request to reset the password for your account.
    </mj-text>

    <mj-text>
      Click the button below to choose a new password. This link expires in {expires_minutes} minutes.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="20px 0 0 0">
      If you didn't request this, you can safely ignore this email. Your password will not change.
    </mj-text>
    """

    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset Password",
        is_user_email=True,
    )


def booking_confirmed_client_template(
    client_name: str,
    service_name: str,
    appointment_date: str,
    appointment_time: str,
    notes: Optional[str] = None,
) -> str:
    """Booking confirmation for the client"""
    notes_section = ""
    if notes:
        notes_section = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      <strong>Your notes:</strong> {notes}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {client_name},
    </mj-text>

    <mj-text>
      Your <strong>{service_name}</strong> appointment is confirmed.
    </mj-text>

    <mj-text align="center" font-size="18px" font-weight="600" color="{THEME['success']}" padding="20px 0">
      ✓ Confirmed Appointment
    </mj-text>

    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="0">
      📅 {appointment_date}
    </mj-text>

    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="0 0 20px 0">
      ⏰ {appointment_time}
    </mj-text>
    {notes_section}
    <mj-text>
      A calendar invitation has been sent to this address. Reply to this email if you need to make changes.
    </mj-text>
    """

    return get_base_template(
        title="Your Appointment is Booked!",
        preview_text=f"{service_name} on {appointment_date}",
        content_sections=content,
    )


def booking_notification_staff_template(
    client_name: str,
    client_email: str,
    client_phone: str,
    service_name: str,
    appointment_date: str,
    appointment_time: str,
    notes: Optional[str] = None,
) -> str:
    """New booking notification for staff"""
    content = f"""
    <mj-text>
      A new appointment was booked and added to the calendar.
    </mj-text>

    <mj-text>
      <strong>Client Details</strong><br/>
      Name: {client_name}<br/>
      Email: {client_email}<br/>
      Phone: {client_phone}
    </mj-text>

    <mj-text>
      <strong>Service:</strong> {service_name}<br/>
      📅 {appointment_date}<br/>
      ⏰ {appointment_time}
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      <strong>Additional Notes:</strong> {notes or "None"}
    </mj-text>
    """

    return get_base_template(
        title="New Booking",
        preview_text=f"New booking from {client_name}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Open Dashboard",
    )


def quote_request_notification_template(
    name: str,
    email: str,
    phone: str,
    service_name: str,
    address: str,
    description: str,
) -> str:
    """New quote request notification for staff"""
    content = f"""
    <mj-text>
      A new quote request was submitted.
    </mj-text>

    <mj-text>
      <strong>Customer Information</strong><br/>
      Name: {name}<br/>
      Email: {email}<br/>
      Phone: {phone}<br/>
      Service Requested: {service_name}<br/>
      Address: {address}
    </mj-text>

    <mj-text>
      <strong>Project Description</strong>
    </mj-text>

    <mj-text css-class="pre-wrap">
      {description}
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="25px 0 0 0">
      <strong>Recommended response time:</strong> Within 24 hours
    </mj-text>
    """

    return get_base_template(
        title="New Quote Request",
        preview_text=f"Quote request from {name} - {service_name}",
        content_sections=content,
    )
