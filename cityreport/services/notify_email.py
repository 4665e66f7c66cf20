# cityreport/services/notify_email.py

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape

import resend

from cityreport.core.config import settings

logger = logging.getLogger(__name__)

FROM_NAME = settings.email_from_name
FROM_ADDR = settings.email_from_address
EMAIL_REDIRECT_TO = settings.email_redirect_to
EMAIL_PROVIDER = settings.email_provider.lower()

SMTP_HOST = settings.smtp_host
SMTP_PORT = settings.smtp_port
SMTP_USERNAME = settings.smtp_username
SMTP_PASSWORD = settings.smtp_password
SMTP_USE_SSL = settings.smtp_use_ssl
RESEND_API_KEY = settings.resend_api_key

# ===================================================================
# BASE TEMPLATE
# ===================================================================

TPL_BASE = """
<table width="100%%" cellpadding="0" cellspacing="0" style="background:#eef2f7;padding:24px;">
  <tr><td align="center">
    <table width="600" cellpadding="0" cellspacing="0"
           style="background:#ffffff;border-radius:12px;padding:24px;
                  font-family:Arial,Helvetica,sans-serif;color:#111827;
                  border:1px solid #e5e7eb;">
      <tr>
        <td align="center" style="padding-bottom:16px;">
          <div style="font-size:20px;font-weight:700;">City Issue Reporter</div>
          <div style="margin-top:2px;font-size:12px;color:#6b7280;">
            Report it. Track it. Get it fixed.
          </div>
        </td>
      </tr>
      <tr>
        <td style="font-size:14px;line-height:1.6;">
          %s
        </td>
      </tr>
      <tr>
        <td style="padding-top:16px;font-size:11px;color:#6b7280;border-top:1px solid #e5e7eb;">
          This is an automated message from <strong>City Issue Reporter</strong>.
        </td>
      </tr>
    </table>
  </td></tr>
</table>
"""


# ===================================================================
# Transport
# ===================================================================

def _send_email_via_smtp(to_email: str, subject: str, html_content: str) -> bool:
    """Send an email using SMTP with proper SSL/TLS handling."""
    if not SMTP_HOST or not SMTP_USERNAME or not SMTP_PASSWORD or not FROM_ADDR:
        logger.info("SMTP not configured; skipping email to %s", to_email)
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{FROM_NAME} <{FROM_ADDR}>" if FROM_NAME else FROM_ADDR
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        if SMTP_USE_SSL:
            server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, timeout=15)
        else:
            server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=15)
            server.starttls()
        server.login(SMTP_USERNAME, SMTP_PASSWORD)
        server.send_message(msg)
        server.quit()
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email via SMTP: {e}", exc_info=True)
        return False


def _send_email_via_resend(to_email: str, subject: str, html_content: str) -> bool:
    """Send an email using Resend API."""
    if not RESEND_API_KEY or not FROM_ADDR:
        logger.info("Resend not configured; skipping email to %s", to_email)
        return False

    try:
        resend.api_key = RESEND_API_KEY
        params = {
            "from": f"{FROM_NAME} <{FROM_ADDR}>" if FROM_NAME else FROM_ADDR,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        resend.Emails.send(params)
        return True
    except Exception as e:
        logger.error(f"Failed to send email via Resend: {e}", exc_info=True)
        return False


def send_email(to_email: str, subject: str, body_html: str) -> bool:
    """Send through the configured provider. Returns True when the provider accepted it."""
    recipient = EMAIL_REDIRECT_TO or to_email
    html_content = TPL_BASE % body_html
    if EMAIL_PROVIDER == "resend":
        return _send_email_via_resend(recipient, subject, html_content)
    return _send_email_via_smtp(recipient, subject, html_content)


def _build_url(path: str) -> str:
    base = (settings.frontend_base_url or "").strip().rstrip("/")
    path = path.lstrip("/")
    if base:
        if not base.startswith("http://") and not base.startswith("https://"):
            base = f"https://{base}"
        return f"{base}/{path}"
    return f"/{path}"


# ===================================================================
# Messages
# ===================================================================

def send_report_confirmation(to_email: str, issue_id: int, title: str, department: str) -> bool:
    link = _build_url(f"track?id={issue_id}")
    body = f"""
    <p>Thank you for your report.</p>
    <p><strong>#{issue_id}: {escape(title)}</strong> has been received and routed to
    <strong>{escape(department)}</strong>.</p>
    <p>You can follow its progress here: <a href="{link}">{link}</a></p>
    """
    return send_email(to_email, f"Report #{issue_id} received", body)


def send_notification_email(to_email: str, title: str, message: str, issue_id: int | None) -> bool:
    link = _build_url(f"admin/issues/{issue_id}") if issue_id else _build_url("admin/notifications")
    body = f"""
    <p><strong>{escape(title)}</strong></p>
    <p>{escape(message)}</p>
    <p><a href="{link}">Open in dashboard</a></p>
    """
    return send_email(to_email, title, body)
