import html
import logging
from datetime import datetime

import httpx

from survey_api.config import Settings
from survey_api.errors import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
SURVEY_NAME = "Financial Awareness Survey"


async def send_email(settings: Settings, to: str, subject: str, html_body: str):
    if not settings.resend_api_key or not settings.email_from:
        raise ConfigurationError("Email service not configured. Please set RESEND_API_KEY and EMAIL_FROM.")

    try:
        async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as client:
            r = await client.post(
                RESEND_URL,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key}",
                    "Content-Type": "application/json",
                },
                json={"from": settings.email_from, "to": [to], "subject": subject, "html": html_body},
            )
            r.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error("Resend rejected email to %s: %s %s", to, e.response.status_code, e.response.text)
        raise EmailDeliveryError("Failed to send email") from e
    except httpx.HTTPError as e:
        logger.error("Resend request for %s failed: %s", to, e)
        raise EmailDeliveryError("Failed to send email") from e

    data = r.json()
    logger.info("Email %r sent to %s (id=%s)", subject, to, data.get("id"))
    return data


def decision_link(settings: Settings, token: str, action: str) -> str:
    return f"{settings.public_base_url}/api/admin/decision/{token}?action={action}"


async def send_otp_email(settings: Settings, to: str, otp: str):
    body = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:20px">
      <h2 style="margin:0 0 12px 0">{SURVEY_NAME}</h2>
      <p>Use the verification code below to complete your survey:</p>
      <p style="font-size:24px;letter-spacing:0.35em;font-weight:700;color:#4f46e5">{otp}</p>
      <p style="color:#4b5563;font-size:13px">This code will expire in <strong>{settings.otp_ttl_minutes} minutes</strong>.</p>
      <p style="color:#6b7280;font-size:12px">If you didn't request this verification, you can safely ignore this email.</p>
    </div>
    """
    return await send_email(settings, to, f"Your {SURVEY_NAME} Verification Code", body)


async def send_access_request_email(settings: Settings, to: str, name: str, email: str, reason: str, token: str):
    approve_url = decision_link(settings, token, "approve")
    deny_url = decision_link(settings, token, "deny")
    body = f"""
    <div style="font-family:Arial,sans-serif;max-width:640px;margin:0 auto;padding:20px">
      <h2 style="margin:0 0 12px 0">Dashboard Access Request</h2>
      <p style="color:#444">A user requested access to the dashboard.</p>
      <div style="border:1px solid #e5e7eb;border-radius:10px;padding:16px;background:#f9fafb">
        <p><strong>Name:</strong> {html.escape(name)}</p>
        <p><strong>Email:</strong> {html.escape(email)}</p>
        <p><strong>Reason:</strong> {html.escape(reason)}</p>
      </div>
      <p style="margin-top:18px">
        <a href="{approve_url}" style="background:#10b981;color:#fff;padding:10px 14px;border-radius:8px;text-decoration:none">Approve</a>
        <a href="{deny_url}" style="background:#ef4444;color:#fff;padding:10px 14px;border-radius:8px;text-decoration:none">Disapprove</a>
      </p>
      <p style="color:#6b7280;font-size:12px">If the buttons don't work, open these links:</p>
      <p style="font-size:12px"><a href="{approve_url}">{approve_url}</a></p>
      <p style="font-size:12px"><a href="{deny_url}">{deny_url}</a></p>
    </div>
    """
    return await send_email(settings, to, f"Dashboard Access Request - {SURVEY_NAME}", body)


async def send_access_approved_email(settings: Settings, to: str, access_code: str, expires_at: datetime):
    body = f"""
    <div style="font-family:Arial,sans-serif;max-width:640px;margin:0 auto;padding:20px">
      <h2 style="margin:0 0 12px 0">Access Approved</h2>
      <p style="color:#444">Your request to access the dashboard has been approved.</p>
      <div style="border:1px solid #e5e7eb;border-radius:10px;padding:16px;background:#f9fafb">
        <p><strong>Your Access Code:</strong></p>
        <div style="font-size:20px;font-weight:700;letter-spacing:1px">{access_code}</div>
        <p style="color:#6b7280;font-size:12px">Valid for {settings.access_token_ttl_minutes} minutes (until {expires_at.strftime('%H:%M')} UTC)</p>
      </div>
      <p style="color:#444">Open the app, go to Dashboard and paste this code in the Admin Key field.</p>
    </div>
    """
    return await send_email(settings, to, f"Dashboard Access Approved - {SURVEY_NAME}", body)


async def send_access_denied_email(settings: Settings, to: str):
    body = """
    <div style="font-family:Arial,sans-serif;max-width:640px;margin:0 auto;padding:20px">
      <h2 style="margin:0 0 12px 0">Access Request Update</h2>
      <p style="color:#444">Your request to access the dashboard was not approved at this time.</p>
    </div>
    """
    return await send_email(settings, to, f"Dashboard Access Request Update - {SURVEY_NAME}", body)
