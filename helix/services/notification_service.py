"""Transactional email notifications.

Best-effort: ``notify`` never raises. A failed email is logged and the
state change that triggered it stands.

Delivery goes through the Resend HTTP API when PLATFORM_RESEND_API_KEY is
set; otherwise the message is only logged. In dev the plaintext OTP is
logged so local logins work without a mail provider.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from helix.core.config import settings
from helix.services.http_service import request_with_retries
from helix.utils.normalization import mask_email

if TYPE_CHECKING:
    from helix.db.models import User
    from helix.services.settings_service import SettingsProvider

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3

# Variables in format {{variable_name}}
VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_BUSINESS_NAME = "Helix"


class TemplateKind(str, Enum):
    OTP = "otp"
    WELCOME = "welcome"
    PROFILE_ACTIVE = "profile_active"
    PROFILE_REJECTED = "profile_rejected"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    body: str


_FOOTER = "<p style=\"color:#888;font-size:12px\">{{footer_text}}</p>"

TEMPLATES: dict[TemplateKind, EmailTemplate] = {
    TemplateKind.OTP: EmailTemplate(
        subject="Your Verification Code",
        body=(
            "<p>Your {{business_name}} verification code is:</p>"
            "<h2>{{otp}}</h2>"
            "<p>This code expires in {{ttl_minutes}} minutes. "
            "If you did not request it, you can ignore this email.</p>" + _FOOTER
        ),
    ),
    TemplateKind.WELCOME: EmailTemplate(
        subject="Welcome to the {{business_name}} Family!",
        body=(
            "<p>Hi {{first_name}},</p>"
            "<p>Welcome to {{business_name}}. Continue your profile at "
            "<a href=\"{{frontend_url}}\">{{frontend_url}}</a>.</p>" + _FOOTER
        ),
    ),
    TemplateKind.PROFILE_ACTIVE: EmailTemplate(
        subject="Congratulations! Your Profile is Active",
        body=(
            "<p>Hi {{first_name}},</p>"
            "<p>Your {{business_name}} profile has been approved and is now active.</p>"
            "<p><a href=\"{{frontend_url}}/home\">Go to your dashboard</a></p>" + _FOOTER
        ),
    ),
    TemplateKind.PROFILE_REJECTED: EmailTemplate(
        subject="Action Required: Profile Review Update",
        body=(
            "<p>Hi {{first_name}},</p>"
            "<p>We reviewed your {{business_name}} profile and need some changes "
            "before it can be approved.</p>"
            "<p><strong>Reason:</strong> {{reason}}</p>"
            "<p><a href=\"{{frontend_url}}/profile/rejected\">Update your profile</a></p>"
            + _FOOTER
        ),
    ),
}


# =============================================================================
# Rendering
# =============================================================================

def render_template(
    subject: str,
    body: str,
    variables: dict[str, str],
) -> tuple[str, str]:
    """
    Render a template with variable substitution.

    Missing variables are replaced with empty string. Values are
    HTML-escaped in the body; the subject is plain text.

    Returns (rendered_subject, rendered_body).
    """
    def replace_plain(match: re.Match) -> str:
        return variables.get(match.group(1), "")

    def replace_escaped(match: re.Match) -> str:
        return html.escape(variables.get(match.group(1), ""))

    return VARIABLE_PATTERN.sub(replace_plain, subject), VARIABLE_PATTERN.sub(replace_escaped, body)


def _html_to_text(content: str) -> str:
    text = re.sub(r"<[^>]+>", " ", content)
    text = re.sub(r"\s+", " ", text).strip()
    return html.unescape(text)


def build_variables(data: dict[str, Any], provider: SettingsProvider | None) -> dict[str, str]:
    variables = {
        "business_name": DEFAULT_BUSINESS_NAME,
        "footer_text": "",
        "frontend_url": settings.FRONTEND_URL.rstrip("/"),
        "ttl_minutes": str(settings.OTP_TTL_MINUTES),
    }
    if provider is not None:
        variables["business_name"] = provider.get("BUSINESS_NAME") or DEFAULT_BUSINESS_NAME
        variables["footer_text"] = provider.get("MAIL_FOOTER_TEXT") or ""
    for key, value in data.items():
        variables[key] = "" if value is None else str(value)
    return variables


# =============================================================================
# Delivery
# =============================================================================

async def deliver(
    to: str,
    subject: str,
    body_html: str,
    *,
    from_name: str = DEFAULT_BUSINESS_NAME,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Send one email. Returns True when accepted by the provider (or logged)."""
    if not settings.PLATFORM_RESEND_API_KEY:
        logger.info("Email provider not configured; would send '%s' to %s", subject, mask_email(to))
        return True

    payload: dict[str, object] = {
        "from": f"{from_name} <{settings.EMAIL_FROM}>",
        "to": [to],
        "subject": subject,
        "html": body_html,
    }
    text = _html_to_text(body_html)
    if text:
        payload["text"] = text

    headers = {
        "Authorization": f"Bearer {settings.PLATFORM_RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(
        timeout=settings.EMAIL_TIMEOUT_SECONDS, transport=transport
    ) as client:
        response = await request_with_retries(
            lambda: client.post(RESEND_SEND_URL, json=payload, headers=headers),
            max_attempts=RESEND_MAX_ATTEMPTS,
        )

    if response.status_code >= 400:
        logger.error(
            "Resend rejected email '%s' to %s: HTTP %s",
            subject,
            mask_email(to),
            response.status_code,
        )
        return False
    return True


async def notify(
    address: str,
    template_kind: TemplateKind | str,
    data: dict[str, Any] | None = None,
    provider: SettingsProvider | None = None,
) -> bool:
    """
    Render and send a templated email. Never raises.

    Returns True when the email was sent (or logged in place of sending).
    """
    try:
        kind = TemplateKind(template_kind)
        template = TEMPLATES[kind]
        variables = build_variables(data or {}, provider)
        subject, body = render_template(template.subject, template.body, variables)

        if kind == TemplateKind.OTP and settings.is_dev:
            logger.info("Development OTP for %s: %s", mask_email(address), variables.get("otp"))

        return await deliver(address, subject, body, from_name=variables["business_name"])
    except Exception:
        logger.exception("Failed to send %s email to %s", template_kind, mask_email(address))
        return False


# =============================================================================
# Convenience senders
# =============================================================================

def _first_name(user: User) -> str:
    profile = user.profile
    if profile and profile.legal_name:
        return profile.legal_name.split(" ")[0]
    return "User"


async def send_otp_email(address: str, code: str, provider: SettingsProvider | None = None) -> bool:
    return await notify(address, TemplateKind.OTP, {"otp": code}, provider)


async def send_profile_status_email(
    user: User,
    status: str,
    reason: str | None = None,
    provider: SettingsProvider | None = None,
) -> bool:
    """Profile-active / profile-rejected announcement after a review decision."""
    from helix.db.enums import ProfileStatus

    if status == ProfileStatus.ACTIVE.value:
        return await notify(
            user.email, TemplateKind.PROFILE_ACTIVE, {"first_name": _first_name(user)}, provider
        )
    if status == ProfileStatus.REJECTED.value:
        return await notify(
            user.email,
            TemplateKind.PROFILE_REJECTED,
            {"first_name": _first_name(user), "reason": reason},
            provider,
        )
    return False


async def send_welcome_email(user: User, provider: SettingsProvider | None = None) -> bool:
    return await notify(user.email, TemplateKind.WELCOME, {"first_name": _first_name(user)}, provider)
