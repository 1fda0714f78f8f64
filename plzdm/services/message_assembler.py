"""Welcome-message assembly — turns the form into a validated message payload."""

import logging
import re
from typing import Literal

from plzdm.config import Settings
from plzdm.constants import CTA_FIELDS, MAX_CTAS, MAX_TEXT_LENGTH, MAX_URL_LENGTH
from plzdm.errors import MessageValidationError, ValidationError
from plzdm.schemas.messages import CallToAction, WelcomeMessageForm, WelcomeMessagePayload

logger = logging.getLogger(__name__)

# Scheme and "//" are optional. Dotted-quad hosts in 10/8, 127/8, 169.254/16,
# 192.168/16 and 172.16/12 are rejected, as are bare hostnames without a TLD.
URL_PATTERN = re.compile(
    r"^(?:(?:(?:https?|ftp):)?//)?"
    r"(?:\S+(?::\S*)?@)?"
    r"(?:"
    r"(?!(?:10|127)(?:\.\d{1,3}){3})"
    r"(?!(?:169\.254|192\.168)(?:\.\d{1,3}){2})"
    r"(?!172\.(?:1[6-9]|2\d|3[0-1])(?:\.\d{1,3}){2})"
    r"(?:[1-9]\d?|1\d\d|2[01]\d|22[0-3])"
    r"(?:\.(?:1?\d{1,2}|2[0-4]\d|25[0-5])){2}"
    r"(?:\.(?:[1-9]\d?|1\d\d|2[0-4]\d|25[0-4]))"
    r"|"
    r"(?:(?:[a-z\u00a1-\uffff0-9]-*)*[a-z\u00a1-\uffff0-9]+)"
    r"(?:\.(?:[a-z\u00a1-\uffff0-9]-*)*[a-z\u00a1-\uffff0-9]+)*"
    r"(?:\.(?:[a-z\u00a1-\uffff]{2,}))"
    r")"
    r"(?::\d{2,5})?"
    r"(?:[/?#]\S*)?$",
    re.IGNORECASE,
)

UnentitledMode = Literal["branded", "none"]


def validate_cta_url(url: str) -> bool:
    """True if ``url`` looks like a public web address."""
    if len(url) > MAX_URL_LENGTH:
        return False
    return bool(URL_PATTERN.match(url))


def branded_cta_from_settings(settings: Settings) -> CallToAction | None:
    if not settings.branded_cta_label or not settings.branded_cta_url:
        return None
    return CallToAction(label=settings.branded_cta_label, url=settings.branded_cta_url)


def assemble_message(
    form: WelcomeMessageForm,
    is_entitled: bool,
    *,
    branded_cta: CallToAction | None = None,
    gate_ctas: bool = True,
    unentitled_mode: UnentitledMode = "branded",
) -> WelcomeMessagePayload:
    """Build the message payload for a welcome-message form submission.

    User CTAs survive only when both label and link are filled in. When
    ``gate_ctas`` is on, unentitled users lose their own CTAs and get either the
    branded CTA alone or none at all, depending on ``unentitled_mode``. The
    branded CTA takes the last slot when fewer than three user CTAs survive.

    Raises:
        ValidationError: ``main_text`` is empty or too long.
        MessageValidationError: one or more surviving links are malformed.
    """
    if not form.main_text:
        raise ValidationError("main_text", "Message text is required.")
    if len(form.main_text) > MAX_TEXT_LENGTH:
        raise ValidationError("main_text", f"Message text must be at most {MAX_TEXT_LENGTH} characters.")

    include_user_ctas = is_entitled or not gate_ctas
    include_branded = include_user_ctas or unentitled_mode == "branded"

    candidates: list[tuple[str | None, CallToAction]] = []
    if include_user_ctas:
        for label_field, link_field in CTA_FIELDS:
            label = getattr(form, label_field)
            url = getattr(form, link_field)
            if label and url:
                candidates.append((link_field, CallToAction(label=label, url=url)))
    else:
        logger.debug("Dropping user CTAs for unentitled submission")

    if include_branded and branded_cta and branded_cta.label and branded_cta.url:
        candidates.append((None, branded_cta))

    errors = {
        field: "Please enter a valid URL."
        for field, cta in candidates
        if field and not validate_cta_url(cta.url)
    }
    if errors:
        raise MessageValidationError(errors)

    ctas = [cta for _, cta in candidates][:MAX_CTAS]
    return WelcomeMessagePayload(text=form.main_text, ctas=ctas or None)
