"""
Contact form endpoint. POST /api/contact: rate-limited per client IP, validated, forwarded by e-mail.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from acda_site import config
from acda_site.errors import RateLimited, UpstreamFailure, ValidationFailed, error_body
from acda_site.mailer import EmailError, ResendMailer, get_mailer, render_contact_email
from acda_site.rate_limit import contact_limiter, get_client_ip
from acda_site.schemas import ContactForm, validation_details

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/contact")
def submit_contact(
    request: Request,
    # Raw body: validated after the rate limit so invalid submissions count too
    payload: Any = Body(None),
    mailer: ResendMailer = Depends(get_mailer),
):
    client_ip = get_client_ip(request)
    window = config.RATE_LIMIT_CONTACT_WINDOW_SECONDS
    if not contact_limiter.check_and_record(
        client_ip, window_seconds=window, max_count=config.RATE_LIMIT_CONTACT_MAX
    ):
        logger.warning("Rate limit exceeded for IP: %s", client_ip)
        raise RateLimited(
            "Too many submissions. Please try again later.",
            retry_after=contact_limiter.retry_after(client_ip, window_seconds=window),
        )

    try:
        form = ContactForm.model_validate(payload)
    except ValidationError as e:
        logger.info("Contact form validation failed from %s", client_ip)
        raise ValidationFailed("Validation failed", details=validation_details(e))

    logger.info("Processing contact form submission: subject=%r", form.subject)
    try:
        email_id = mailer.send(
            sender=config.CONTACT_FROM_EMAIL,
            to=config.ADMIN_EMAIL,
            reply_to=form.email,
            subject=f"New Contact Form Submission - ACDA: {form.subject}",
            html_body=render_contact_email(form.model_dump()),
        )
    except EmailError as e:
        logger.error("Error sending contact email: %s", e)
        raise UpstreamFailure("An error occurred while processing your submission. Please try again later.")

    logger.info("Contact email sent: %s", email_id)
    return {
        "success": True,
        "message": "Your message has been submitted successfully",
        "emailId": email_id,
    }


@router.get("/api/contact")
def contact_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content=error_body("Method not allowed", "METHOD_NOT_ALLOWED"),
        headers={"Allow": "POST"},
    )
