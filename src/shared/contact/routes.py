"""Contact routes for receiving website contact form submissions."""

import ipaddress
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from src.shared.contact.handler import ContactFormHandler

router = APIRouter(prefix="/api/contact", tags=["contact"])

SUBMIT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _public_ip(value: Optional[str]) -> Optional[str]:
    """Return the address if it parses and is publicly routable."""
    if not value or not value.strip():
        return None
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    return str(address) if address.is_global else None


def get_client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Get client IP address for rate limiting.

    Forwarded headers are read only behind a trusted proxy, and only a public
    address is accepted from them. Anything else falls back to the peer address.
    """
    if trust_forwarded_for:
        # Cloudflare sets a single-address header
        cf_ip = _public_ip(request.headers.get("CF-Connecting-IP"))
        if cf_ip:
            return cf_ip
        # Take the first IP in the proxy chain
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = _public_ip(forwarded.split(",")[0])
            if first:
                return first
    # Fallback to direct connection
    return request.client.host if request.client else "unknown"


def get_contact_handler(request: Request) -> ContactFormHandler:
    """Handler built at startup and stored on the application state."""
    return request.app.state.contact_handler


@router.api_route("/submit", methods=SUBMIT_METHODS)
async def submit_contact_form(request: Request):
    """
    Submit the website contact form.

    Accepts form-encoded fields: firstName, lastName, email, phone (optional),
    company (optional), inquiryType, subject, message, newsletter (optional), privacy.

    Every outcome is a JSON body {success, message, data, timestamp}; rejections
    also carry a 4xx/5xx status code. Only POST is processed.
    """
    handler = get_contact_handler(request)

    form = {}
    if request.method == "POST":
        form_data = await request.form()
        # File uploads are not part of the form
        form = {key: value for key, value in form_data.items() if isinstance(value, str)}

    client_ip = get_client_ip(request, handler.settings.trust_forwarded_for)
    user_agent = request.headers.get("User-Agent", "Unknown")

    # SMTP and file writes block; keep them off the event loop
    response, status_code = await run_in_threadpool(handler.handle, request.method, form, client_ip, user_agent)
    return JSONResponse(status_code=status_code, content=response.model_dump())
