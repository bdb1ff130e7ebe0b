import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import config
from .db import init_db, upsert_mandate, get_db_stats
from .errors import KeyUnavailable, ValidationError
from .keys import load_public_key
from .logging_config import audit_log, configure_logging, set_request_id
from .mailer import Mailer, build_contact_notification, build_mandate_notification
from .models import ContactMessage, MandateSubmission, SubmissionAccepted
from .rate_limit import RateLimiter
from .security import (
    extract_client_id,
    validate_amounts,
    validate_email,
    validate_envelope,
    validate_identifier,
    validate_single_line,
    validate_string_length,
)
from .signature import decode_data_url
from .util import now_epoch

logger = logging.getLogger("intake.server")

# Interactive docs are not exposed in production
app = FastAPI(
    title="Mandate Intake",
    docs_url=None if config.is_production() else "/docs",
    redoc_url=None,
    openapi_url=None if config.is_production() else "/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

MAILER = Mailer.from_config()
submit_limiter = RateLimiter(config.SUBMIT_RPM)
contact_limiter = RateLimiter(config.CONTACT_RPM)


def _error(status: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, "message": message})


def _client_id(request: Request) -> str:
    host = request.client.host if request.client else None
    return extract_client_id(request.headers, host)


@app.on_event("startup")
def _startup():
    level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    configure_logging(level, json_format=config.LOG_JSON, log_file=config.LOG_FILE)
    init_db()
    checks = config.validate_config()
    for name, ok in checks.items():
        if not ok:
            logger.warning("Configuration check failed: %s", name)
    logger.info("Allowed origins: %s", ", ".join(config.ALLOWED_ORIGINS))


@app.middleware("http")
async def _request_context(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id") or None)
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


@app.exception_handler(RequestValidationError)
async def _invalid_body(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid request body") if errors else "invalid request body"
    return _error(400, "Invalid data", detail)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "environment": config.ENV,
        "checks": config.validate_config(),
        **get_db_stats(),
    }


@app.get("/public-key.asc", response_class=PlainTextResponse)
def public_key():
    try:
        armored = Path(config.PUBLIC_KEY_PATH).read_text(encoding="utf-8")
        load_public_key(armored)
    except (OSError, KeyUnavailable) as e:
        logger.error("Public key unavailable: %s", e)
        return _error(503, "Service unavailable", "The public key is not available")
    return PlainTextResponse(armored)


@app.post("/api/submit-mandat")
def submit_mandate(req: MandateSubmission, request: Request):
    client_id = _client_id(request)
    if not submit_limiter.allow(client_id):
        audit_log.rate_limit_exceeded(client_id, "/api/submit-mandat")
        return _error(429, "Too many requests", "Too many submissions, please try again later")

    if not req.identifier or not req.encryptedData or not req.signature:
        audit_log.mandate_rejected("missing fields")
        return _error(400, "Missing data", "Identifier, encrypted data and signature are required")

    try:
        identifier = validate_identifier(req.identifier)
        validate_envelope(req.encryptedData)
        signature_png = decode_data_url(req.signature, max_bytes=config.MAX_SIGNATURE_BYTES)
        amounts = None
        if req.amounts is not None:
            amounts = validate_amounts(req.amounts.totalAssets, req.amounts.fee, req.amounts.netAmount)
    except ValidationError as e:
        audit_log.mandate_rejected(e.message, field=e.field)
        return _error(400, "Invalid data", str(e))

    audit_log.mandate_received(identifier, has_amounts=amounts is not None)

    amounts_json = json.dumps(amounts.to_dict(), sort_keys=True) if amounts else None
    try:
        count = upsert_mandate(identifier, req.encryptedData, signature_png, amounts_json, now_epoch())
    except sqlite3.Error:
        logger.exception("Mandate %s could not be stored", identifier)
        return _error(500, "Server error", "The mandate could not be processed")
    audit_log.mandate_stored(identifier, count)

    # Recorded at this point; the notification is best effort.
    msg = build_mandate_notification(identifier, req.encryptedData, signature_png, datetime.now())
    if MAILER.send(msg):
        audit_log.notification_sent("mandate", msg["To"])
    else:
        audit_log.notification_failed("mandate", f"not delivered for {identifier}")

    return SubmissionAccepted(message="Mandate submitted successfully", identifier=identifier)


@app.post("/api/contact")
def contact(req: ContactMessage, request: Request):
    client_id = _client_id(request)
    if not contact_limiter.allow(client_id):
        audit_log.rate_limit_exceeded(client_id, "/api/contact")
        return _error(429, "Too many requests", "Too many messages, please try again later")

    if not req.nom or not req.email or not req.telephone:
        return _error(400, "Missing data", "Name, email and phone number are required")

    try:
        validate_string_length(req.nom, "nom", max_length=200)
        validate_single_line(req.nom, "nom")
        validate_email(req.email)
        validate_string_length(req.telephone, "telephone", max_length=40)
        validate_single_line(req.telephone, "telephone")
        if req.message:
            validate_string_length(req.message, "message", max_length=5000)
    except ValidationError as e:
        return _error(400, "Invalid data", str(e))

    audit_log.contact_received(req.email)

    msg = build_contact_notification(req.nom, req.email, req.telephone, req.message, datetime.now())
    if not MAILER.send(msg):
        audit_log.notification_failed("contact", f"message from {req.email} not delivered")
        return _error(500, "Server error", "The message could not be sent")

    audit_log.notification_sent("contact", msg["To"])
    return SubmissionAccepted(message="Message sent successfully")


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
