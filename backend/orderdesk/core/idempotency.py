"""Idempotent order placement keyed by the ``Idempotency-Key`` header.

An endpoint calls ``check_idempotency`` before doing any work. A request whose
key already has a stored response gets that response back unchanged. A key
that is reserved but still waiting for its response belongs to a request in
flight, so the newcomer is refused with 409 rather than run a second time.
Otherwise the key is reserved and the endpoint proceeds: on success it calls
``record_idempotency_response``, on failure ``release_idempotency_key`` so a
retry may run again.

Keys are scoped to the caller, so two users may reuse the same key. Records
are purged after ``IDEMPOTENCY_TTL_HOURS``.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderdesk.core.config import settings
from orderdesk.core.errors import IdempotencyKeyInProgress
from orderdesk.repositories.idempotency_repository import IdempotencyRepository

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
REPLAYED_HEADER = "Idempotency-Replayed"


@dataclass
class IdempotencyResult:
    """A key reserved by this request, awaiting its response."""

    key: str
    method: str
    path: str


def _in_progress(key: str) -> JSONResponse:
    logger.info("Idempotency key %r is still in progress", key)
    error = IdempotencyKeyInProgress()
    return JSONResponse(status_code=error.status_code, content={"message": str(error)})


def check_idempotency(
    request: Request,
    db: Session,
    user_identity: str,
) -> JSONResponse | IdempotencyResult | None:
    """Look up the caller's ``Idempotency-Key``.

    Returns:
        - ``None`` when the request carries no key.
        - A ``JSONResponse`` replaying the stored response, marked with
          ``Idempotency-Replayed: true``.
        - A 409 ``JSONResponse`` when another request holds the key and has
          not finished.
        - An ``IdempotencyResult`` when this request now holds the key.
    """
    key = request.headers.get(IDEMPOTENCY_HEADER)
    if not key:
        return None

    repo = IdempotencyRepository(db)
    purged = repo.purge_older_than(settings.IDEMPOTENCY_TTL_HOURS)
    if purged:
        logger.debug("Purged %d expired idempotency records", purged)

    existing = repo.find(user_identity, key)
    if existing is not None:
        if existing.response_status is None:
            return _in_progress(key)
        logger.info("Replaying %s %s for key %r", existing.request_method, existing.request_path, key)
        return JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
            headers={REPLAYED_HEADER: "true"},
        )

    try:
        repo.reserve(user_identity, key, request.method, request.url.path)
    except IntegrityError:
        # A concurrent request reserved the same key between find and insert
        db.rollback()
        return _in_progress(key)

    return IdempotencyResult(key=key, method=request.method, path=request.url.path)


def record_idempotency_response(
    db: Session,
    user_identity: str,
    key: str,
    status: int,
    body: dict[str, Any],
) -> None:
    """Store the response for ``key`` so later retries replay it."""
    repo = IdempotencyRepository(db)
    record = repo.find(user_identity, key)
    if record is not None:
        repo.store_response(record, status, body)


def release_idempotency_key(db: Session, user_identity: str, reservation: IdempotencyResult | None) -> None:
    """Give up a reservation after the request failed. No-op without one."""
    if reservation is None:
        return
    IdempotencyRepository(db).release(user_identity, reservation.key)
    logger.info("Released idempotency key %r after a failed request", reservation.key)
