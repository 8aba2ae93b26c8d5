"""
Juni — Companion transfer client (Stripe Connect)

Moves a payout's net amount to the companion's connected Express account via
``POST /v1/transfers``.  Every request carries ``Idempotency-Key:
payout-<payout_id>``, which makes retrying transient failures (HTTP 429,
5xx, network errors and timeouts) safe: Stripe replays the original result
instead of moving money twice.

All failures surface as :class:`~app.errors.ExternalServiceError`.
"""

from __future__ import annotations

import uuid

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.config import get_settings
from app.errors import ExternalServiceError

logger = structlog.get_logger("juni.transfer_service")


def _is_retryable_transfer_error(exc: BaseException) -> bool:
    """Retry on rate limiting, server-side errors and transport failures."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _error_detail(exc: BaseException) -> str:
    """Pull Stripe's ``error.message`` out of a failed response if present."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
            message = body.get("error", {}).get("message")
        except ValueError:
            message = None
        return f"HTTP {exc.response.status_code}: {message or exc.response.text[:200]}"
    if isinstance(exc, httpx.TimeoutException):
        return f"Transfer request timed out ({type(exc).__name__})"
    return f"{type(exc).__name__}: {exc}"


class TransferService:
    """Thin async wrapper around the Stripe transfers endpoint.

    Parameters
    ----------
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one backed by
        ``httpx.MockTransport``).  When omitted a client is opened per call.
    wait:
        tenacity wait strategy between attempts; defaults to exponential
        backoff (0.5s, 1s, 2s ... capped at 8s).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        currency: str | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
        wait=None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.api_base = (api_base or settings.STRIPE_API_BASE).rstrip("/")
        self.currency = currency or settings.PAYOUT_CURRENCY
        self.timeout_seconds = timeout_seconds or settings.TRANSFER_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.TRANSFER_MAX_ATTEMPTS
        self._wait = wait if wait is not None else wait_exponential(multiplier=0.5, min=0.5, max=8)

    async def create_transfer(
        self,
        *,
        amount_cents: int,
        destination: str,
        payout_id: uuid.UUID,
        companion_id: uuid.UUID,
        description: str,
    ) -> str:
        """Create the transfer and return Stripe's transfer id.

        Raises
        ------
        ExternalServiceError
            On any non-2xx response, timeout or transport failure once the
            retry budget is spent.
        """
        log = logger.bind(
            payout_id=str(payout_id),
            companion_id=str(companion_id),
            amount_cents=amount_cents,
        )
        form = {
            "amount": str(amount_cents),
            "currency": self.currency,
            "destination": destination,
            "description": description,
            "metadata[payoutId]": str(payout_id),
            "metadata[companionId]": str(companion_id),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Idempotency-Key": f"payout-{payout_id}",
        }

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_retryable_transfer_error),
                stop=stop_after_attempt(self.max_attempts),
                wait=self._wait,
                reraise=True,
            ):
                with attempt:
                    log.debug(
                        "transfer_attempt",
                        attempt_number=attempt.retry_state.attempt_number,
                    )
                    payload = await self._post("/v1/transfers", form, headers)
        except (httpx.HTTPError, ValueError) as exc:
            detail = _error_detail(exc)
            log.error("transfer_failed", error=detail)
            raise ExternalServiceError(
                f"Transfer failed: {detail}", service="stripe"
            ) from exc

        transfer_id = payload.get("id")
        if not transfer_id:
            log.error("transfer_missing_id", response=payload)
            raise ExternalServiceError(
                "Transfer failed: response did not include a transfer id",
                service="stripe",
            )

        log.info("transfer_created", transfer_id=transfer_id)
        return transfer_id

    async def _post(self, path: str, form: dict, headers: dict) -> dict:
        if self._client is not None:
            response = await self._client.post(
                f"{self.api_base}{path}", data=form, headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(f"{self.api_base}{path}", data=form, headers=headers)
            response.raise_for_status()
            return response.json()
