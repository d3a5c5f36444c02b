"""
Treatment-planning gateway client.

The gateway generates alternative treatment plans from a transcript in a
single long-running request (often ~2 minutes), so there is no job to poll.
Slow gateways are handled with a generous timeout and one retry after a
fixed backoff, applied only to timeout-class failures. Anything else is
reported immediately.
"""

import json
import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from voxplan.core.config import get_settings
from voxplan.core.exceptions import PlanningRequestFailedError
from voxplan.core.models import PlanSet
from voxplan.core.utils import response_details, truncate_preview

logger = logging.getLogger(__name__)


def is_timeout_like(exc: BaseException) -> bool:
    """Whether a failed gateway call looks like a timeout or an aborted connection."""
    if isinstance(exc, httpx.HTTPStatusError):
        return False
    if isinstance(exc, (httpx.TimeoutException, httpx.RemoteProtocolError)):
        return True
    return "timeout" in str(exc).lower()


def build_curl(url: str, body: dict[str, Any]) -> str:
    """Render a ``curl`` command that reproduces a gateway request."""
    return "\n".join(
        [
            f"curl --location '{url}' \\",
            "--header 'Content-Type: application/json' \\",
            f"--data '{json.dumps(body, indent=2)}'",
        ]
    )


class PlanningGatewayClient:
    """HTTP client for the treatment-planning orchestration endpoint.

    Args:
        url: Gateway endpoint (falls back to settings).
        timeout: Per-attempt timeout in seconds (default 180).
        max_attempts: Total attempts when failures are timeout-like (default 2).
        backoff: Seconds to wait before a retry (default 2).
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings=None,
    ) -> None:
        settings = settings or get_settings()
        self._url = url or settings.planning_gateway_url
        self._timeout = timeout or settings.planning_timeout_seconds
        self._max_attempts = max_attempts or settings.planning_max_attempts
        self._backoff = backoff if backoff is not None else settings.planning_retry_backoff_seconds
        # Keep-alive connection pool avoids a fresh TLS handshake per attempt
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def submit_planning_request(
        self,
        session_id: str,
        user_id: str | None,
        slot_id: str | None,
        text: str,
    ) -> PlanSet:
        """Ask the gateway for treatment plans.

        Raises:
            PlanningRequestFailedError: Non-timeout failure, invalid response,
                or every attempt timed out (``timed_out=True``).
        """
        body = {
            "session_id": session_id,
            "user_id": user_id,
            "slot_id": slot_id,
            "treatment_planner_text": text,
        }
        preview = {**body, "treatment_planner_text": truncate_preview(text)}
        logger.info("[planner] outgoing request body %s", preview)
        logger.debug("[planner] curl to reproduce:\n%s", build_curl(self._url, preview))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._backoff),
            retry=retry_if_exception(is_timeout_like),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    resp = await self._post(body, attempt.retry_state.attempt_number)
        except httpx.HTTPStatusError as exc:
            raise PlanningRequestFailedError(details=response_details(exc.response)) from exc
        except httpx.HTTPError as exc:
            raise PlanningRequestFailedError(
                details=str(exc) or type(exc).__name__,
                timed_out=is_timeout_like(exc),
            ) from exc

        try:
            return PlanSet.from_gateway(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("[planner] unexpected gateway response for session %s", session_id)
            raise PlanningRequestFailedError(details=resp.text) from exc

    async def _post(self, body: dict[str, Any], attempt_number: int) -> httpx.Response:
        started = time.monotonic()
        try:
            resp = await self._client.post(self._url, json=body)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                "[planner] attempt failed session=%s attempt=%d duration_ms=%d error=%s: %s",
                body["session_id"],
                attempt_number,
                (time.monotonic() - started) * 1000,
                type(exc).__name__,
                exc,
            )
            raise

        plans = 0
        try:
            plans = len(resp.json().get("treatment_plans") or [])
        except (ValueError, AttributeError, TypeError):
            pass
        logger.info(
            "[planner] session=%s attempt=%d status=%d duration_ms=%d plans_returned=%d",
            body["session_id"],
            attempt_number,
            resp.status_code,
            (time.monotonic() - started) * 1000,
            plans,
        )
        return resp

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "[planner] attempt %d timed out, retrying in %.1fs",
            retry_state.attempt_number,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )
