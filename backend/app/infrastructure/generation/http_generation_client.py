"""HTTP client for the holistic analysis generation service — implements GenerationClient.

Posts the aggregated record details to the generation endpoint using httpx
and validates the JSON reply against an explicit schema before handing it
to the application layer. The whole call runs under one wall-clock budget;
when it expires the in-flight request is cancelled.
"""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.application.interfaces.generation_client import (
    GenerationClient,
    GenerationRequest,
    GenerationResult,
)
from app.domain.exceptions import GenerationFailure, GenerationTimeout

logger = logging.getLogger(__name__)


class GenerationResponsePayload(BaseModel):
    """Wire schema of a successful generation response.

    ``analysis`` and ``firestoreSaved`` are mandatory; a 200 reply without
    them is a failure, not something to default.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    analysis: str = Field(..., min_length=1)
    firestore_saved: bool = Field(..., alias="firestoreSaved")
    generated_by: str | None = Field(None, alias="generatedBy")
    summaries_used: bool | None = Field(None, alias="summariesUsed")
    comments_used: bool | None = Field(None, alias="commentsUsed")
    performance: dict[str, Any] | None = None


class HttpGenerationClient(GenerationClient):
    """Infrastructure adapter — calls the generation service over HTTP."""

    def __init__(
        self,
        endpoint_url: str,
        timeout_seconds: float = 50.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._endpoint_url = endpoint_url
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    @staticmethod
    def _get_headers() -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache, no-store, must-revalidate",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        # The wall-clock budget is enforced around the call, not per phase
        return httpx.AsyncClient(timeout=None)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send one generation request and return the normalized result."""
        payload = request.to_payload()
        client = await self._get_client()
        should_close = self._http_client is None

        logger.info(
            "Requesting analysis for user %s (%d record details)",
            request.user_id,
            len(request.record_details),
        )

        try:
            try:
                response = await asyncio.wait_for(
                    client.post(
                        self._endpoint_url, headers=self._get_headers(), json=payload
                    ),
                    timeout=self._timeout_seconds,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                logger.warning(
                    "Generation for user %s aborted after %.0fs",
                    request.user_id,
                    self._timeout_seconds,
                )
                raise GenerationTimeout(self._timeout_seconds) from exc
            except httpx.HTTPError as exc:
                raise GenerationFailure(f"Generation service unreachable: {exc}") from exc

            if response.status_code != 200:
                self._raise_service_error(response)

            return self._parse_response(response, sent=len(request.record_details))

        finally:
            if should_close:
                await client.aclose()

    def _parse_response(self, response: httpx.Response, *, sent: int) -> GenerationResult:
        """Validate the JSON body and map it to a GenerationResult."""
        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationFailure(
                "Generation service returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

        try:
            payload = GenerationResponsePayload.model_validate(data)
        except ValidationError as exc:
            missing = ", ".join(
                ".".join(str(part) for part in err["loc"]) or "body" for err in exc.errors()
            )
            raise GenerationFailure(
                f"No analysis data received from API (invalid fields: {missing})",
                status_code=response.status_code,
            ) from exc

        return GenerationResult(
            text=payload.analysis,
            generated_by=payload.generated_by,
            record_count=sent,
            persisted_by_service=payload.firestore_saved,
            summaries_used=payload.summaries_used,
            comments_used=payload.comments_used,
            performance_metrics=payload.performance,
        )

    @staticmethod
    def _raise_service_error(response: httpx.Response) -> None:
        """Raise GenerationFailure from a non-200 httpx Response."""
        try:
            data = response.json()
            message = data.get("message") or data.get("error") or response.text
        except Exception:
            message = response.text

        raise GenerationFailure(
            f"API request failed with status {response.status_code}: {message}",
            status_code=response.status_code,
        )
