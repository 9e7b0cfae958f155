"""Address verification pipeline.

One request runs: rate limit -> session gate -> log table provisioning ->
input validation -> locality lookup -> reconciliation -> audit write.  Every
step that fails short-circuits into a response in the same envelope; nothing
raised below :meth:`AddressVerificationPipeline.handle` reaches the caller.

Audit policy: rate-limited and unauthenticated requests are not logged;
every request from a signed-in user is, including invalid input (with the
raw submitted values) and provider failures (with the generic message).
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from address_verifier.lib.locality import BaseLocalityClient, LocalityLookupError
from address_verifier.lib.verifier import ValidationResult, messages, validate_address_data
from address_verifier.schemas.address import ValidateAddressInput, ValidateAddressResponse, first_input_error
from address_verifier.schemas.auth import UserSession
from address_verifier.schemas.verification_log import LogEntry
from address_verifier.services.audit_service import AuditLogSink
from address_verifier.services.rate_limiter import SlidingWindowRateLimiter
from address_verifier.services.session_service import SessionReader

_INPUT_FIELDS = ("postcode", "suburb", "state")


@dataclass(frozen=True)
class PipelineResponse:
    """HTTP status plus response envelope produced by the pipeline."""

    status_code: int
    body: ValidateAddressResponse

    def content(self) -> dict[str, Any]:
        """JSON-ready body with the ``validateAddress`` key."""
        return self.body.model_dump(by_alias=True)


def _respond(
    status_code: int,
    message: str,
    *,
    success: bool = False,
    latitude: float | None = None,
    longitude: float | None = None,
) -> PipelineResponse:
    body = ValidateAddressResponse.build(success=success, message=message, latitude=latitude, longitude=longitude)
    return PipelineResponse(status_code=status_code, body=body)


def _from_result(result: ValidationResult) -> PipelineResponse:
    return _respond(
        result.status,
        result.message,
        success=result.success,
        latitude=result.latitude,
        longitude=result.longitude,
    )


def extract_variables(payload: Any) -> Any:
    """Return the ``variables`` member of a query-style payload, or None."""
    if isinstance(payload, dict):
        return payload.get("variables")
    return None


def _raw_field(variables: Any, field: str) -> str | None:
    if not isinstance(variables, dict):
        return None
    value = variables.get(field)
    if value is None:
        return None
    return str(value)


class AddressVerificationPipeline:
    """Orchestrates a single address verification request.

    All collaborators are injected so tests can substitute fakes.

    Args:
        rate_limiter: Per-IP request quota.
        session_reader: Resolves the caller's session from its token.
        locality_client: Provider lookup by postcode and state.
        audit_sink: Best-effort verification log.
        clock: Returns the current aware datetime for log timestamps.
    """

    def __init__(
        self,
        *,
        rate_limiter: SlidingWindowRateLimiter,
        session_reader: SessionReader,
        locality_client: BaseLocalityClient,
        audit_sink: AuditLogSink,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._session_reader = session_reader
        self._locality_client = locality_client
        self._audit_sink = audit_sink
        self._clock = clock or (lambda: datetime.now(UTC))

    async def handle(self, *, client_ip: str, session_token: str | None, payload: Any) -> PipelineResponse:
        """Run the pipeline for one request.

        Args:
            client_ip: Caller IP used as the rate limit key.
            session_token: Value of the session cookie, if any.
            payload: Decoded JSON body (``{"query": ..., "variables": {...}}``),
                or None when the body was not JSON.

        Returns:
            PipelineResponse; unexpected errors become a 500 response.
        """
        try:
            return await self._run(client_ip, session_token, payload)
        except Exception:
            logger.exception("Unhandled error during address verification")
            return _respond(500, messages.SERVER_ERROR)

    async def _run(self, client_ip: str, session_token: str | None, payload: Any) -> PipelineResponse:
        decision = await self._rate_limiter.check(client_ip)
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {client_ip}")
            return _respond(400, messages.TOO_MANY_REQUESTS)

        user = await self._session_reader.resolve_session(session_token)
        if user is None:
            return _respond(401, messages.UNAUTHORIZED)

        await self._audit_sink.ensure_ready()

        variables = extract_variables(payload)
        try:
            address = ValidateAddressInput.model_validate(variables)
        except ValidationError as e:
            message = first_input_error(e)
            await self._record(
                user,
                success=False,
                error_message=message,
                **{field: _raw_field(variables, field) for field in _INPUT_FIELDS},
            )
            return _respond(400, message)

        try:
            localities = await self._locality_client.lookup(address.postcode, str(address.state))
        except LocalityLookupError as e:
            logger.error(f"Locality lookup failed for postcode {address.postcode}: {e.message}")
            await self._record(
                user,
                success=False,
                error_message=messages.SERVER_ERROR,
                postcode=address.postcode,
                suburb=address.suburb,
                state=str(address.state),
            )
            return _respond(500, messages.SERVER_ERROR)

        result = validate_address_data(localities, address)
        await self._record(
            user,
            success=result.success,
            error_message=None if result.success else result.message,
            postcode=address.postcode,
            suburb=address.suburb,
            state=str(address.state),
        )
        return _from_result(result)

    async def _record(
        self,
        user: UserSession,
        *,
        success: bool,
        error_message: str | None,
        postcode: str | None,
        suburb: str | None,
        state: str | None,
    ) -> None:
        entry = LogEntry(
            user_id=user.id,
            postcode=postcode,
            suburb=suburb,
            state=state,
            timestamp=self._clock(),
            success=success,
            error_message=error_message,
        )
        logger.bind(json_output=True).info(
            "address verification",
            user_id=entry.user_id,
            postcode=entry.postcode,
            suburb=entry.suburb,
            state=entry.state,
            success=entry.success,
            error_message=entry.error_message,
        )
        await self._audit_sink.record(entry)
