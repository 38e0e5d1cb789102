"""Participant authentication.

Two credential kinds resolve to the same participant identity:
- LocalCredential: HS256 JWT issued by the local account service
- FederatedToken: session token from the federated identity provider (Clerk)

The kind is chosen from the request (``X-Auth-Provider: federated`` selects the
federated verifier, anything else is local); a credential is only ever handed
to its own verifier.

Circuit Breaker (federated only):
- Opens after 5 consecutive JWKS infrastructure failures
- Fails fast for 60 seconds when open (returns None -> 401)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Protocol

import httpx
import jwt
from circuitbreaker import CircuitBreakerError, circuit
from fastapi import Depends, HTTPException, Request

from core.config import get_settings
from core.logger import get_logger
from core.wide_event import set_wide_event_fields

if TYPE_CHECKING:
    from clerk_backend_api import Clerk
    from clerk_backend_api.security.types import RequestState

logger = get_logger(__name__)

AUTH_PROVIDER_HEADER = "X-Auth-Provider"
FEDERATED_PROVIDER = "federated"
LOCAL_PROVIDER = "local"

_clerk_client: Clerk | None = None
_JWKS_FAILURE_REASONS: frozenset | None = None

_CIRCUIT_NAME = "federated_auth"
_CIRCUIT_FAILURE_THRESHOLD = 5
_CIRCUIT_RECOVERY_TIMEOUT = 60


@dataclass(frozen=True)
class LocalCredential:
    token: str


@dataclass(frozen=True)
class FederatedToken:
    token: str


Credential = LocalCredential | FederatedToken


@dataclass(frozen=True)
class VerifiedIdentity:
    """The participant a credential belongs to."""

    participant_id: str
    provider: str
    email: str | None = None
    display_name: str | None = None


class CredentialVerifier(Protocol):
    def verify(self, credential: Credential) -> VerifiedIdentity | None: ...


class FederatedAuthUnavailable(Exception):
    """Raised when the identity provider's JWKS cannot be loaded.

    Counts toward the circuit breaker; ordinary bad tokens do not.
    """

    def __init__(self, reason: object):
        self.reason = reason
        super().__init__(f"Federated auth unavailable: {reason}")


class LocalCredentialVerifier:
    """Verifies locally issued JWTs. Participant id is ``sub``, else ``id``."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, credential: Credential) -> VerifiedIdentity | None:
        if not isinstance(credential, LocalCredential):
            return None
        try:
            payload = jwt.decode(
                credential.token, self._secret, algorithms=[self._algorithm]
            )
        except jwt.InvalidTokenError as e:
            set_wide_event_fields(auth_error="invalid_local_token")
            logger.debug("auth.local.rejected", reason=type(e).__name__)
            return None

        participant_id = payload.get("sub") or payload.get("id")
        if not participant_id:
            return None

        return VerifiedIdentity(
            participant_id=str(participant_id),
            provider=LOCAL_PROVIDER,
            email=payload.get("email"),
            display_name=payload.get("name"),
        )


@circuit(
    failure_threshold=_CIRCUIT_FAILURE_THRESHOLD,
    recovery_timeout=_CIRCUIT_RECOVERY_TIMEOUT,
    expected_exception=(FederatedAuthUnavailable,),
    name=_CIRCUIT_NAME,
)
def _authenticate_with_circuit_breaker(
    clerk: Clerk, token: str, authorized_parties: list[str]
) -> RequestState:
    """Raises FederatedAuthUnavailable on JWKS failure (trips the breaker)."""
    from clerk_backend_api.security.types import AuthenticateRequestOptions

    request = httpx.Request(
        "GET",
        "https://federated.invalid/",
        headers={"Authorization": f"Bearer {token}"},
    )
    request_state = clerk.authenticate_request(
        request,
        AuthenticateRequestOptions(authorized_parties=authorized_parties),
    )

    if not request_state.is_signed_in:
        reason = getattr(request_state, "reason", None)
        if _JWKS_FAILURE_REASONS and reason in _JWKS_FAILURE_REASONS:
            raise FederatedAuthUnavailable(reason)

    return request_state


class FederatedTokenVerifier:
    """Verifies provider session tokens through the Clerk SDK."""

    def __init__(self, clerk: Clerk, authorized_parties: list[str]) -> None:
        self._clerk = clerk
        self._authorized_parties = authorized_parties

    def verify(self, credential: Credential) -> VerifiedIdentity | None:
        if not isinstance(credential, FederatedToken):
            return None
        try:
            request_state = _authenticate_with_circuit_breaker(
                self._clerk, credential.token, self._authorized_parties
            )
        except CircuitBreakerError:
            set_wide_event_fields(auth_error="federated_circuit_open")
            return None
        except FederatedAuthUnavailable as e:
            set_wide_event_fields(
                auth_error="federated_infrastructure_issue",
                auth_error_reason=str(e.reason),
            )
            return None

        if not request_state.is_signed_in or request_state.payload is None:
            return None

        payload = request_state.payload
        participant_id = payload.get("sub")
        if not participant_id:
            return None

        return VerifiedIdentity(
            participant_id=str(participant_id),
            provider=FEDERATED_PROVIDER,
            email=payload.get("email"),
            display_name=payload.get("name"),
        )


def init_auth() -> None:
    """Initialize the federated provider SDK. Federated auth is off without a key."""
    global _clerk_client, _JWKS_FAILURE_REASONS

    settings = get_settings()
    if not settings.clerk_secret_key:
        logger.warning(
            "auth.federated.disabled",
            hint="CLERK_SECRET_KEY not configured; federated tokens will get 401",
        )
        return

    from clerk_backend_api import Clerk as _Clerk
    from clerk_backend_api.security.types import TokenVerificationErrorReason

    _clerk_client = _Clerk(bearer_auth=settings.clerk_secret_key)
    _JWKS_FAILURE_REASONS = frozenset(
        {
            TokenVerificationErrorReason.JWK_FAILED_TO_LOAD,
            TokenVerificationErrorReason.JWK_REMOTE_INVALID,
            TokenVerificationErrorReason.JWK_FAILED_TO_RESOLVE,
            TokenVerificationErrorReason.JWK_KID_MISMATCH,
        }
    )
    logger.info("auth.federated.initialized")


def close_auth() -> None:
    global _clerk_client
    _clerk_client = None


def credential_from_request(request: Request) -> Credential | None:
    """Extract the bearer token and tag it with its credential kind."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None

    provider = request.headers.get(AUTH_PROVIDER_HEADER, LOCAL_PROVIDER).lower()
    if provider == FEDERATED_PROVIDER:
        return FederatedToken(token)
    return LocalCredential(token)


def get_verifier(credential: Credential) -> CredentialVerifier | None:
    """Pick the verifier for a credential kind, or None if that kind is disabled."""
    match credential:
        case FederatedToken():
            if _clerk_client is None:
                return None
            return FederatedTokenVerifier(_clerk_client, get_settings().allowed_origins)
        case LocalCredential():
            settings = get_settings()
            return LocalCredentialVerifier(settings.jwt_secret, settings.jwt_algorithm)
    return None


def verify_credential(credential: Credential) -> VerifiedIdentity | None:
    verifier = get_verifier(credential)
    if verifier is None:
        set_wide_event_fields(auth_error="provider_disabled")
        return None
    return verifier.verify(credential)


def require_identity(request: Request) -> VerifiedIdentity:
    """Raises 401 if not authenticated. Sets request.state.user_id."""
    credential = credential_from_request(request)
    identity = verify_credential(credential) if credential else None
    if identity is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    request.state.user_id = identity.participant_id
    set_wide_event_fields(
        user_id=identity.participant_id, auth_provider=identity.provider
    )
    return identity


CurrentIdentity = Annotated[VerifiedIdentity, Depends(require_identity)]
