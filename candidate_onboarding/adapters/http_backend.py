"""HTTP implementation of the candidate backend contract.

Endpoints (JSON bodies, bearer auth):
- GET    /candidates/me      : lookup; 404 means not provisioned yet
- POST   {provision_path}    : provider-specific creation call
- PATCH  /candidates/{id}    : sparse update
- POST   /documents          : multipart upload
- DELETE /documents/{id}     : remove upload

A fresh token is requested from the token provider for every call.
Responses may be wrapped in a ``{"data": ...}`` envelope or bare.
"""

from typing import Any

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from candidate_onboarding.adapters.base import (
    CandidateBackend,
    ProvisionResult,
    TokenProvider,
)
from candidate_onboarding.core.config import settings
from candidate_onboarding.core.errors import (
    AuthTokenMissing,
    BackendRequestError,
    RecordNotFound,
)
from candidate_onboarding.core.file_validation import sanitize_filename
from candidate_onboarding.schemas.documents import (
    CANDIDATE_ENTITY_TYPE,
    RESUME_DOCUMENT_TYPE,
    AttachmentFile,
    UploadedDocument,
)
from candidate_onboarding.schemas.profile import Identity, ProfileRecord

logger = structlog.get_logger()

_GENERIC_ERROR = "Request failed"


def _unwrap(body: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope if present."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _error_message(response: httpx.Response) -> str:
    """Pull a message out of ``{"error": {"message": ...}}`` or ``{"error": "..."}``."""
    try:
        body = response.json()
    except ValueError:
        return f"{_GENERIC_ERROR} ({response.status_code})"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return f"{_GENERIC_ERROR} ({response.status_code})"


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise BackendRequestError("Malformed response body", cause=exc) from exc


def _parse_record(data: Any) -> ProfileRecord:
    try:
        return ProfileRecord.model_validate(data)
    except PydanticValidationError as exc:
        raise BackendRequestError("Malformed candidate record", cause=exc) from exc


class HttpCandidateBackend(CandidateBackend):
    """CandidateBackend over httpx.

    Args:
        token_provider: Async callable returning a fresh bearer token.
        base_url: API base URL. Defaults to settings.api_base_url.
        transport: Optional httpx transport (tests inject ASGITransport).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self._token_provider = token_provider
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport
        self._timeout = timeout or settings.http_timeout_seconds

    async def _auth_headers(self) -> dict[str, str]:
        token = await self._token_provider()
        if not token:
            raise AuthTokenMissing()
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> httpx.Response:
        """Send one authenticated request.

        Raises:
            AuthTokenMissing: If the token provider returned nothing.
            RecordNotFound: On 404.
            BackendRequestError: On transport errors and other non-2xx.
        """
        headers = await self._auth_headers()

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=self._timeout,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    headers=headers,
                    json=json,
                    data=data,
                    files=files,
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "Backend request failed", method=method, path=path, error=str(exc)
            )
            raise BackendRequestError(
                "Could not reach the server", cause=exc
            ) from exc

        if response.status_code == 404:
            raise RecordNotFound(_error_message(response))
        if response.is_error:
            raise BackendRequestError(
                _error_message(response), status_code=response.status_code
            )
        return response

    async def get_current_candidate(self) -> ProfileRecord:
        """GET /candidates/me."""
        response = await self._request("GET", "/candidates/me")
        data = _unwrap(_json(response))
        if not data:
            raise RecordNotFound()
        return _parse_record(data)

    async def provision_candidate(self, identity: Identity) -> ProvisionResult:
        """POST the identity attributes to the provisioning endpoint.

        Accepts both ``{"success", "candidate", "error"}`` and the
        ``{"data": {"candidate": ...}}`` envelope.
        """
        payload: dict[str, Any] = {
            "email": identity.email,
            "name": identity.fallback_name,
            "source_app": settings.source_app,
        }
        if identity.avatar_url:
            payload["image_url"] = identity.avatar_url

        try:
            response = await self._request("POST", settings.provision_path, json=payload)
        except (RecordNotFound, BackendRequestError) as exc:
            return ProvisionResult(success=False, error=exc.message)

        body = _json(response)
        if isinstance(body, dict) and "success" in body:
            success = bool(body.get("success"))
            raw_candidate = body.get("candidate")
            error = body.get("error")
        else:
            data = _unwrap(body)
            success = True
            raw_candidate = data.get("candidate") if isinstance(data, dict) else None
            error = None

        candidate = _parse_record(raw_candidate) if raw_candidate else None
        return ProvisionResult(
            success=success,
            candidate=candidate,
            error=str(error) if error else None,
        )

    async def update_candidate(
        self, candidate_id: str, patch: dict[str, Any]
    ) -> ProfileRecord:
        """PATCH /candidates/{id} with the sparse patch."""
        response = await self._request(
            "PATCH", f"/candidates/{candidate_id}", json=patch
        )
        return _parse_record(_unwrap(_json(response)))

    async def upload_document(
        self, candidate_id: str, file: AttachmentFile
    ) -> UploadedDocument:
        """POST /documents as multipart with the resume tags."""
        response = await self._request(
            "POST",
            "/documents",
            data={
                "entity_type": CANDIDATE_ENTITY_TYPE,
                "entity_id": candidate_id,
                "document_type": RESUME_DOCUMENT_TYPE,
            },
            files={
                "file": (
                    sanitize_filename(file.filename),
                    file.content,
                    file.content_type or "application/octet-stream",
                )
            },
        )
        data = _unwrap(_json(response))
        if not isinstance(data, dict) or not data.get("id"):
            raise BackendRequestError("Upload response missing document id")
        return UploadedDocument(id=str(data["id"]), raw_data=data)

    async def delete_document(self, document_id: str) -> None:
        """DELETE /documents/{id}."""
        await self._request("DELETE", f"/documents/{document_id}")
