from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse


class ApplicationException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message, **self.details}
        )


class NotFoundError(ApplicationException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ConflictError(ApplicationException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class ProviderGatewayError(ApplicationException):
    """Gateway unreachable, non-2xx response, undecodable body or bad provider credentials."""

    def __init__(self, message: str, provider_platform_id: Optional[str] = None, status_code: Optional[int] = None):
        details: Dict[str, Any] = {}
        if provider_platform_id is not None:
            details["provider_platform_id"] = provider_platform_id
        if status_code is not None:
            details["gateway_status"] = status_code
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)
        self.provider_platform_id = provider_platform_id
        self.gateway_status = status_code


class ImportPhaseError(ApplicationException):
    """A whole import phase was aborted, normally because the gateway call failed."""

    def __init__(self, phase: str, provider_platform_id: str, reason: str):
        super().__init__(
            f"Import of {phase} failed for provider {provider_platform_id}: {reason}",
            status.HTTP_502_BAD_GATEWAY,
            {"phase": phase, "provider_platform_id": provider_platform_id},
        )
        self.phase = phase
        self.provider_platform_id = provider_platform_id
        self.reason = reason


class ReconciliationError(ApplicationException):
    """Could not resolve or create the internal user for one imported record."""

    def __init__(self, message: str, external_user_id: Optional[str] = None):
        super().__init__(
            message,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"external_user_id": external_user_id} if external_user_id else None,
        )
        self.external_user_id = external_user_id


class ActivityIngestionError(ApplicationException):
    """Persisting one activity event failed; nothing was written for it."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
