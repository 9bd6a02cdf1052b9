"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs.

Every error body also carries the API envelope keys ``success`` (always
``false``) and ``error`` (the Spanish, user-facing message) so clients can
treat success and failure responses uniformly.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uuid
from datetime import datetime


logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    400: "Solicitud inválida",
    401: "No autorizado",
    403: "Acceso denegado",
    404: "Recurso no encontrado",
    405: "Método no permitido",
    409: "Conflicto con el estado actual del recurso",
    422: "Datos inválidos",
    500: "Error interno del servidor",
}


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Spanish explanation specific to this occurrence, shown to users
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail or _STATUS_MESSAGES.get(status_code, title)
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "success": False,
            "error": self.detail,
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "Datos inválidos",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://tramboory.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "No autorizado",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri="https://tramboory.com/problems/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "No tienes permisos para realizar esta acción",
        required_roles: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_roles:
            extensions["required_roles"] = required_roles

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri="https://tramboory.com/problems/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail or "Recurso no encontrado",
            type_uri="https://tramboory.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "Conflicto con el estado actual del recurso",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://tramboory.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "Error interno del servidor",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri="https://tramboory.com/problems/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


# Business logic exceptions

class InsufficientStockError(ProblemDetailsException):
    """Exception when a stock operation asks for more than is available."""

    def __init__(
        self,
        requested_quantity: float,
        available_quantity: float,
        product_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = (
                f"Stock insuficiente. Disponible: {available_quantity:g}, "
                f"Solicitado: {requested_quantity:g}"
            )

        extensions = {
            "requested_quantity": requested_quantity,
            "available_quantity": available_quantity,
        }
        if product_id:
            extensions["product_id"] = product_id

        super().__init__(
            status_code=409,
            title="Insufficient Stock",
            detail=detail,
            type_uri="https://tramboory.com/problems/insufficient-stock",
            instance=instance,
            extensions=extensions,
        )


class InvalidTransitionError(ProblemDetailsException):
    """Exception when a status change is not allowed from the current status."""

    def __init__(
        self,
        current_status: str,
        target_status: str,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"No se puede cambiar el estado de {current_status} a {target_status}"

        super().__init__(
            status_code=409,
            title="Invalid Status Transition",
            detail=detail,
            type_uri="https://tramboory.com/problems/invalid-transition",
            instance=instance,
            extensions={
                "current_status": current_status,
                "target_status": target_status,
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


def _violation_path(loc: tuple) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Map request validation failures to a 400 Problem Details response.

    Each failing field is listed in ``violations`` with its dotted path.
    """
    violations = [
        {"path": _violation_path(tuple(error.get("loc", ()))), "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    problem = ValidationError(detail="Datos inválidos", instance=request.url.path)
    content = dict(problem.problem_details)
    content["violations"] = violations

    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "violation_count": len(violations)}
    )

    return JSONResponse(status_code=400, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap plain HTTP exceptions (unknown routes, wrong methods) in the error envelope."""
    message = exc.detail if isinstance(exc.detail, str) else None
    if not message or message in ("Not Found", "Method Not Allowed", "Internal server error"):
        message = _STATUS_MESSAGES.get(exc.status_code, "Error")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": message,
            "type": f"about:blank#{exc.status_code}",
            "title": message,
            "status": exc.status_code,
            "detail": message,
        },
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    problem_details = {
        "success": False,
        "error": "Error interno del servidor",
        "type": "https://tramboory.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "Error interno del servidor",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )
