from django.http import Http404
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status, exceptions
from rest_framework.settings import api_settings
import logging

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'At least one product must be selected').
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, code="business_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ResourceNotFound(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message="Resource not found", code="not_found"):
        super().__init__(message, code)


class InvalidStatusTransition(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message, code="invalid_transition"):
        super().__init__(message, code)


class DuplicateRequest(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message="Duplicate request detected", code="duplicate_request"):
        super().__init__(message, code)


class ActionNotPermitted(BusinessLogicException):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message, code="permission_denied"):
        super().__init__(message, code)


def _first_message(detail, field=None):
    """
    Dig the first human-readable string out of a DRF error structure,
    prefixed with the field it belongs to.
    """
    if isinstance(detail, dict):
        for key, value in detail.items():
            key = field if key == api_settings.NON_FIELD_ERRORS_KEY else key
            message = _first_message(value, key)
            if message:
                return message
        return None
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = _first_message(value, field)
            if message:
                return message
        return None
    return f"{field}: {detail}" if field else str(detail)


def _error_body(message, code, **extra):
    body = {"message": message, "code": code, "error": True, "success": False}
    body.update(extra)
    return body


def custom_exception_handler(exc, context):
    if isinstance(exc, BusinessLogicException):
        return Response(_error_body(exc.message, exc.code), status=exc.status_code)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            _error_body("Internal Server Error", "server_error"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = _error_body(
            _first_message(exc.detail) or "Invalid request",
            "validation_error",
            errors=exc.detail,
        )
    else:
        detail = getattr(exc, "detail", response.data)
        message = str(detail) if isinstance(detail, str) else _first_message(detail)
        response.data = _error_body(
            message or "Request failed",
            getattr(exc, "default_code", "error"),
        )
    return response
