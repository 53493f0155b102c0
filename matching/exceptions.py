"""
Matching Exceptions

- API exceptions raised by services and rendered by the DRF handler
- External service errors raised by the LLM-backed services

API errors are rendered as:
{
    "success": false,
    "message": "Human-readable message",
    "error_code": "MACHINE_READABLE_CODE",
    "errors": [...],
    "meta": {...}
}
"""

import logging
from typing import Dict

from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# API EXCEPTIONS
# =============================================================================

class MatchingAPIException(APIException):
    """
    Base exception for matching API errors.

    Attributes:
        error_code: Specific error code for this instance
        extra_data: Additional data to include in the response meta
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("An unexpected error occurred.")
    default_code = "ERROR"

    def __init__(self, detail: str = None, code: str = None, extra_data: Dict = None):
        self.error_code = code or self.default_code
        self.extra_data = extra_data or {}

        if detail is None:
            detail = str(self.default_detail)

        super().__init__(detail=detail, code=code)


class _ResourceNotFound(MatchingAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    resource = 'Resource'

    def __init__(self, resource_id=None, **kwargs):
        detail = kwargs.pop('detail', None)
        if detail is None:
            detail = str(self.default_detail)
            if resource_id is not None:
                detail = f"{self.resource} {resource_id} not found."
        self.resource_id = resource_id
        super().__init__(detail=detail, **kwargs)


class MatchNotFound(_ResourceNotFound):
    default_detail = _("Match not found.")
    default_code = "MATCH_NOT_FOUND"
    resource = 'Match'


class CandidateNotFound(_ResourceNotFound):
    default_detail = _("Candidate not found.")
    default_code = "CANDIDATE_NOT_FOUND"
    resource = 'Candidate'


class JobNotFound(_ResourceNotFound):
    default_detail = _("Job not found.")
    default_code = "JOB_NOT_FOUND"
    resource = 'Job'


class MatrixNotFound(_ResourceNotFound):
    """Raised when a candidate or job has no matrix to match on."""

    default_detail = _("Matrix not found.")
    default_code = "MATRIX_NOT_FOUND"
    resource = 'Matrix'


class BulkJobNotFound(_ResourceNotFound):
    default_detail = _("Bulk job not found.")
    default_code = "BULK_JOB_NOT_FOUND"
    resource = 'Bulk job'


class InvalidBulkOperation(MatchingAPIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Invalid bulk operation.")
    default_code = "INVALID_BULK_OPERATION"


# =============================================================================
# EXTERNAL SERVICE ERRORS
# =============================================================================

class ExternalServiceError(Exception):
    """Raised when a call to the LLM provider fails or returns unusable data."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class ExplanationError(ExternalServiceError):
    """The match explanation could not be generated."""


class ExtractionError(ExternalServiceError):
    """A candidate or job matrix could not be extracted."""


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

def matching_exception_handler(exc, context):
    """
    Exception handler for standardized error responses.

    Configured as REST_FRAMEWORK['EXCEPTION_HANDLER'].
    """
    response = exception_handler(exc, context)

    if response is None:
        logger.exception(f"Unhandled exception: {exc}")
        return Response(
            {
                "success": False,
                "message": "An unexpected error occurred.",
                "error_code": "INTERNAL_ERROR",
                "errors": [],
                "meta": {"timestamp": timezone.now().isoformat()},
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    error_data = {
        "success": False,
        "message": "",
        "error_code": "ERROR",
        "errors": [],
        "meta": {"timestamp": timezone.now().isoformat()},
    }

    if isinstance(exc, MatchingAPIException):
        error_data["message"] = str(exc.detail)
        error_data["error_code"] = exc.error_code
        if exc.extra_data:
            error_data["meta"].update(exc.extra_data)

    elif isinstance(exc, ValidationError):
        error_data["error_code"] = "VALIDATION_ERROR"
        if isinstance(exc.detail, dict):
            error_data["errors"] = [
                {"field": field, "messages": msgs if isinstance(msgs, list) else [str(msgs)]}
                for field, msgs in exc.detail.items()
            ]
            error_data["message"] = "Validation failed."
        elif isinstance(exc.detail, list):
            error_data["errors"] = [
                {"field": "non_field_errors", "messages": [str(e) for e in exc.detail]}
            ]
            error_data["message"] = str(exc.detail[0]) if exc.detail else "Validation failed."
        else:
            error_data["message"] = str(exc.detail)

    else:
        error_data["message"] = str(exc.detail) if hasattr(exc, 'detail') else str(exc)
        error_data["error_code"] = str(getattr(exc, 'default_code', 'ERROR')).upper()

    response.data = error_data
    return response
