"""
Error taxonomy shared by every app.

Domain code raises these directly; ``api_exception_handler`` turns them
(and DRF's own exceptions) into the ``{"error", "code", "details"}``
response body the frontend expects.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PlatformError(exceptions.APIException):
    """Base class for business-rule violations."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed'
    default_code = 'error'

    def __init__(self, detail=None, code=None, details=None):
        super().__init__(detail=detail, code=code)
        self.details = details


class ValidationError(PlatformError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input'
    default_code = 'validation_error'


class NotFoundError(PlatformError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found'
    default_code = 'not_found'


class ConflictError(PlatformError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with existing data'
    default_code = 'conflict'


class AuthorizationError(PlatformError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action'
    default_code = 'authorization_error'


class DuplicateSubmission(ConflictError):
    # Reported as 400 to match the submit endpoint contract
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Assessment already submitted. Each assessment can only be attempted once.'
    default_code = 'duplicate_submission'


class EmptyAnswers(ValidationError):
    default_detail = 'Answers array is required and must not be empty'
    default_code = 'empty_answers'


class InvalidAnswerShape(ValidationError):
    default_detail = 'One or more answers are malformed'
    default_code = 'invalid_answer_shape'


class AssessmentValidationError(ValidationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Assessment failed validation'
    default_code = 'assessment_invalid'


def _message(detail):
    if isinstance(detail, (list, tuple)) and detail:
        return _message(detail[0])
    if isinstance(detail, dict):
        return 'Invalid input'
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF exception handler producing the platform's error body.

    Unhandled exceptions are logged and returned as a 500 instead of
    leaking a Django debug page.
    """
    if isinstance(exc, Http404):
        exc = NotFoundError(str(exc) or None)
    elif isinstance(exc, PermissionDenied):
        exc = AuthorizationError()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else 'unknown view'
        )
        return Response(
            {'error': 'Internal server error', 'code': 'server_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, PlatformError):
        body = {'error': _message(exc.detail), 'code': exc.default_code}
        if exc.details is not None:
            body['details'] = exc.details
        if isinstance(exc, ConflictError):
            logger.warning("Rejected request: %s", body['error'])
    elif isinstance(exc, exceptions.ValidationError):
        body = {'error': 'Invalid input', 'code': 'validation_error', 'details': exc.detail}
    else:
        codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
        body = {
            'error': _message(exc.detail),
            'code': codes if isinstance(codes, str) else 'error',
        }

    response.data = body
    return response
