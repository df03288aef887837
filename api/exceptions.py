# api/exceptions.py
"""
Every error leaves the API as {"error": {"kind", "summary", "detail"}}.

Installed as REST_FRAMEWORK['EXCEPTION_HANDLER']; domain errors raised from a
view and DRF's own not-found/validation errors are folded into the envelope.
Authentication and permission errors keep DRF's default body.
"""
import logging

from django.http import Http404
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from donorlink.errors import DonorLinkError, InvalidRequest, NotFound

logger = logging.getLogger(__name__)


def error_response(error: DonorLinkError):
    return Response({'error': error.to_dict()}, status=error.http_status)


def _as_domain_error(exc):
    if isinstance(exc, DonorLinkError):
        return exc
    if isinstance(exc, (Http404, exceptions.NotFound)):
        return NotFound(detail=str(getattr(exc, 'detail', exc)))
    if isinstance(exc, exceptions.ValidationError):
        return InvalidRequest(detail=exc.detail)
    if isinstance(exc, exceptions.ParseError):
        return InvalidRequest('Malformed request body', detail=str(exc.detail))
    return None


def envelope_exception_handler(exc, context):
    error = _as_domain_error(exc)
    if error is None:
        return exception_handler(exc, context)

    view = context.get('view')
    logger.warning("%s rejected: %s", view.__class__.__name__ if view else 'API', error)
    return error_response(error)
