"""
Error taxonomy shared by the proximity engine, the scheduling core and the client.

Every error carries a machine readable ``kind`` plus a ``summary``/``detail``
pair that a presentation layer can render without further digging.
"""
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_COORDINATE = 'INVALID_COORDINATE'
    INVALID_REQUEST = 'INVALID_REQUEST'
    GEOLOCATION_UNAVAILABLE = 'GEOLOCATION_UNAVAILABLE'
    GEOLOCATION_TIMEOUT = 'GEOLOCATION_TIMEOUT'
    GEOLOCATION_DENIED = 'GEOLOCATION_DENIED'
    PRECONDITION_FAILED = 'PRECONDITION_FAILED'
    UPSTREAM_UNAVAILABLE = 'UPSTREAM_UNAVAILABLE'
    NOT_FOUND = 'NOT_FOUND'


class DonorLinkError(Exception):
    kind = None
    http_status = 400
    default_summary = 'Request failed'

    def __init__(self, summary=None, detail=''):
        self.summary = summary or self.default_summary
        self.detail = detail
        super().__init__(self.summary)

    def __str__(self):
        if self.detail and isinstance(self.detail, str):
            return f"{self.summary}: {self.detail}"
        return self.summary

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'summary': self.summary,
            'detail': self.detail,
        }


class InvalidCoordinate(DonorLinkError, ValueError):
    kind = ErrorKind.INVALID_COORDINATE
    default_summary = 'Invalid coordinate'


class InvalidRequest(DonorLinkError, ValueError):
    kind = ErrorKind.INVALID_REQUEST
    default_summary = 'Invalid request'


class GeolocationError(DonorLinkError):
    http_status = 503
    default_summary = 'Location unavailable'


class GeolocationUnavailable(GeolocationError):
    kind = ErrorKind.GEOLOCATION_UNAVAILABLE


class GeolocationTimeout(GeolocationError):
    kind = ErrorKind.GEOLOCATION_TIMEOUT
    default_summary = 'Timed out acquiring location'


class GeolocationDenied(GeolocationError):
    kind = ErrorKind.GEOLOCATION_DENIED
    http_status = 403
    default_summary = 'Location permission denied'


class PreconditionFailed(DonorLinkError):
    kind = ErrorKind.PRECONDITION_FAILED
    http_status = 409
    default_summary = 'Operation not allowed'


class UpstreamUnavailable(DonorLinkError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    http_status = 503
    default_summary = 'Service unavailable'


class NotFound(DonorLinkError):
    kind = ErrorKind.NOT_FOUND
    http_status = 404
    default_summary = 'Not found'


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        InvalidCoordinate, InvalidRequest, GeolocationUnavailable, GeolocationTimeout,
        GeolocationDenied, PreconditionFailed, UpstreamUnavailable, NotFound,
    )
}


def error_from_dict(payload, default=UpstreamUnavailable):
    """Rebuild an error from its ``to_dict()`` form (used by the HTTP client)."""
    payload = payload or {}
    try:
        cls = ERRORS_BY_KIND[ErrorKind(payload.get('kind'))]
    except ValueError:
        cls = default
    return cls(payload.get('summary'), payload.get('detail', ''))
