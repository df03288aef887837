"""HTTP client for the DonorLink JSON API."""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import requests

from algorithms.bounds import BoundingBox
from algorithms.haversine import GeoPoint
from algorithms.map_points import geo_entity_from_json
from donorlink.errors import (
    InvalidRequest, NotFound, PreconditionFailed, UpstreamUnavailable, error_from_dict,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15

ERRORS_BY_STATUS = {
    400: InvalidRequest,
    404: NotFound,
    409: PreconditionFailed,
}


@dataclass(frozen=True)
class Page:
    results: list
    page: int
    limit: int
    total_results: int
    total_pages: int

    @classmethod
    def from_json(cls, payload, parse=None):
        results = payload.get('results') or []
        return cls(
            results=[parse(item) for item in results] if parse else list(results),
            page=payload.get('page', 1),
            limit=payload.get('limit', len(results)),
            total_results=payload.get('totalResults', len(results)),
            total_pages=payload.get('totalPages', 1),
        )

    @property
    def has_next(self):
        return self.page < self.total_pages


def _normalise_base(url):
    return url.rstrip('/') if url else ''


def _iso(value):
    return value.isoformat() if isinstance(value, date) else value


def _drop_none(params):
    return {key: value for key, value in params.items() if value is not None}


def error_from_response(response):
    """Map a failed response onto the error taxonomy (5xx is always UpstreamUnavailable)."""
    fallback = UpstreamUnavailable if response.status_code >= 500 else ERRORS_BY_STATUS.get(response.status_code, UpstreamUnavailable)
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if response.status_code < 500 and isinstance(payload, dict) and isinstance(payload.get('error'), dict):
        return error_from_dict(payload['error'], default=fallback)

    detail = (response.text or '').strip()[:500]
    return fallback(f"Request failed with HTTP {response.status_code}", detail=detail)


class DonorLinkClient:
    """Thin wrapper around the nearby-search and donation-schedule endpoints."""

    def __init__(self, base_url, session=None, timeout=DEFAULT_TIMEOUT):
        if not base_url:
            raise ValueError("base_url must be provided")
        self.base_url = _normalise_base(base_url)
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # REST helpers
    def _request(self, method, path, params=None, payload=None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method, url, params=_drop_none(params or {}), json=payload, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise UpstreamUnavailable(detail=str(exc)) from exc

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.warning("%s %s -> HTTP %s (%s)", method, url, response.status_code, error.kind.value)
            raise error

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamUnavailable('API returned a non-JSON response', detail=url) from exc

    # ------------------------------------------------------------------
    # Nearby search
    def _nearby_params(self, center: GeoPoint, radius_km, kinds, blood_type, compatible_with):
        return {
            'latitude': center.latitude,
            'longitude': center.longitude,
            'radiusKm': radius_km,
            'kindFilter': ','.join(getattr(kind, 'value', kind) for kind in kinds) if kinds else None,
            'bloodType': blood_type,
            'compatibleWith': compatible_with,
        }

    def nearby(self, center: GeoPoint, radius_km=None, kinds=None, blood_type=None,
               compatible_with=None, page=1, limit=None) -> Page:
        """One page of GeoEntities around ``center``, closest first."""
        params = self._nearby_params(center, radius_km, kinds, blood_type, compatible_with)
        params.update(page=page, limit=limit)
        return Page.from_json(self._request('GET', '/api/nearby/', params=params), parse=geo_entity_from_json)

    def nearby_map(self, center: GeoPoint, radius_km=None, kinds=None, blood_type=None,
                   compatible_with=None, popup=False) -> dict:
        """Map points plus their bounding box (a BoundingBox, or None when nothing was found)."""
        params = self._nearby_params(center, radius_km, kinds, blood_type, compatible_with)
        params['popup'] = 'true' if popup else None
        data = self._request('GET', '/api/nearby/map/', params=params)
        bounds = data.get('bounds')
        data['bounds'] = BoundingBox(*bounds) if bounds else None
        return data

    # ------------------------------------------------------------------
    # Donation schedules
    def list_schedules(self, page=1, limit=None, status=None, donor_id=None, blood_bank_id=None,
                       start_date=None, end_date=None, time_slot=None, reminder_status=None) -> Page:
        params = {
            'page': page,
            'limit': limit,
            'status': status,
            'donorId': donor_id,
            'bloodBankId': blood_bank_id,
            'startDate': _iso(start_date),
            'endDate': _iso(end_date),
            'timeSlot': time_slot,
            'reminderStatus': reminder_status,
        }
        return Page.from_json(self._request('GET', '/api/donation-schedules/', params=params))

    def get_schedule(self, schedule_id) -> dict:
        return self._request('GET', f'/api/donation-schedules/{schedule_id}/')

    def create_schedule(self, payload) -> dict:
        """``payload`` uses the API's camelCase keys (donor, bloodBank, scheduledDate, timeSlot, ...)."""
        payload = dict(payload)
        payload['scheduledDate'] = _iso(payload.get('scheduledDate'))
        return self._request('POST', '/api/donation-schedules/', payload=payload)

    def update_schedule(self, schedule_id, changes) -> dict:
        changes = dict(changes)
        if 'scheduledDate' in changes:
            changes['scheduledDate'] = _iso(changes['scheduledDate'])
        return self._request('PATCH', f'/api/donation-schedules/{schedule_id}/', payload=changes)

    def confirm_schedule(self, schedule_id) -> dict:
        return self._request('PATCH', f'/api/donation-schedules/{schedule_id}/confirm/')

    def cancel_schedule(self, schedule_id, reason: Optional[str] = None) -> dict:
        return self._request('PATCH', f'/api/donation-schedules/{schedule_id}/cancel/', payload={'reason': reason})

    def complete_schedule(self, schedule_id, donation_id) -> dict:
        return self._request('PATCH', f'/api/donation-schedules/{schedule_id}/complete/', payload={'donationId': donation_id})

    def mark_no_show(self, schedule_id) -> dict:
        return self._request('PATCH', f'/api/donation-schedules/{schedule_id}/no-show/')

    def slot_availability(self, blood_bank_id, on_date) -> list:
        """[{timeSlot, label, available}] for all ten slots."""
        params = {'bloodBankId': blood_bank_id, 'date': _iso(on_date)}
        return self._request('GET', '/api/donation-schedules/time-slots/availability/', params=params)

    def schedule_stats(self, blood_bank_id=None) -> dict:
        return self._request('GET', '/api/donation-schedules/stats/', params={'bloodBankId': blood_bank_id})

    def upcoming_schedules(self, hours=None) -> list:
        return self._request('GET', '/api/donation-schedules/upcoming/', params={'hours': hours})
