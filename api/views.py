# api/views.py
"""
JSON endpoints for nearby search and donation schedules

Service calls go through capture(); a failed Result becomes the error
envelope, a successful one is serialized. Anything raised outside capture()
(bad query parameters, serializer validation) is wrapped by
api.exceptions.envelope_exception_handler.
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from algorithms.bounds import fit_bounds
from algorithms.map_points import convert_to_map_points
from donorlink.errors import InvalidRequest
from donorlink.pagination import StandardPagination
from donorlink.results import capture
from schedules import services
from schedules.availability import available_slots
from schedules.serializers import (
    CancelScheduleSerializer, CompleteScheduleSerializer, DonationScheduleSerializer,
    ScheduleCreateSerializer, ScheduleUpdateSerializer,
)
from .exceptions import error_response
from .nearby import parse_nearby_query, search_nearby


def result_response(result, render=None, status_code=status.HTTP_200_OK):
    if not result.ok:
        return error_response(result.error)
    value = render(result.value) if render else result.value
    return Response(value, status=status_code)


def render_schedule(schedule):
    return DonationScheduleSerializer(schedule).data


# ---------------------------
# Nearby search
# ---------------------------

@api_view(['GET'])
def nearby(request):
    """
    GET /api/nearby/?latitude&longitude&radiusKm&kindFilter&bloodType&compatibleWith&page&limit

    GeoEntities within radiusKm of the center, closest first.
    """
    query = parse_nearby_query(request.query_params)
    entities = search_nearby(query)

    paginator = StandardPagination()
    page = paginator.paginate_queryset(entities, request)
    return paginator.get_paginated_response([entity.to_json() for entity in page])


@api_view(['GET'])
def nearby_map(request):
    """Same search as ``nearby``, unpaginated, as styled map points plus a viewport box."""
    query = parse_nearby_query(request.query_params)
    with_popup = request.query_params.get('popup', '').lower() in ('1', 'true', 'yes')

    points = [
        point for point in convert_to_map_points(search_nearby(query), with_popup=with_popup)
        if point.has_location
    ]
    bounds = fit_bounds(points, reference=query.center)

    return Response({
        'center': query.center.to_geojson(),
        'points': [point.to_json() for point in points],
        'bounds': bounds.to_json() if bounds else None,
    })


# ---------------------------
# Donation schedules
# ---------------------------

class DonationScheduleViewSet(viewsets.GenericViewSet):
    """Donation appointments and their lifecycle operations"""
    serializer_class = DonationScheduleSerializer
    pagination_class = StandardPagination
    lookup_value_regex = r'\d+'

    def list(self, request):
        params = request.query_params
        result = capture(
            services.list_schedules,
            status=params.get('status'),
            donor_id=params.get('donorId'),
            blood_bank_id=params.get('bloodBankId'),
            start_date=params.get('startDate'),
            end_date=params.get('endDate'),
            time_slot=params.get('timeSlot'),
            reminder_status=params.get('reminderStatus'),
        )
        if not result.ok:
            return error_response(result.error)

        page = self.paginate_queryset(result.value)
        return self.get_paginated_response(DonationScheduleSerializer(page, many=True).data)

    def create(self, request):
        serializer = ScheduleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        scheduled_by = request.user if request.user.is_authenticated else None
        result = capture(services.create_schedule, scheduled_by=scheduled_by, **serializer.validated_data)
        return result_response(result, render_schedule, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return result_response(capture(services.get_schedule, pk), render_schedule)

    def partial_update(self, request, pk=None):
        serializer = ScheduleUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        return result_response(capture(services.update_schedule, pk, serializer.validated_data), render_schedule)

    @action(detail=True, methods=['patch'])
    def confirm(self, request, pk=None):
        return result_response(capture(services.confirm_schedule, pk), render_schedule)

    @action(detail=True, methods=['patch'])
    def cancel(self, request, pk=None):
        serializer = CancelScheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data.get('reason')
        return result_response(capture(services.cancel_schedule, pk, reason=reason), render_schedule)

    @action(detail=True, methods=['patch'])
    def complete(self, request, pk=None):
        serializer = CompleteScheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        donation_id = serializer.validated_data['donationId']
        return result_response(capture(services.complete_schedule, pk, donation_id), render_schedule)

    @action(detail=True, methods=['patch'], url_path='no-show')
    def no_show(self, request, pk=None):
        return result_response(capture(services.mark_no_show, pk), render_schedule)

    @action(detail=False, methods=['get'], url_path='time-slots/availability')
    def availability(self, request):
        blood_bank_id = request.query_params.get('bloodBankId')
        raw_date = request.query_params.get('date')
        if not blood_bank_id or not raw_date:
            return error_response(InvalidRequest('Missing parameters', detail="bloodBankId and date are required"))
        if not blood_bank_id.isdigit():
            return error_response(InvalidRequest('Invalid bloodBankId', detail=f"{blood_bank_id!r} is not an id"))

        result = capture(lambda: available_slots(int(blood_bank_id), services.to_date(raw_date)))
        return result_response(result, lambda slots: [slot.to_json() for slot in slots])

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return result_response(capture(services.schedule_stats, request.query_params.get('bloodBankId')))

    @action(detail=False, methods=['get'])
    def upcoming(self, request):
        raw_hours = request.query_params.get('hours')
        try:
            hours = float(raw_hours) if raw_hours else None
        except ValueError:
            return error_response(InvalidRequest('Invalid hours', detail=f"{raw_hours!r} is not a number"))

        result = capture(services.upcoming_schedules, hours)
        return result_response(result, lambda schedules: DonationScheduleSerializer(schedules, many=True).data)
