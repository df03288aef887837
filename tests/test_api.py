from datetime import date

import pytest

from algorithms.haversine import GeoPoint, distance_km
from api.nearby import NearbyQuery, search_nearby
from bloodbanks.models import BloodBank
from donors.models import DonorProfile
from schedules.models import ScheduleStatus

pytestmark = pytest.mark.django_db

MEKELE = {'latitude': 13.5169, 'longitude': 39.45389}


def test_authentication_is_required(client):
    response = client.get('/api/nearby/', MEKELE)
    assert response.status_code in (401, 403)


def test_nearby_ranks_by_distance(api_client, blood_bank, institution, donor, other_blood_bank):
    response = api_client.get('/api/nearby/', {**MEKELE, 'radiusKm': 5})
    assert response.status_code == 200

    body = response.json()
    assert set(body) == {'results', 'page', 'limit', 'totalResults', 'totalPages'}
    ids = [(r['kind'], r['id']) for r in body['results']]
    # Quiha is ~13 km away
    assert ('blood-bank', other_blood_bank.id) not in ids
    assert ids[0] == ('blood-bank', blood_bank.id)
    assert set(ids) == {('blood-bank', blood_bank.id), ('donor', donor.id), ('medical-institution', institution.id)}

    distances = [r['distanceKm'] for r in body['results']]
    assert distances == sorted(distances)
    assert body['results'][0]['location'] == {'type': 'Point', 'coordinates': [39.45389, 13.5169]}


def test_nearby_keeps_entities_just_inside_the_radius():
    center = GeoPoint(39.0, 10.0)
    edge = BloodBank.objects.create(name='Edge', latitude=10 + 99.95 / 111.195, longitude=39.0)
    assert distance_km(center, edge.location) <= 100

    found = search_nearby(NearbyQuery(center=center, radius_km=100))
    assert [entity.id for entity in found] == [edge.id]


def test_nearby_kind_and_blood_filters(api_client, blood_bank, institution, donor, other_donor):
    DonorProfile.objects.create(first_name='Hana', last_name='G', blood_type='A', rh_factor='+', longitude=39.45, latitude=13.51)

    response = api_client.get('/api/nearby/', {**MEKELE, 'kindFilter': 'donor', 'compatibleWith': 'A+'})
    titles = [r['title'] for r in response.json()['results']]
    assert titles == ['Selam Tesfaye', 'Hana G'] or titles == ['Hana G', 'Selam Tesfaye']

    response = api_client.get('/api/nearby/', {**MEKELE, 'kindFilter': 'donor,blood-bank', 'bloodType': 'O-'})
    kinds = sorted((r['kind'], r['title']) for r in response.json()['results'])
    assert kinds == [('blood-bank', 'Ayder Blood Bank'), ('donor', 'Selam Tesfaye')]


def test_nearby_pagination(api_client, blood_bank, institution, donor):
    response = api_client.get('/api/nearby/', {**MEKELE, 'limit': 2, 'page': 2})
    body = response.json()
    assert (body['page'], body['limit'], body['totalResults'], body['totalPages']) == (2, 2, 3, 2)
    assert len(body['results']) == 1


@pytest.mark.parametrize('params, kind', [
    ({'latitude': 95, 'longitude': 39}, 'INVALID_COORDINATE'),
    ({'longitude': 39}, 'INVALID_COORDINATE'),
    ({**MEKELE, 'radiusKm': -1}, 'INVALID_REQUEST'),
    ({**MEKELE, 'radiusKm': 'far'}, 'INVALID_REQUEST'),
    ({**MEKELE, 'kindFilter': 'spaceship'}, 'INVALID_REQUEST'),
    ({**MEKELE, 'bloodType': 'Q+'}, 'INVALID_REQUEST'),
])
def test_nearby_rejects_bad_queries(api_client, params, kind):
    response = api_client.get('/api/nearby/', params)
    assert response.status_code == 400
    assert response.json()['error']['kind'] == kind


def test_nearby_map_points_and_bounds(api_client, blood_bank, institution):
    response = api_client.get('/api/nearby/map/', {**MEKELE, 'popup': 'true'})
    body = response.json()

    assert len(body['points']) == 2
    assert body['points'][0]['color'] == '#e53e3e'
    assert body['points'][0]['popup'].startswith('<strong>')
    west, south, east, north = body['bounds']
    assert west <= 39.45389 <= east and south <= 13.5169 <= north
    assert (east, south) == (39.47, 13.49)


def test_nearby_map_with_nothing_found(api_client):
    body = api_client.get('/api/nearby/map/', MEKELE).json()
    assert body['points'] == []
    assert body['bounds'] is None


def test_schedule_lifecycle_over_http(api_client, donor, blood_bank, donation, future_date):
    response = api_client.post('/api/donation-schedules/', {
        'donor': donor.id,
        'bloodBank': blood_bank.id,
        'scheduledDate': future_date.isoformat(),
        'timeSlot': '09:00-10:00',
        'donationType': 'Plasma',
        'sendReminders': False,
    }, format='json')
    assert response.status_code == 201
    created = response.json()
    assert created['status'] == 'SCHEDULED'
    assert created['donor']['bloodType'] == 'O'
    assert created['bloodBank']['location']['coordinates'] == [39.45389, 13.5169]
    assert created['scheduledBy']['email'] == 'staff@example.com'
    assert created['allowedOperations'] == ['confirm', 'cancel', 'edit']
    schedule_id = created['id']

    response = api_client.patch(f'/api/donation-schedules/{schedule_id}/complete/', {'donationId': donation.id}, format='json')
    assert response.status_code == 409
    assert response.json()['error']['kind'] == 'PRECONDITION_FAILED'

    response = api_client.patch(f'/api/donation-schedules/{schedule_id}/confirm/')
    assert response.status_code == 200
    assert response.json()['confirmedAt'] is not None

    response = api_client.patch(f'/api/donation-schedules/{schedule_id}/complete/', {'donationId': donation.id}, format='json')
    assert response.status_code == 200
    assert response.json()['completedDonation']['bagNumber'] == 'BAG-001'

    response = api_client.patch(f'/api/donation-schedules/{schedule_id}/cancel/', {'reason': 'late'}, format='json')
    assert response.status_code == 409


def test_double_booking_over_http(api_client, make_schedule, other_donor, blood_bank, future_date):
    make_schedule()
    response = api_client.post('/api/donation-schedules/', {
        'donor': other_donor.id,
        'bloodBank': blood_bank.id,
        'scheduledDate': future_date.isoformat(),
        'timeSlot': '10:00-11:00',
    }, format='json')
    assert response.status_code == 409
    assert response.json()['error']['summary'] == 'Time slot unavailable'


def test_create_validation_errors(api_client, donor, blood_bank):
    response = api_client.post('/api/donation-schedules/', {'donor': donor.id, 'timeSlot': '06:00-07:00'}, format='json')
    assert response.status_code == 400
    error = response.json()['error']
    assert error['kind'] == 'INVALID_REQUEST'
    assert 'bloodBank' in error['detail']


def test_edit_and_cancel(api_client, make_schedule):
    schedule = make_schedule()
    response = api_client.patch(f'/api/donation-schedules/{schedule.id}/', {'timeSlot': '14:00-15:00', 'notes': 'after lunch'}, format='json')
    assert response.status_code == 200
    assert response.json()['timeSlot'] == '14:00-15:00'

    response = api_client.patch(f'/api/donation-schedules/{schedule.id}/', {'status': 'COMPLETED'}, format='json')
    assert response.status_code == 400

    response = api_client.patch(f'/api/donation-schedules/{schedule.id}/cancel/', {}, format='json')
    assert response.status_code == 200
    assert response.json()['status'] == 'CANCELLED'

    response = api_client.patch(f'/api/donation-schedules/{schedule.id}/', {'notes': 'again'}, format='json')
    assert response.status_code == 409


def test_retrieve_and_missing(api_client, make_schedule):
    schedule = make_schedule()
    assert api_client.get(f'/api/donation-schedules/{schedule.id}/').json()['id'] == schedule.id

    response = api_client.get('/api/donation-schedules/9999/')
    assert response.status_code == 404
    assert response.json()['error']['kind'] == 'NOT_FOUND'


def test_list_is_paginated_and_filtered(api_client, make_schedule, other_donor):
    make_schedule()
    make_schedule(donor=other_donor, time_slot='11:00-12:00', status=ScheduleStatus.CONFIRMED)

    body = api_client.get('/api/donation-schedules/', {'status': 'CONFIRMED'}).json()
    assert body['totalResults'] == 1
    assert body['results'][0]['donor']['firstName'] == 'Dawit'

    response = api_client.get('/api/donation-schedules/', {'status': 'LOST'})
    assert response.status_code == 400


def test_availability_endpoint(api_client, make_schedule, blood_bank):
    make_schedule(scheduled_date=date(2025, 6, 10), time_slot='10:00-11:00')
    response = api_client.get('/api/donation-schedules/time-slots/availability/', {
        'bloodBankId': blood_bank.id, 'date': '2025-06-10',
    })
    assert response.status_code == 200
    slots = response.json()
    assert len(slots) == 10
    assert [s['timeSlot'] for s in slots if not s['available']] == ['10:00-11:00']

    assert api_client.get('/api/donation-schedules/time-slots/availability/', {'bloodBankId': 999, 'date': '2025-06-10'}).status_code == 404
    assert api_client.get('/api/donation-schedules/time-slots/availability/', {'bloodBankId': blood_bank.id}).status_code == 400


def test_stats_and_upcoming(api_client, make_schedule):
    make_schedule()
    stats = api_client.get('/api/donation-schedules/stats/').json()
    assert stats['totalSchedules'] == 1
    assert stats['upcomingSchedules'] == 1

    assert api_client.get('/api/donation-schedules/upcoming/', {'hours': 'soon'}).status_code == 400
    assert api_client.get('/api/donation-schedules/upcoming/').status_code == 200
