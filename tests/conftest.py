from datetime import date, timedelta

import pytest
from rest_framework.test import APIClient

from bloodbanks.models import BloodBank, MedicalInstitution
from donors.models import Donation, DonorProfile
from schedules.models import DonationSchedule, ScheduleStatus

MEKELE = (39.45389, 13.5169)


@pytest.fixture
def future_date():
    return date.today() + timedelta(days=7)


@pytest.fixture
def blood_bank(db):
    return BloodBank.objects.create(
        name='Ayder Blood Bank',
        address='Ayder, Mekelle',
        longitude=MEKELE[0],
        latitude=MEKELE[1],
        blood_types_available=['O-', 'A+'],
    )


@pytest.fixture
def other_blood_bank(db):
    return BloodBank.objects.create(name='Quiha Blood Bank', longitude=39.53, latitude=13.43)


@pytest.fixture
def institution(db):
    return MedicalInstitution.objects.create(
        name='Mekelle Hospital', address='Kebele 14', longitude=39.47, latitude=13.49, has_emergency=True
    )


@pytest.fixture
def donor(db):
    return DonorProfile.objects.create(
        first_name='Selam',
        last_name='Tesfaye',
        email='selam@example.com',
        blood_type='O',
        rh_factor='-',
        longitude=39.46,
        latitude=13.52,
    )


@pytest.fixture
def other_donor(db):
    return DonorProfile.objects.create(first_name='Dawit', last_name='Haile', blood_type='A', rh_factor='+')


@pytest.fixture
def donation(donor, blood_bank):
    return Donation.objects.create(donor=donor, blood_bank=blood_bank, bag_number='BAG-001', volume_collected=450)


@pytest.fixture
def make_schedule(donor, blood_bank, future_date):
    """Insert a schedule directly, bypassing the service checks."""
    def _make(**overrides):
        values = {
            'donor': donor,
            'blood_bank': blood_bank,
            'scheduled_date': future_date,
            'time_slot': '10:00-11:00',
            'status': ScheduleStatus.SCHEDULED,
            'send_reminders': False,
        }
        values.update(overrides)
        return DonationSchedule.objects.create(**values)
    return _make


@pytest.fixture
def api_client(django_user_model):
    user = django_user_model.objects.create_user(username='staff', email='staff@example.com', password='pw')
    client = APIClient()
    client.force_authenticate(user=user)
    client.user = user
    return client
