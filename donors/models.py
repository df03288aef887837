from django.conf import settings
from django.db import models
from django.utils import timezone

from algorithms.eligibility import is_cooldown_over
from algorithms.map_points import EntityKind, GeoEntity
from bloodbanks.models import LocatedModel


class BloodType(models.TextChoices):
    A = 'A', 'A'
    B = 'B', 'B'
    AB = 'AB', 'AB'
    O = 'O', 'O'


class RhFactor(models.TextChoices):
    POSITIVE = '+', 'Positive'
    NEGATIVE = '-', 'Negative'


# ---------------------------
# Donor Profile
# ---------------------------
class DonorProfile(LocatedModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donor_profile'
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    blood_type = models.CharField(max_length=2, choices=BloodType.choices, blank=True)
    rh_factor = models.CharField(max_length=1, choices=RhFactor.choices, blank=True)

    # Donation tracking
    is_eligible = models.BooleanField(default=True)
    receive_donation_alerts = models.BooleanField(default=True)
    last_donation_date = models.DateField(null=True, blank=True)
    donation_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def blood_group(self):
        if self.blood_type and self.rh_factor:
            return f"{self.blood_type}{self.rh_factor}"
        return ''

    def record_donation(self, donated_on):
        """Bump counters after a completed donation and start the cooldown."""
        if self.last_donation_date is None or donated_on > self.last_donation_date:
            self.last_donation_date = donated_on
        self.donation_count += 1
        self.is_eligible = is_cooldown_over(self.last_donation_date)

    def to_geo_entity(self, distance=None):
        return GeoEntity(
            id=self.id,
            title=self.full_name,
            kind=EntityKind.DONOR,
            location=self.location,
            payload={
                'firstName': self.first_name,
                'lastName': self.last_name,
                'bloodType': self.blood_type,
                'RhFactor': self.rh_factor,
                'isEligible': self.is_eligible,
                'receiveDonationAlerts': self.receive_donation_alerts,
            },
            distance_km=distance,
        )

    def __str__(self):
        return f"{self.full_name} ({self.blood_group or '?'})"

    class Meta:
        verbose_name = "Donor Profile"
        verbose_name_plural = "Donor Profiles"
        ordering = ['-created_at']


class Donation(models.Model):
    """A completed donation; completed schedules point at one of these."""
    donor = models.ForeignKey(
        DonorProfile,
        on_delete=models.CASCADE,
        related_name='donations'
    )
    blood_bank = models.ForeignKey(
        'bloodbanks.BloodBank',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donations'
    )

    bag_number = models.CharField(max_length=50, blank=True)
    volume_collected = models.PositiveIntegerField(null=True, blank=True, help_text="Volume in ml")
    donated_at = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.full_name} | {self.donated_at}"

    class Meta:
        ordering = ['-donated_at']
