# bloodbanks/models.py
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from algorithms.haversine import GeoPoint
from algorithms.map_points import EntityKind, GeoEntity


class LocatedModel(models.Model):
    """Nullable latitude/longitude pair; a missing pair means 'location unknown'."""

    latitude = models.FloatField(
        null=True, blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)]
    )
    longitude = models.FloatField(
        null=True, blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)]
    )

    class Meta:
        abstract = True

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(self.longitude, self.latitude)


class BloodBank(LocatedModel):
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    # Blood groups currently stocked, e.g. ["A+", "O-"]
    blood_types_available = models.JSONField(default=list, blank=True)
    is_emergency = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def to_geo_entity(self, distance=None):
        return GeoEntity(
            id=self.id,
            title=self.name,
            kind=EntityKind.BLOOD_BANK,
            location=self.location,
            payload={
                'name': self.name,
                'address': self.address,
                'phone': self.phone,
                'bloodTypes': list(self.blood_types_available or []),
                'isEmergency': self.is_emergency,
            },
            distance_km=distance,
        )

    class Meta:
        ordering = ['name']
        verbose_name = 'Blood Bank'
        verbose_name_plural = 'Blood Banks'


class MedicalInstitution(LocatedModel):
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)

    has_emergency = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def to_geo_entity(self, distance=None):
        return GeoEntity(
            id=self.id,
            title=self.name,
            kind=EntityKind.MEDICAL_INSTITUTION,
            location=self.location,
            payload={
                'name': self.name,
                'address': self.address,
                'phone': self.phone,
                'hasEmergency': self.has_emergency,
            },
            distance_km=distance,
        )

    class Meta:
        ordering = ['name']
        verbose_name = 'Medical Institution'
        verbose_name_plural = 'Medical Institutions'
