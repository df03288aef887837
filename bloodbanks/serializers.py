# bloodbanks/serializers.py
from rest_framework import serializers

from .models import BloodBank


class BloodBankSummarySerializer(serializers.ModelSerializer):
    """Denormalized blood bank details embedded in schedule responses"""
    location = serializers.SerializerMethodField()

    class Meta:
        model = BloodBank
        fields = ['id', 'name', 'address', 'phone', 'location']

    def get_location(self, obj):
        return obj.location.to_geojson() if obj.location else None
