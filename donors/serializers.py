# donors/serializers.py
from rest_framework import serializers

from .models import DonorProfile


class DonorSummarySerializer(serializers.ModelSerializer):
    """Denormalized donor details embedded in schedule responses"""
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    bloodType = serializers.CharField(source='blood_type', read_only=True)
    RhFactor = serializers.CharField(source='rh_factor', read_only=True)

    class Meta:
        model = DonorProfile
        fields = ['id', 'firstName', 'lastName', 'bloodType', 'RhFactor', 'phone', 'email']
