# bloodbanks/admin.py
from django.contrib import admin
from django.utils.html import format_html

from .models import BloodBank, MedicalInstitution


class LocationAdminMixin:
    @admin.display(description='Location')
    def location_display(self, obj):
        if obj.location is None:
            return format_html('<span style="color: gray;">{}</span>', 'Unknown')
        return f"{obj.latitude:.5f}, {obj.longitude:.5f}"


@admin.register(BloodBank)
class BloodBankAdmin(LocationAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'phone', 'location_display', 'is_emergency', 'is_active']
    list_filter = ['is_emergency', 'is_active']
    search_fields = ['name', 'address', 'phone']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Blood Bank', {
            'fields': ('name', 'address', 'phone', 'email', 'blood_types_available')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude')
        }),
        ('Status', {
            'fields': ('is_emergency', 'is_active')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(MedicalInstitution)
class MedicalInstitutionAdmin(LocationAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'phone', 'location_display', 'has_emergency', 'is_active']
    list_filter = ['has_emergency', 'is_active']
    search_fields = ['name', 'address']
    readonly_fields = ['created_at', 'updated_at']
