from django.contrib import admin

from algorithms.eligibility import next_eligible_date
from algorithms.map_points import classify_donor
from bloodbanks.admin import LocationAdminMixin
from .models import Donation, DonorProfile


@admin.register(DonorProfile)
class DonorProfileAdmin(LocationAdminMixin, admin.ModelAdmin):
    list_display   = ['full_name', 'blood_group', 'donation_count', 'availability_display', 'location_display']
    list_filter    = ['blood_type', 'rh_factor', 'is_eligible', 'receive_donation_alerts']
    search_fields  = ['first_name', 'last_name', 'phone', 'email']
    readonly_fields = ['donation_count', 'last_donation_date', 'next_eligible_display', 'created_at', 'updated_at']

    fieldsets = (
        ('Personal Info', {
            'fields': ('user', 'first_name', 'last_name', 'phone', 'email', 'address')
        }),
        ('Blood', {
            'fields': ('blood_type', 'rh_factor')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude')
        }),
        ('Donation Stats', {
            'fields': ('is_eligible', 'receive_donation_alerts', 'donation_count',
                       'last_donation_date', 'next_eligible_display')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description='Availability')
    def availability_display(self, obj):
        return classify_donor(obj.is_eligible, obj.receive_donation_alerts).value

    @admin.display(description='Next eligible')
    def next_eligible_display(self, obj):
        return next_eligible_date(obj.last_donation_date) or '-'


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'blood_bank', 'donated_at', 'volume_collected', 'bag_number']
    list_filter   = ['blood_bank']
    search_fields = ['donor__first_name', 'donor__last_name', 'bag_number']
    date_hierarchy = 'donated_at'
