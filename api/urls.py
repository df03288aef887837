# api/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'donation-schedules', views.DonationScheduleViewSet, basename='donation-schedule')

app_name = 'api'

urlpatterns = [
    path('nearby/', views.nearby, name='nearby'),
    path('nearby/map/', views.nearby_map, name='nearby-map'),
    path('', include(router.urls)),
]

# Available endpoints:
# GET   /api/nearby/                                        - Ranked GeoEntities around a point
# GET   /api/nearby/map/                                    - Same search as map points + bounds
#
# GET   /api/donation-schedules/                            - List (status, donorId, bloodBankId, startDate, endDate, timeSlot, reminderStatus)
# POST  /api/donation-schedules/                            - Create
# GET   /api/donation-schedules/{id}/                       - Retrieve
# PATCH /api/donation-schedules/{id}/                       - Edit date/slot/details
# PATCH /api/donation-schedules/{id}/confirm/               - SCHEDULED -> CONFIRMED
# PATCH /api/donation-schedules/{id}/cancel/                - {reason?}
# PATCH /api/donation-schedules/{id}/complete/              - {donationId}
# PATCH /api/donation-schedules/{id}/no-show/               - CONFIRMED -> NO_SHOW
# GET   /api/donation-schedules/time-slots/availability/    - ?bloodBankId&date
# GET   /api/donation-schedules/stats/                      - ?bloodBankId
# GET   /api/donation-schedules/upcoming/                   - ?hours
