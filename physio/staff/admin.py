# physio/staff/admin.py
from django.contrib import admin

from .models import Schedule, TherapistService


@admin.register(TherapistService)
class TherapistServiceAdmin(admin.ModelAdmin):
    list_display = ['therapist', 'service', 'created_at']
    list_filter = ['service']
    search_fields = ['therapist__name', 'therapist__email', 'service__name']
    raw_id_fields = ['therapist']


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ['therapist', 'day_of_week', 'start_time', 'end_time', 'service', 'is_active']
    list_filter = ['day_of_week', 'is_active', 'service']
    search_fields = ['therapist__name', 'therapist__email']
    raw_id_fields = ['therapist']
