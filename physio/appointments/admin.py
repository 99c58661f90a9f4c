from django.contrib import admin

from .models import Appointment, AppointmentActivityLog, AppointmentService


class AppointmentServiceInline(admin.TabularInline):
    model = AppointmentService
    extra = 0
    autocomplete_fields = ("service",)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("date", "patient", "therapist", "status", "survey_requested_at")
    list_filter = ("status", "therapist")
    search_fields = ("patient__name", "patient__email", "therapist__name")
    date_hierarchy = "date"
    inlines = [AppointmentServiceInline]
    readonly_fields = ("survey_requested_at", "created_at", "updated_at")


@admin.register(AppointmentActivityLog)
class AppointmentActivityLogAdmin(admin.ModelAdmin):
    list_display = ("appointment", "action", "previous_status", "new_status", "performed_by", "created_at")
    list_filter = ("action",)
    readonly_fields = [f.name for f in AppointmentActivityLog._meta.fields]

    def has_add_permission(self, request):
        return False
