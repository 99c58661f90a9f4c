from django.contrib import admin

from .models import SurveyResponse


@admin.register(SurveyResponse)
class SurveyResponseAdmin(admin.ModelAdmin):
    list_display = ('appointment', 'patient', 'satisfaction', 'created_at')
    list_filter = ('satisfaction',)
    search_fields = ('patient__name', 'patient__email', 'comments')
    readonly_fields = ('appointment', 'patient', 'satisfaction', 'comments', 'created_at')
