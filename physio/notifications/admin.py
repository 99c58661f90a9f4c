from django.contrib import admin

from .models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'recipient', 'channel', 'kind', 'status', 'subject',
        'sent_at', 'created_at'
    ]
    list_filter = ['channel', 'kind', 'status', 'created_at']
    search_fields = ['recipient__name', 'recipient__email', 'recipient__phone', 'message']
    readonly_fields = [
        'recipient', 'channel', 'kind', 'subject', 'message', 'status',
        'sent_at', 'appointment', 'external_id', 'error_message', 'created_at'
    ]
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
