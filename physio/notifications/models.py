from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class NotificationLog(models.Model):
    """Log all notifications sent"""
    CHANNEL_CHOICES = [
        ('sms', 'SMS'),
        ('email', 'Email'),
    ]

    KIND_CHOICES = [
        ('booking', _('Booking confirmation')),
        ('reminder', _('Appointment reminder')),
        ('survey', _('Satisfaction survey')),
        ('other', _('Other')),
    ]

    STATUS_CHOICES = [
        ('pending', _('Pending')),
        ('sent', _('Sent')),
        ('failed', _('Failed')),
    ]

    # Who
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )

    # What
    channel = models.CharField(_("Channel"), max_length=10, choices=CHANNEL_CHOICES)
    kind = models.CharField(_("Kind"), max_length=20, choices=KIND_CHOICES, default='other')
    subject = models.CharField(_("Subject"), max_length=200, blank=True)
    message = models.TextField(_("Message"))

    # When & Status
    status = models.CharField(
        _("Status"),
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending'
    )
    sent_at = models.DateTimeField(_("Sent At"), null=True, blank=True)

    appointment = models.ForeignKey(
        'appointments.Appointment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )

    # Twilio Message SID for SMS
    external_id = models.CharField(_("External ID"), max_length=100, blank=True)
    error_message = models.TextField(_("Error Message"), blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Notification Log")
        verbose_name_plural = _("Notification Logs")
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', '-created_at'], name='notification_recipient_idx'),
            models.Index(fields=['status', '-created_at'], name='notification_status_idx'),
            models.Index(fields=['appointment'], name='notification_appointment_idx'),
        ]

    def __str__(self):
        return f"{self.channel} {self.kind} to {self.recipient} - {self.status}"

    def mark_sent(self, external_id=""):
        self.status = 'sent'
        self.sent_at = timezone.now()
        self.external_id = external_id
        self.save(update_fields=['status', 'sent_at', 'external_id'])

    def mark_failed(self, error_message):
        self.status = 'failed'
        self.error_message = error_message
        self.save(update_fields=['status', 'error_message'])
