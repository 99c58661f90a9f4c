from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class SurveyResponse(models.Model):
    """Patient satisfaction with a completed appointment, one per appointment"""

    appointment = models.OneToOneField(
        'appointments.Appointment',
        on_delete=models.CASCADE,
        related_name='survey_response'
    )
    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='survey_responses'
    )
    satisfaction = models.PositiveSmallIntegerField(
        _("Satisfaction"),
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comments = models.TextField(_("Comments"), blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Survey Response")
        verbose_name_plural = _("Survey Responses")
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.appointment_id}: {self.satisfaction}/5"
