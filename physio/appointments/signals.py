import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

from .models import Appointment

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Appointment)
def request_survey_on_completion(sender, instance, created, **kwargs):
    """
    Ask for a satisfaction survey the first time an appointment is completed.

    ``survey_requested_at`` is claimed with a conditional update, so only one
    save ever queues the survey even if the appointment is completed again
    or by two requests at once.
    """
    if created or instance.status != Appointment.COMPLETED or instance.survey_requested_at:
        return
    if not getattr(settings, 'NOTIFICATIONS_ENABLED', True):
        return

    now = timezone.now()
    claimed = Appointment.objects.filter(pk=instance.pk, survey_requested_at__isnull=True).update(
        survey_requested_at=now
    )
    if not claimed:
        return
    instance.survey_requested_at = now

    from physio.notifications.tasks import send_satisfaction_survey_task

    appointment_id = instance.pk

    def queue_survey():
        try:
            send_satisfaction_survey_task.delay(appointment_id)
        except Exception as exc:
            logger.error(f"Could not queue satisfaction survey for appointment {appointment_id}: {exc}")
            return
        logger.info(f"Queued satisfaction survey for appointment {appointment_id}")

    transaction.on_commit(queue_survey)
