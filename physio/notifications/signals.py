from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender='appointments.Appointment')
def appointment_created_handler(sender, instance, created, **kwargs):
    """
    Send the booking confirmation once the new appointment is committed
    """
    if not created or not getattr(settings, 'NOTIFICATIONS_ENABLED', True):
        return

    from .tasks import send_appointment_booked_notification_task

    appointment_id = instance.id

    def queue_notification():
        try:
            send_appointment_booked_notification_task.delay(
                appointment_id=appointment_id,
                send_sms=getattr(settings, 'SEND_SMS_ON_BOOKING', False),
                send_email=getattr(settings, 'SEND_EMAIL_ON_BOOKING', True)
            )
        except Exception as exc:
            logger.error(f"Could not queue booking notification for appointment {appointment_id}: {exc}")
            return
        logger.info(f"Queued appointment booked notification for appointment {appointment_id}")

    transaction.on_commit(queue_notification)
