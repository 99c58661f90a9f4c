from datetime import datetime, time

from celery import shared_task
from django.apps import apps
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def send_appointment_booked_notification_task(self, appointment_id, send_sms=False, send_email=True):
    """
    Async task to send the booking confirmation
    """
    from .services import get_notification_sink
    Appointment = apps.get_model('appointments', 'Appointment')

    try:
        appointment = Appointment.objects.select_related('patient', 'therapist').get(id=appointment_id)
    except Appointment.DoesNotExist:
        logger.error(f"Appointment {appointment_id} not found")
        return {'error': 'Appointment not found'}

    try:
        result = get_notification_sink().send_appointment_booked_notification(
            appointment=appointment,
            send_sms=send_sms,
            send_email=send_email
        )
    except Exception as exc:
        logger.error(f"Error sending appointment booked notification: {exc}")
        # Retry with exponential backoff
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    logger.info(f"Appointment booked notification sent for appointment {appointment_id}")
    return result


@shared_task
def send_satisfaction_survey_task(appointment_id):
    """
    Send the satisfaction survey of a completed appointment.
    Sent at most once and never retried; failures are only logged.
    """
    from .services import build_survey_payload, get_notification_sink
    Appointment = apps.get_model('appointments', 'Appointment')

    try:
        appointment = Appointment.objects.select_related('patient', 'therapist').get(id=appointment_id)
        result = get_notification_sink().send_satisfaction_survey(build_survey_payload(appointment))
    except Exception as exc:
        logger.error(f"Error sending satisfaction survey for appointment {appointment_id}: {exc}")
        return {'success': False, 'error': str(exc)}

    if result.get('success'):
        logger.info(f"Satisfaction survey sent for appointment {appointment_id}")
    else:
        logger.warning(f"Satisfaction survey for appointment {appointment_id} failed: {result.get('error')}")
    return result


def send_daily_reminders(day=None):
    """
    Remind every patient with a SCHEDULED or CONFIRMED appointment on ``day``
    (today by default). Returns a summary of what was sent.
    """
    from .services import get_notification_sink
    Appointment = apps.get_model('appointments', 'Appointment')

    day = day or timezone.now().date()
    appointments = (
        Appointment.objects
        .filter(
            date__gte=datetime.combine(day, time.min),
            date__lte=datetime.combine(day, time.max),
            status__in=[Appointment.SCHEDULED, Appointment.CONFIRMED],
        )
        .select_related('patient', 'therapist')
        .prefetch_related('services')
    )

    sink = get_notification_sink()
    summary = {'total': 0, 'sent': 0, 'failed': 0, 'skipped': 0}
    for appointment in appointments:
        summary['total'] += 1
        if not appointment.patient.email:
            logger.warning(f"No email found for patient {appointment.patient_id}")
            summary['skipped'] += 1
            continue
        try:
            result = sink.send_appointment_reminder(appointment=appointment, send_sms=False, send_email=True)
        except Exception as exc:
            logger.error(f"Error sending reminder for appointment {appointment.id}: {exc}")
            summary['failed'] += 1
            continue
        if (result.get('email') or {}).get('success'):
            summary['sent'] += 1
        else:
            summary['failed'] += 1

    logger.info(f"Processed {summary['total']} appointments, sent {summary['sent']} reminders")
    return summary


@shared_task
def send_daily_reminders_task():
    """
    Periodic task sending today's appointment reminders
    Run this task every morning via Celery Beat
    """
    return send_daily_reminders()
