import logging
from typing import Optional, Dict, Any

from django.apps import apps
from django.conf import settings
from django.core.mail import send_mail, EmailMultiAlternatives
from django.utils.module_loading import import_string

from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioRestException

from physio.surveys.tokens import survey_link

from .models import NotificationLog

logger = logging.getLogger(__name__)


def get_notification_sink():
    """
    Instantiate the configured notification sink (``settings.NOTIFICATION_SINK``).
    Anything with the NotificationService interface can be plugged in.
    """
    sink_path = getattr(settings, 'NOTIFICATION_SINK', 'physio.notifications.services.NotificationService')
    return import_string(sink_path)()


def therapist_display_name(therapist):
    if not therapist:
        return "Therapist to be assigned"
    return therapist.display_name


def build_survey_payload(appointment) -> Dict[str, Any]:
    """Everything the satisfaction survey message needs about an appointment"""
    return {
        'appointment_id': appointment.id,
        'patient_name': appointment.patient.display_name,
        'patient_email': appointment.patient.email,
        'date': appointment.date,
        'therapist_name': therapist_display_name(appointment.therapist),
        'services': appointment.service_names,
        'survey_url': survey_link(appointment.id),
    }


def _appointment_context(appointment):
    return {
        'patient_name': appointment.patient.display_name,
        'date': appointment.date.strftime('%d/%m/%Y'),
        'time': appointment.date.strftime('%H:%M'),
        'services': ", ".join(appointment.service_names),
        'therapist': therapist_display_name(appointment.therapist),
        'clinic': getattr(settings, 'CLINIC_NAME', 'Physio Clinic'),
        'location': getattr(settings, 'CLINIC_ADDRESS', ''),
    }


def _details_html(title, color, intro, context):
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #ddd; border-radius: 10px;">
            <h2 style="color: {color};">{title}</h2>
            <p>Dear <strong>{context['patient_name']}</strong>,</p>
            <p>{intro}</p>
            <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">
                <p style="margin: 5px 0;"><strong>Date:</strong> {context['date']}</p>
                <p style="margin: 5px 0;"><strong>Time:</strong> {context['time']}</p>
                <p style="margin: 5px 0;"><strong>Services:</strong> {context['services']}</p>
                <p style="margin: 5px 0;"><strong>Therapist:</strong> {context['therapist']}</p>
                <p style="margin: 5px 0;"><strong>Location:</strong> {context['location']}</p>
            </div>
            <p>We look forward to seeing you!</p>
        </div>
    </body>
    </html>
    """


class NotificationService:
    """Service for sending SMS and Email notifications"""

    def __init__(self):
        self.twilio_client = None
        if hasattr(settings, 'TWILIO_ACCOUNT_SID') and hasattr(settings, 'TWILIO_AUTH_TOKEN'):
            try:
                self.twilio_client = TwilioClient(
                    settings.TWILIO_ACCOUNT_SID,
                    settings.TWILIO_AUTH_TOKEN
                )
            except Exception as e:
                logger.error(f"Failed to initialize Twilio client: {e}")

    def format_phone(self, phone: str) -> str:
        """Prefix the default country code to numbers without one"""
        phone = phone.replace(' ', '')
        if phone.startswith('+'):
            return phone
        country_code = getattr(settings, 'SMS_DEFAULT_COUNTRY_CODE', '+34')
        return f"{country_code}{phone.lstrip('0')}"

    def send_sms(
        self,
        phone: str,
        message: str,
        recipient=None,
        appointment=None,
        kind: str = 'other'
    ) -> Dict[str, Any]:
        """
        Send SMS via Twilio

        Returns:
            Dict with ``success`` and the log id, plus the message SID or the error
        """
        log = NotificationLog.objects.create(
            recipient=recipient,
            channel='sms',
            kind=kind,
            message=message,
            appointment=appointment,
        )

        if not self.twilio_client:
            error_msg = "Twilio client not configured"
            log.mark_failed(error_msg)
            logger.error(error_msg)
            return {'success': False, 'error': error_msg, 'log_id': log.id}

        if not hasattr(settings, 'TWILIO_PHONE_NUMBER'):
            error_msg = "TWILIO_PHONE_NUMBER not configured"
            log.mark_failed(error_msg)
            logger.error(error_msg)
            return {'success': False, 'error': error_msg, 'log_id': log.id}

        phone = self.format_phone(phone)
        try:
            message_obj = self.twilio_client.messages.create(
                body=message,
                from_=settings.TWILIO_PHONE_NUMBER,
                to=phone
            )
        except TwilioRestException as e:
            error_msg = f"Twilio error: {e.msg}"
            log.mark_failed(error_msg)
            logger.error(f"Failed to send SMS to {phone}: {error_msg}")
            return {'success': False, 'error': error_msg, 'log_id': log.id}

        log.mark_sent(external_id=message_obj.sid)
        logger.info(f"SMS sent successfully to {phone}. SID: {message_obj.sid}")
        return {
            'success': True,
            'message_sid': message_obj.sid,
            'log_id': log.id,
            'status': message_obj.status
        }

    def send_email(
        self,
        to_email: str,
        subject: str,
        message: str,
        html_message: Optional[str] = None,
        recipient=None,
        appointment=None,
        kind: str = 'other'
    ) -> Dict[str, Any]:
        """
        Send email via Django email backend, with an HTML alternative when given
        """
        log = NotificationLog.objects.create(
            recipient=recipient,
            channel='email',
            kind=kind,
            subject=subject,
            message=message,
            appointment=appointment,
        )

        try:
            if html_message:
                email = EmailMultiAlternatives(
                    subject=subject,
                    body=message,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    to=[to_email]
                )
                email.attach_alternative(html_message, "text/html")
                email.send()
            else:
                send_mail(
                    subject=subject,
                    message=message,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    recipient_list=[to_email],
                    fail_silently=False,
                )
        except Exception as e:
            error_msg = f"Email error: {str(e)}"
            log.mark_failed(error_msg)
            logger.error(f"Failed to send email to {to_email}: {error_msg}")
            return {'success': False, 'error': error_msg, 'log_id': log.id}

        log.mark_sent()
        logger.info(f"Email sent successfully to {to_email}")
        return {'success': True, 'log_id': log.id}

    def send_appointment_booked_notification(self, appointment, send_sms=True, send_email=True):
        """Booking confirmation to the patient"""
        patient = appointment.patient
        context = _appointment_context(appointment)
        results = {'sms': None, 'email': None}

        if send_sms and patient.phone:
            sms_message = (
                f"Hello {context['patient_name']}! "
                f"Your appointment on {context['date']} at {context['time']} is booked. "
                f"Services: {context['services']}. "
                f"Therapist: {context['therapist']}."
            )
            results['sms'] = self.send_sms(
                phone=patient.phone,
                message=sms_message,
                recipient=patient,
                appointment=appointment,
                kind='booking'
            )

        if send_email and patient.email:
            subject = f"Appointment confirmation - {context['date']} {context['time']}"
            plain_message = (
                f"Dear {context['patient_name']},\n\n"
                f"Your appointment has been booked.\n\n"
                f"Date: {context['date']}\n"
                f"Time: {context['time']}\n"
                f"Services: {context['services']}\n"
                f"Therapist: {context['therapist']}\n"
                f"Location: {context['location']}\n\n"
                f"We look forward to seeing you!\n"
            )
            results['email'] = self.send_email(
                to_email=patient.email,
                subject=subject,
                message=plain_message,
                html_message=_details_html(
                    "Appointment confirmation", "#4CAF50", "Your appointment has been booked.", context
                ),
                recipient=patient,
                appointment=appointment,
                kind='booking'
            )

        return results

    def send_appointment_reminder(self, appointment, send_sms=False, send_email=True):
        """Same-day reminder to the patient"""
        patient = appointment.patient
        context = _appointment_context(appointment)
        results = {'sms': None, 'email': None}

        if send_sms and patient.phone:
            sms_message = (
                f"Reminder! {context['patient_name']}, "
                f"you have an appointment today at {context['time']}. "
                f"Services: {context['services']}. See you soon!"
            )
            results['sms'] = self.send_sms(
                phone=patient.phone,
                message=sms_message,
                recipient=patient,
                appointment=appointment,
                kind='reminder'
            )

        if send_email and patient.email:
            subject = f"Appointment reminder - {context['date']} {context['time']}"
            plain_message = (
                f"Dear {context['patient_name']},\n\n"
                f"This is a reminder of your appointment today:\n\n"
                f"Time: {context['time']}\n"
                f"Services: {context['services']}\n"
                f"Therapist: {context['therapist']}\n"
                f"Location: {context['location']}\n\n"
                f"We look forward to seeing you!\n"
            )
            results['email'] = self.send_email(
                to_email=patient.email,
                subject=subject,
                message=plain_message,
                html_message=_details_html(
                    "Appointment reminder", "#FF9800", "This is a reminder of your appointment today.", context
                ),
                recipient=patient,
                appointment=appointment,
                kind='reminder'
            )

        return results

    def send_satisfaction_survey(self, survey: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ask the patient to rate a completed appointment.
        ``survey`` is the dict built by ``build_survey_payload``.
        """
        if not survey.get('patient_email') or not survey.get('appointment_id'):
            logger.error(f"Not enough data to send the satisfaction survey: {survey}")
            return {'success': False, 'error': 'Not enough data to send the survey'}

        services = ", ".join(survey.get('services') or [])
        subject = "How was your physiotherapy appointment?"
        plain_message = (
            f"Dear {survey['patient_name']},\n\n"
            f"Thank you for visiting us on {survey['date']:%d/%m/%Y}"
            f" ({services}) with {survey['therapist_name']}.\n\n"
            f"Please tell us about your experience:\n{survey['survey_url']}\n"
        )
        html_message = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #ddd; border-radius: 10px;">
                <h2 style="color: #4F46E5;">How was your experience?</h2>
                <p>Dear <strong>{survey['patient_name']}</strong>,</p>
                <p>Thank you for visiting us on {survey['date']:%d/%m/%Y} ({services}) with {survey['therapist_name']}.</p>
                <p><a href="{survey['survey_url']}">Rate your appointment</a></p>
            </div>
        </body>
        </html>
        """
        Appointment = apps.get_model('appointments', 'Appointment')
        appointment = Appointment.objects.select_related('patient').filter(pk=survey['appointment_id']).first()
        return self.send_email(
            to_email=survey['patient_email'],
            subject=subject,
            message=plain_message,
            html_message=html_message,
            recipient=appointment.patient if appointment else None,
            appointment=appointment,
            kind='survey'
        )
