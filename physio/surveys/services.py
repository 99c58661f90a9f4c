import logging

from django.db import IntegrityError, transaction

from physio.appointments.models import Appointment, AppointmentActivityLog
from physio.core.exceptions import AppointmentNotFound, SurveyAlreadySubmitted, SurveyNotAllowed

from .models import SurveyResponse

logger = logging.getLogger(__name__)


def get_survey(appointment_id):
    return SurveyResponse.objects.filter(appointment_id=appointment_id).first()


@transaction.atomic
def submit_survey(appointment_id, satisfaction, comments="", **request_info):
    """
    Store the patient's rating of a completed appointment.
    ``request_info`` (user agent, ip address) goes to the activity log.
    """
    appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
    if appointment is None:
        raise AppointmentNotFound()
    if appointment.status != Appointment.COMPLETED:
        raise SurveyNotAllowed()
    if SurveyResponse.objects.filter(appointment=appointment).exists():
        raise SurveyAlreadySubmitted()

    try:
        with transaction.atomic():
            survey = SurveyResponse.objects.create(
                appointment=appointment,
                patient_id=appointment.patient_id,
                satisfaction=satisfaction,
                comments=comments or "",
            )
    except IntegrityError:
        raise SurveyAlreadySubmitted()

    AppointmentActivityLog.record(
        appointment,
        AppointmentActivityLog.SURVEY_SUBMITTED,
        previous_status=appointment.status,
        satisfaction=satisfaction,
        survey_id=survey.pk,
        **request_info,
    )
    logger.info(f"Survey {survey.pk} submitted for appointment {appointment.pk} ({satisfaction}/5)")
    return survey
