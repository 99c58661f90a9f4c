from unittest import mock
from urllib.parse import parse_qs, urlparse

import pytest
from django.core import mail
from django.urls import resolve
from twilio.base.exceptions import TwilioRestException

from physio.notifications.models import NotificationLog
from physio.notifications.services import (
    NotificationService,
    build_survey_payload,
    get_notification_sink,
)
from physio.notifications.tests.sinks import RecordingSink
from physio.surveys.tokens import check_survey_token

pytestmark = pytest.mark.django_db


@pytest.fixture
def appointment(make_therapist, massage, electro, make_appointment, booking_time):
    therapist = make_therapist("lucia", services=[massage, electro], name="Lucía Ruiz")
    return make_appointment(therapist, booking_time, [massage, electro])


@pytest.fixture
def service():
    service = NotificationService()
    service.twilio_client = None
    return service


def test_sink_comes_from_settings(settings):
    assert isinstance(get_notification_sink(), RecordingSink)

    settings.NOTIFICATION_SINK = "physio.notifications.services.NotificationService"
    assert isinstance(get_notification_sink(), NotificationService)


def test_survey_payload(appointment):
    payload = build_survey_payload(appointment)

    assert {k: v for k, v in payload.items() if k != "survey_url"} == {
        "appointment_id": appointment.pk,
        "patient_name": "Ana Patient",
        "patient_email": "ana@physio.test",
        "date": appointment.date,
        "therapist_name": "Lucía Ruiz",
        "services": ["Electrotherapy", "Massage"],
    }


def test_emailed_survey_link_opens_the_survey(appointment, settings):
    settings.SITE_URL = "https://clinic.test/"

    link = urlparse(build_survey_payload(appointment)["survey_url"])

    assert f"{link.scheme}://{link.netloc}" == "https://clinic.test"
    match = resolve(link.path)
    assert match.view_name == "surveys:survey-json"
    assert match.kwargs == {"appointment_id": appointment.pk}
    [token] = parse_qs(link.query)["token"]
    check_survey_token(appointment.pk, token)


class TestEmail:

    def test_sent_and_logged(self, service, patient):
        result = service.send_email("ana@physio.test", "Hello", "Body", recipient=patient)

        assert result["success"]
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["ana@physio.test"]
        log = NotificationLog.objects.get(pk=result["log_id"])
        assert log.status == "sent"
        assert log.sent_at is not None
        assert log.recipient == patient

    def test_failure_is_logged(self, service):
        with mock.patch("physio.notifications.services.send_mail", side_effect=OSError("smtp down")):
            result = service.send_email("ana@physio.test", "Hello", "Body")

        assert not result["success"]
        log = NotificationLog.objects.get(pk=result["log_id"])
        assert log.status == "failed"
        assert "smtp down" in log.error_message

    def test_booking_confirmation(self, service, appointment):
        results = service.send_appointment_booked_notification(appointment, send_sms=False)

        assert results["sms"] is None
        assert results["email"]["success"]
        message = mail.outbox[0]
        assert "Lucía Ruiz" in message.body
        assert "Electrotherapy, Massage" in message.body
        assert message.alternatives[0][1] == "text/html"
        assert NotificationLog.objects.get().kind == "booking"

    def test_satisfaction_survey(self, service, appointment):
        result = service.send_satisfaction_survey(build_survey_payload(appointment))

        assert result["success"]
        assert f"/{appointment.pk}" in mail.outbox[0].body
        log = NotificationLog.objects.get()
        assert log.kind == "survey"
        assert log.appointment == appointment

    def test_survey_without_email_is_not_sent(self, service, appointment):
        payload = build_survey_payload(appointment)
        payload["patient_email"] = ""

        assert not service.send_satisfaction_survey(payload)["success"]
        assert mail.outbox == []


class TestSms:

    def test_not_configured(self, service, patient):
        result = service.send_sms("600111222", "Hi", recipient=patient)

        assert result == {"success": False, "error": "Twilio client not configured", "log_id": mock.ANY}
        assert NotificationLog.objects.get().status == "failed"

    def test_sent_with_country_code(self, service, settings):
        settings.TWILIO_PHONE_NUMBER = "+15550000000"
        service.twilio_client = mock.Mock()
        service.twilio_client.messages.create.return_value = mock.Mock(sid="SM123", status="queued")

        result = service.send_sms("600 111 222", "Hi")

        service.twilio_client.messages.create.assert_called_once_with(
            body="Hi", from_="+15550000000", to="+34600111222"
        )
        assert result["success"]
        log = NotificationLog.objects.get()
        assert log.status == "sent"
        assert log.external_id == "SM123"

    def test_twilio_error(self, service, settings):
        settings.TWILIO_PHONE_NUMBER = "+15550000000"
        service.twilio_client = mock.Mock()
        service.twilio_client.messages.create.side_effect = TwilioRestException(400, "/Messages", msg="bad number")

        result = service.send_sms("+34600111222", "Hi")

        assert not result["success"]
        assert result["error"] == "Twilio error: bad number"


class TestReminder:

    def test_reminder_mentions_the_time(self, service, appointment):
        results = service.send_appointment_reminder(appointment)

        assert results["email"]["success"]
        assert appointment.date.strftime("%H:%M") in mail.outbox[0].body

    def test_sms_only_when_asked(self, service, appointment):
        service.send_appointment_reminder(appointment, send_sms=True, send_email=False)

        assert NotificationLog.objects.get().channel == "sms"
        assert mail.outbox == []
