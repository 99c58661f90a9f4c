import json
from datetime import timedelta

import pytest
from django.urls import reverse

from physio.appointments.models import Appointment
from physio.users.models import User

pytestmark = pytest.mark.django_db


@pytest.fixture
def lucia(make_therapist, massage, make_schedule, booking_time):
    therapist = make_therapist("lucia", services=[massage])
    make_schedule(therapist, massage, when=booking_time)
    return therapist


@pytest.fixture
def appointment(lucia, massage, make_appointment, booking_time):
    return make_appointment(lucia, booking_time, [massage])


def send_json(client, url, data, method="post"):
    return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")


def appointments_url(**params):
    url = reverse("appointments:appointments-json")
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    return url


class TestBooking:

    def test_patient_books_for_themselves(self, client, patient, lucia, massage, booking_time):
        client.force_login(patient)

        response = send_json(client, appointments_url(), {
            "service_ids": [massage.pk],
            "date": booking_time.isoformat(),
        })

        assert response.status_code == 201
        body = response.json()["appointment"]
        assert body["patient"]["id"] == patient.pk
        assert body["therapist"]["id"] == lucia.pk
        assert body["status"] == Appointment.SCHEDULED
        assert [s["name"] for s in body["services"]] == ["Massage"]

    def test_public_booking_creates_the_patient(self, client, lucia, massage, booking_time):
        response = send_json(client, appointments_url(public="true"), {
            "service_ids": [massage.pk],
            "date": booking_time.strftime("%Y-%m-%dT%H:%M"),
            "patient": {"email": "walkin@physio.test", "name": "Walk In", "phone": "600999888"},
        })

        assert response.status_code == 201
        patient = User.objects.get(email="walkin@physio.test")
        assert patient.role == User.PATIENT
        assert Appointment.objects.get().patient == patient

    def test_public_booking_requires_patient_details(self, client, lucia, massage, booking_time):
        response = send_json(client, appointments_url(public="true"), {
            "service_ids": [massage.pk],
            "date": booking_time.isoformat(),
        })

        assert response.status_code == 400
        assert not Appointment.objects.exists()

    def test_anonymous_booking_without_public_flag(self, client, lucia, massage, booking_time):
        response = send_json(client, appointments_url(), {
            "service_ids": [massage.pk],
            "date": booking_time.isoformat(),
        })

        assert response.status_code == 401

    def test_services_are_required(self, client, patient, booking_time):
        client.force_login(patient)

        response = send_json(client, appointments_url(), {"service_ids": [], "date": booking_time.isoformat()})

        assert response.status_code == 400
        assert response.json()["message"] == "Select at least one service"

    def test_conflict_is_reported(self, client, patient, appointment, massage, booking_time):
        client.force_login(patient)

        response = send_json(client, appointments_url(), {
            "service_ids": [massage.pk],
            "date": (booking_time + timedelta(minutes=15)).isoformat(),
        })

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "no_available_slot",
            "message": "No therapist available at this date/time",
        }

    def test_admin_books_for_a_patient(self, client, admin_user, patient, lucia, massage, booking_time):
        client.force_login(admin_user)

        response = send_json(client, appointments_url(), {
            "service_ids": [massage.pk],
            "date": booking_time.isoformat(),
            "patient_id": patient.pk,
        })

        assert response.status_code == 201
        assert response.json()["appointment"]["patient"]["id"] == patient.pk


class TestListing:

    def test_patients_see_their_own_appointments(self, client, appointment, make_appointment, lucia, massage, booking_time):
        other = User.objects.create_user(username="other", email="other@physio.test", role=User.PATIENT)
        make_appointment(lucia, booking_time + timedelta(hours=2), [massage], patient=other)
        client.force_login(appointment.patient)

        response = client.get(appointments_url())

        assert [a["id"] for a in response.json()] == [appointment.pk]

    def test_filters(self, client, admin_user, appointment, make_appointment, lucia, massage, booking_time):
        make_appointment(lucia, booking_time + timedelta(days=2), [massage], status=Appointment.CANCELLED)
        client.force_login(admin_user)

        by_status = client.get(appointments_url(status=Appointment.SCHEDULED)).json()
        by_date = client.get(appointments_url(date_to=booking_time.date().isoformat())).json()

        assert [a["id"] for a in by_status] == [appointment.pk]
        assert [a["id"] for a in by_date] == [appointment.pk]

    def test_detail_is_private(self, client, appointment):
        stranger = User.objects.create_user(username="stranger", email="stranger@physio.test", role=User.PATIENT)
        client.force_login(stranger)

        response = client.get(reverse("appointments:appointment-detail-json", args=[appointment.pk]))

        assert response.status_code == 403


class TestStatusWorkflow:

    def test_therapist_updates_own_appointment(self, client, appointment, lucia):
        client.force_login(lucia)

        response = send_json(
            client,
            reverse("appointments:appointment-status", args=[appointment.pk]),
            {"status": Appointment.CONFIRMED},
            method="patch",
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == Appointment.CONFIRMED

    def test_invalid_status(self, client, admin_user, appointment):
        client.force_login(admin_user)

        response = send_json(
            client,
            reverse("appointments:appointment-status", args=[appointment.pk]),
            {"status": "LOST"},
            method="patch",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status"

    def test_only_admins_reassign(self, client, appointment, lucia, make_therapist, massage):
        pablo = make_therapist("pablo", services=[massage])
        client.force_login(lucia)

        response = send_json(
            client,
            reverse("appointments:appointment-status", args=[appointment.pk]),
            {"status": Appointment.SCHEDULED, "therapist_id": pablo.pk},
            method="patch",
        )

        assert response.status_code == 403

    def test_admin_reassigns(self, client, admin_user, appointment, make_therapist, massage):
        pablo = make_therapist("pablo", services=[massage])
        client.force_login(admin_user)

        response = send_json(
            client,
            reverse("appointments:appointment-status", args=[appointment.pk]),
            {"status": Appointment.SCHEDULED, "therapist_id": pablo.pk},
            method="patch",
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["therapist"]["id"] == pablo.pk

    def test_patients_cannot_change_status(self, client, appointment):
        client.force_login(appointment.patient)

        response = send_json(
            client,
            reverse("appointments:appointment-status", args=[appointment.pk]),
            {"status": Appointment.CANCELLED},
            method="patch",
        )

        assert response.status_code == 403

    def test_other_therapists_cannot_touch_it(self, client, appointment, make_therapist):
        other = make_therapist("other")
        client.force_login(other)

        response = client.post(reverse("appointments:appointment-complete", args=[appointment.pk]))

        assert response.status_code == 403

    def test_patient_confirms(self, client, appointment):
        client.force_login(appointment.patient)

        response = client.post(reverse("appointments:appointment-confirm", args=[appointment.pk]))

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == Appointment.CONFIRMED

    def test_reschedule(self, client, appointment, booking_time):
        client.force_login(appointment.patient)
        new_date = booking_time + timedelta(days=1)

        response = send_json(
            client,
            reverse("appointments:appointment-reschedule", args=[appointment.pk]),
            {"date": new_date.isoformat(), "reason": "Work"},
        )

        assert response.status_code == 200
        appointment.refresh_from_db()
        assert appointment.date == new_date
        assert appointment.status == Appointment.RESCHEDULED

    def test_complete_twice(self, client, appointment, lucia, recording_sink, django_capture_on_commit_callbacks):
        client.force_login(lucia)
        url = reverse("appointments:appointment-complete", args=[appointment.pk])

        with django_capture_on_commit_callbacks(execute=True):
            first = client.post(url)
            second = client.post(url)

        assert first.json()["message"] == "Appointment completed"
        assert second.json()["message"] == "The appointment was already completed"
        assert len(recording_sink.calls_of("send_satisfaction_survey")) == 1

    def test_complete_with_closing_notes(self, client, appointment, lucia):
        client.force_login(lucia)

        response = send_json(
            client,
            reverse("appointments:appointment-complete", args=[appointment.pk]),
            {"notes": "Follow up in two weeks"},
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["notes"] == "Follow up in two weeks"

    def test_ownership_is_checked_before_the_body(self, client, appointment):
        stranger = User.objects.create_user(username="stranger", email="stranger@physio.test", role=User.PATIENT)
        client.force_login(stranger)

        response = client.post(
            reverse("appointments:appointment-reschedule", args=[appointment.pk]),
            data="not json",
            content_type="application/json",
        )

        assert response.status_code == 403

    def test_unknown_appointment(self, client, admin_user):
        client.force_login(admin_user)

        response = client.post(reverse("appointments:appointment-confirm", args=[9999]))

        assert response.status_code == 404
