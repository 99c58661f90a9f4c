import json
from datetime import time

import pytest
from django.urls import reverse

from physio.staff.models import MONDAY, Schedule

pytestmark = pytest.mark.django_db


@pytest.fixture
def therapist(make_therapist, massage):
    return make_therapist("lucia", services=[massage])


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user)
    return client


def post_json(client, url, data, method="post"):
    return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")


class TestSchedulesJson:

    def test_requires_authentication(self, client):
        response = client.get(reverse("staff:schedules-json"))

        assert response.status_code == 401

    def test_patients_are_forbidden(self, client, patient):
        client.force_login(patient)

        assert client.get(reverse("staff:schedules-json")).status_code == 403

    def test_admin_creates_schedule(self, admin_client, therapist, massage):
        response = post_json(admin_client, reverse("staff:schedules-json"), {
            "therapist_id": therapist.pk,
            "day_of_week": MONDAY,
            "start_time": "10:00",
            "end_time": "11:00",
            "service_id": massage.pk,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"]
        assert body["schedule"]["start_time"] == "10:00"
        assert body["schedule"]["is_active"] is True

    def test_overlap_is_reported(self, admin_client, therapist, massage, make_schedule):
        make_schedule(therapist, massage, start=time(10), end=time(11), day_of_week=MONDAY)

        response = post_json(admin_client, reverse("staff:schedules-json"), {
            "therapist_id": therapist.pk,
            "day_of_week": MONDAY,
            "start_time": "10:30",
            "end_time": "11:30",
            "service_id": massage.pk,
        })

        assert response.status_code == 409
        assert response.json()["error"] == "schedule_overlap"

    def test_invalid_time_format(self, admin_client, therapist, massage):
        response = post_json(admin_client, reverse("staff:schedules-json"), {
            "therapist_id": therapist.pk,
            "day_of_week": MONDAY,
            "start_time": "10h",
            "end_time": "11:00",
            "service_id": massage.pk,
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid time format (HH:MM)"

    def test_therapist_cannot_create(self, client, therapist, massage):
        client.force_login(therapist)

        response = post_json(client, reverse("staff:schedules-json"), {
            "therapist_id": therapist.pk,
            "day_of_week": MONDAY,
            "start_time": "10:00",
            "end_time": "11:00",
            "service_id": massage.pk,
        })

        assert response.status_code == 403

    def test_therapist_lists_only_own_schedules(self, client, therapist, make_therapist, massage, make_schedule):
        other = make_therapist("pablo", services=[massage])
        own = make_schedule(therapist, massage, day_of_week=MONDAY)
        make_schedule(other, massage, day_of_week=MONDAY)
        client.force_login(therapist)

        response = client.get(reverse("staff:schedules-json"))

        assert [s["id"] for s in response.json()] == [own.pk]


class TestScheduleDetailJson:

    def test_patch_merges_fields(self, admin_client, therapist, massage, make_schedule):
        schedule = make_schedule(therapist, massage, start=time(10), end=time(11), day_of_week=MONDAY)
        url = reverse("staff:schedule-detail-json", args=[schedule.pk])

        response = post_json(admin_client, url, {"end_time": "12:00"}, method="patch")

        assert response.status_code == 200
        schedule.refresh_from_db()
        assert schedule.start_time == time(10)
        assert schedule.end_time == time(12)

    def test_delete(self, admin_client, therapist, massage, make_schedule):
        schedule = make_schedule(therapist, massage, day_of_week=MONDAY)
        url = reverse("staff:schedule-detail-json", args=[schedule.pk])

        response = admin_client.delete(url)

        assert response.status_code == 200
        assert not Schedule.objects.filter(pk=schedule.pk).exists()


class TestTherapistAdministrationJson:

    def test_toggle_active(self, admin_client, therapist):
        url = reverse("staff:therapist-toggle-active", args=[therapist.pk])

        response = admin_client.post(url)

        assert response.status_code == 200
        assert response.json()["therapist"]["is_active"] is False

    def test_replace_services(self, admin_client, therapist, massage, electro):
        url = reverse("staff:therapist-services", args=[therapist.pk])

        response = post_json(admin_client, url, {"service_ids": [electro.pk]}, method="put")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["therapist"]["services"]] == [electro.pk]
