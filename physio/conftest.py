from datetime import time, timedelta

import pytest
from django.utils import timezone

from physio.appointments.models import Appointment
from physio.catalog.models import Service
from physio.notifications.tests.sinks import RecordingSink
from physio.staff.models import Schedule, TherapistService, day_of_week_for
from physio.users.models import User


@pytest.fixture(autouse=True)
def recording_sink():
    RecordingSink.reset()
    yield RecordingSink
    RecordingSink.reset()


@pytest.fixture
def booking_time():
    """Tomorrow at 10:00, always in the future and inside the workload window"""
    tomorrow = timezone.now() + timedelta(days=1)
    return tomorrow.replace(hour=10, minute=0, second=0, microsecond=0)


@pytest.fixture
def make_service(db):
    def factory(name, **kwargs):
        kwargs.setdefault("duration_min", 60)
        kwargs.setdefault("price_minor_units", 4500)
        return Service.objects.create(name=name, **kwargs)
    return factory


@pytest.fixture
def massage(make_service):
    return make_service("Massage")


@pytest.fixture
def electro(make_service):
    return make_service("Electrotherapy")


@pytest.fixture
def make_therapist(db):
    def factory(username, services=(), is_active=True, **kwargs):
        therapist = User.objects.create_user(
            username=username,
            email=f"{username}@physio.test",
            password="pass1234",
            name=kwargs.pop("name", username.title()),
            role=User.THERAPIST,
            is_active=is_active,
            **kwargs,
        )
        for service in services:
            TherapistService.objects.create(therapist=therapist, service=service)
        return therapist
    return factory


@pytest.fixture
def patient(db):
    return User.objects.create_user(
        username="ana@physio.test",
        email="ana@physio.test",
        password="pass1234",
        name="Ana Patient",
        phone="600111222",
        role=User.PATIENT,
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username="admin@physio.test",
        email="admin@physio.test",
        password="pass1234",
        name="Clinic Admin",
        role=User.ADMIN,
    )


@pytest.fixture
def make_appointment(patient):
    def factory(therapist, date, services, status=Appointment.SCHEDULED, patient=patient):
        return Appointment.objects.create_with_services(
            patient=patient,
            therapist=therapist,
            date=date,
            services=services,
            status=status,
        )
    return factory


@pytest.fixture
def make_schedule(db):
    def factory(therapist, service, start=time(9, 0), end=time(13, 0), day_of_week=None, when=None, is_active=True):
        return Schedule.objects.create(
            therapist=therapist,
            service=service,
            day_of_week=day_of_week or day_of_week_for(when),
            start_time=start,
            end_time=end,
            is_active=is_active,
        )
    return factory
