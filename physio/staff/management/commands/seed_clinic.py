import os
import random
from datetime import time, timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from physio.appointments.services import book_appointment
from physio.catalog.models import Service
from physio.core.exceptions import SchedulingError
from physio.staff import services as staff_services
from physio.staff.models import FRIDAY, MONDAY, THURSDAY, TUESDAY, WEDNESDAY, Schedule, TherapistService

WORKING_DAYS = [MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY]

SERVICES = [
    ("Sports Physiotherapy", "Treatment of injuries related to sport and exercise.", 60, 7500),
    ("Neurological Rehabilitation", "Therapy for stroke, Parkinson's disease or multiple sclerosis.", 90, 9000),
    ("Manual Therapy", "Hands-on techniques for pain relief and joint mobility.", 45, 6500),
    ("Geriatric Physiotherapy", "Mobility and function for older adults.", 60, 7000),
    ("Therapeutic Massage", "Relieves muscle tension and improves circulation.", 30, 5000),
]

# name, email, phone, offered services (morning service first)
THERAPISTS = [
    ("Ana Rodríguez", "ana.rodriguez@clinic.test", "3001234567", ["Sports Physiotherapy", "Therapeutic Massage"]),
    ("Carlos Mendoza", "carlos.mendoza@clinic.test", "3009876543", ["Neurological Rehabilitation", "Geriatric Physiotherapy"]),
    ("Laura Gómez", "laura.gomez@clinic.test", "3005678901", ["Manual Therapy", "Therapeutic Massage"]),
]

PATIENTS = [
    ("Pedro Sánchez", "pedro.sanchez@example.com", "3201234567"),
    ("María López", "maria.lopez@example.com", "3209876543"),
    ("Juan García", "juan.garcia@example.com", "3205678901"),
    ("Sofía Martínez", "sofia.martinez@example.com", "3207654321"),
]

MORNING = (time(9, 0), time(13, 0))
AFTERNOON = (time(15, 0), time(19, 0))


class Command(BaseCommand):
    help = "Seed demo clinic data (services, staff, weekly schedules, patients and appointments)."

    def add_arguments(self, parser):
        parser.add_argument("--with-admin", action="store_true",
                            help="Create a demo administrator account.")
        parser.add_argument("--days", type=int, default=2,
                            help="How many days ahead to book demo appointments for (default: 2, 0 = none).")

    @transaction.atomic
    def handle(self, *args, **opts):
        self.stdout.write(self.style.MIGRATE_HEADING("Seeding clinic demo data..."))
        password = os.getenv("SEED_PASSWORD", "password123")

        if opts["with_admin"]:
            self._seed_admin()

        services = self._seed_services()
        therapists = self._seed_therapists(services, password)
        self._seed_schedules(therapists)
        patients = self._seed_patients(password)

        if opts["days"] > 0:
            self._seed_appointments(patients, list(services.values()), days=opts["days"])

        self.stdout.write(self.style.SUCCESS("Done!"))

    # ---------- helpers ----------

    def _seed_admin(self):
        User = get_user_model()
        admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@clinic.test")
        admin_pass = os.getenv("SEED_ADMIN_PASSWORD", "Admin123!")

        admin, created = User.objects.get_or_create(
            email=admin_email,
            defaults={
                "username": admin_email,
                "name": "Administrator",
                "role": User.ADMIN,
                "is_staff": True,
                "is_superuser": True,
            },
        )
        if created:
            admin.set_password(admin_pass)
            admin.save()
        self.stdout.write(self.style.SUCCESS(f"Admin ready: {admin_email}/{admin_pass}"))

    def _seed_services(self):
        services = {}
        for name, description, duration, price in SERVICES:
            services[name], _ = Service.objects.get_or_create(
                name=name,
                defaults={"description": description, "duration_min": duration, "price_minor_units": price},
            )
        self.stdout.write(self.style.SUCCESS(f"{len(services)} services ready."))
        return services

    def _seed_therapists(self, services, password):
        User = get_user_model()
        therapists = []
        for name, email, phone, offered in THERAPISTS:
            therapist, created = User.objects.get_or_create(
                email=email,
                defaults={"username": email, "name": name, "phone": phone, "role": User.THERAPIST},
            )
            if created:
                therapist.set_password(password)
                therapist.save()
            for service_name in offered:
                TherapistService.objects.get_or_create(therapist=therapist, service=services[service_name])
            therapists.append((therapist, [services[s] for s in offered]))
        self.stdout.write(self.style.SUCCESS(f"{len(therapists)} therapists ready."))
        return therapists

    def _seed_schedules(self, therapists):
        created = 0
        for therapist, offered in therapists:
            windows = [MORNING + (offered[0],), AFTERNOON + (offered[-1],)]
            for day in WORKING_DAYS:
                for start, end, service in windows:
                    if Schedule.objects.filter(therapist=therapist, day_of_week=day, start_time=start).exists():
                        continue
                    try:
                        staff_services.create_schedule(
                            therapist_id=therapist.pk,
                            day_of_week=day,
                            start_time=start,
                            end_time=end,
                            service_id=service.pk,
                        )
                        created += 1
                    except SchedulingError as e:
                        self.stdout.write(self.style.WARNING(f"Skip schedule {therapist} {day} {start:%H:%M}: {e}"))
        self.stdout.write(self.style.SUCCESS(f"Created {created} weekly schedule window(s)."))

    def _seed_patients(self, password):
        User = get_user_model()
        patients = []
        for name, email, phone in PATIENTS:
            patient, created = User.objects.upsert_patient(email, name=name, phone=phone)
            if created:
                patient.set_password(password)
                patient.save()
            patients.append(patient)
        self.stdout.write(self.style.SUCCESS(f"{len(patients)} patients ready."))
        return patients

    def _seed_appointments(self, patients, services, days):
        created = 0
        base_day = timezone.now().replace(hour=0, minute=0, second=0, microsecond=0)

        # One-hour slots keep every booking outside the buffer of the previous one
        for d in range(1, days + 1):
            day_start = base_day + timedelta(days=d)
            for hour in (10, 11, 12):
                start = day_start + timedelta(hours=hour)
                try:
                    book_appointment(
                        patient=random.choice(patients),
                        service_ids=[random.choice(services).pk],
                        date=start,
                        notes="Demo appointment",
                    )
                    created += 1
                except SchedulingError as e:
                    self.stdout.write(self.style.WARNING(f"Skip appointment @ {start:%Y-%m-%d %H:%M}: {e}"))

        self.stdout.write(self.style.SUCCESS(f"Created {created} appointment(s) over {days} day(s)."))
