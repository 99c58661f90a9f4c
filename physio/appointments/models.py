from datetime import timedelta

from django.conf import settings
from django.db import models, transaction
from django.utils.translation import gettext_lazy as _


class AppointmentQuerySet(models.QuerySet):

    def non_cancelled(self):
        return self.exclude(status=Appointment.CANCELLED)

    def non_cancelled_near(self, therapist_id, instant, buffer_minutes, exclude_id=None):
        """
        Live appointments of the therapist whose date lies within
        ``buffer_minutes`` of ``instant`` (both ends inclusive).
        """
        buffer = timedelta(minutes=buffer_minutes)
        queryset = self.non_cancelled().filter(
            therapist_id=therapist_id,
            date__gte=instant - buffer,
            date__lte=instant + buffer,
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset

    def count_non_cancelled_in_window(self, therapist_id, start, end):
        """Live appointments of the therapist with ``start <= date < end``"""
        return self.non_cancelled().filter(
            therapist_id=therapist_id,
            date__gte=start,
            date__lt=end,
        ).count()


class AppointmentManager(models.Manager.from_queryset(AppointmentQuerySet)):

    def create_with_services(self, patient, therapist, date, services, status=None, notes=""):
        """
        Create the appointment and one AppointmentService per service in a
        single transaction; an appointment never exists without its services.
        """
        with transaction.atomic():
            appointment = self.create(
                patient=patient,
                therapist=therapist,
                date=date,
                status=status or Appointment.SCHEDULED,
                notes=notes,
            )
            AppointmentService.objects.bulk_create([
                AppointmentService(appointment=appointment, service_id=getattr(service, "pk", service))
                for service in services
            ])
        return appointment


class Appointment(models.Model):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    RESCHEDULED = "RESCHEDULED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    STATUS_CHOICES = [
        (SCHEDULED, _("Scheduled")),
        (CONFIRMED, _("Confirmed")),
        (RESCHEDULED, _("Rescheduled")),
        (CANCELLED, _("Cancelled")),
        (COMPLETED, _("Completed")),
    ]
    # No further workflow happens on these
    TERMINAL_STATUSES = (CANCELLED, COMPLETED)

    patient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="appointments")
    therapist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="therapist_appointments",
        null=True,
        blank=True,
    )
    services = models.ManyToManyField("catalog.Service", through="AppointmentService", related_name="appointments")
    date = models.DateTimeField(_("Date"))
    status = models.CharField(_("Status"), max_length=16, choices=STATUS_CHOICES, default=SCHEDULED)
    notes = models.TextField(_("Notes"), blank=True)
    # Set once, when the satisfaction survey is requested
    survey_requested_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentManager()

    class Meta:
        indexes = [
            models.Index(fields=["date"], name="appointment_date_idx"),
            models.Index(fields=["therapist", "date"], name="appointment_therapist_date_idx"),
            models.Index(fields=["status", "date"], name="appointment_status_date_idx"),
        ]
        ordering = ["date"]

    def __str__(self):
        return f"{self.patient} – {self.therapist or 'unassigned'} @ {self.date:%d/%m %H:%M}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def service_names(self):
        return [s.name for s in self.services.all()]


class AppointmentService(models.Model):
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name="appointment_services")
    service = models.ForeignKey("catalog.Service", on_delete=models.PROTECT, related_name="appointment_services")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["appointment", "service"], name="unique_appointment_service"),
        ]

    def __str__(self):
        return f"{self.appointment_id} → {self.service}"


class AppointmentActivityLog(models.Model):
    """Audit trail of everything that happens to an appointment"""

    CREATED = "CREATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    REASSIGNED = "REASSIGNED"
    CONFIRMED = "CONFIRMED"
    RESCHEDULED = "RESCHEDULED"
    COMPLETED = "COMPLETED"
    SURVEY_SUBMITTED = "SURVEY_SUBMITTED"
    ACTION_CHOICES = [
        (CREATED, _("Created")),
        (STATUS_CHANGED, _("Status changed")),
        (REASSIGNED, _("Therapist reassigned")),
        (CONFIRMED, _("Confirmed")),
        (RESCHEDULED, _("Rescheduled")),
        (COMPLETED, _("Completed")),
        (SURVEY_SUBMITTED, _("Survey submitted")),
    ]

    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name="activity_logs")
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    previous_status = models.CharField(max_length=16, blank=True)
    new_status = models.CharField(max_length=16, blank=True)
    previous_date = models.DateTimeField(null=True, blank=True)
    new_date = models.DateTimeField(null=True, blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="appointment_activity",
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["appointment", "-created_at"], name="activity_appointment_idx"),
        ]

    def __str__(self):
        return f"{self.action} on appointment {self.appointment_id}"

    @classmethod
    def record(cls, appointment, action, previous_status="", performed_by=None, previous_date=None, new_date=None, **metadata):
        return cls.objects.create(
            appointment=appointment,
            action=action,
            previous_status=previous_status or "",
            new_status=appointment.status,
            previous_date=previous_date,
            new_date=new_date,
            performed_by=performed_by if getattr(performed_by, "is_authenticated", False) else None,
            metadata=metadata,
        )
