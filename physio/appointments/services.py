"""
Appointment services: booking and the status workflow.

Every operation runs in one transaction with the rows it decides on locked,
so the availability check and the write that depends on it cannot interleave
with a concurrent request for the same therapist.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from physio.core.exceptions import (
    AppointmentNotFound,
    InvalidAppointmentDate,
    InvalidStatus,
    InvalidStatusTransition,
    NoAvailableSlot,
    NoEligibleTherapist,
    PermissionDenied,
    UnknownPatient,
    UnknownTherapistOrService,
)

from .models import Appointment, AppointmentActivityLog
from .scheduling import (
    is_therapist_available,
    lock_therapists,
    pick_therapist,
    resolve_services,
    therapist_offers_services,
)

logger = logging.getLogger(__name__)

VALID_STATUSES = {choice for choice, _label in Appointment.STATUS_CHOICES}


def resolve_patient(user=None, patient_id=None, patient_details=None):
    """
    Who the appointment is for.

    Patient details (email, name, phone) win and upsert a patient by email.
    Staff may book for an existing patient by id. Otherwise the logged in
    user books for themselves.
    """
    User = get_user_model()

    if patient_details:
        patient, created = User.objects.upsert_patient(
            patient_details["email"],
            name=patient_details.get("name", ""),
            phone=patient_details.get("phone", ""),
        )
        if created:
            logger.info(f"Created patient {patient.pk} for {patient.email}")
        return patient

    if patient_id is not None:
        if user is None or not user.is_authenticated or user.role == User.PATIENT:
            raise PermissionDenied("Only staff can book for another patient")
        patient = User.objects.filter(pk=patient_id, role=User.PATIENT).first()
        if patient is None:
            raise UnknownPatient()
        return patient

    if user is not None and user.is_authenticated:
        return user

    raise PermissionDenied("Patient details are required to book without an account")


def _lock_active_therapist(therapist_id):
    User = get_user_model()
    therapist = User.objects.select_for_update().filter(pk=therapist_id).first()
    if therapist is None or therapist.role != User.THERAPIST or not therapist.is_active:
        raise UnknownTherapistOrService("The selected therapist does not exist or is not active")
    return therapist


def _lock_appointment(appointment_id):
    appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
    if appointment is None:
        raise AppointmentNotFound()
    return appointment


def _ensure_not_terminal(appointment, action):
    if appointment.is_terminal:
        raise InvalidStatusTransition(
            f"Cannot {action} an appointment that is {appointment.status.lower()}"
        )


@transaction.atomic
def book_appointment(patient, service_ids, date, therapist_id=None, notes="", performed_by=None, now=None):
    """
    Book ``service_ids`` for ``patient`` at ``date``.

    With an explicit therapist the request is checked against that therapist
    only; without one the workload balancer picks one. The appointment and
    its services are written together in SCHEDULED.
    """
    now = now or timezone.now()
    if date < now:
        raise InvalidAppointmentDate("The appointment date must be in the future")

    services = resolve_services(service_ids)
    service_ids = [service.pk for service in services]

    if therapist_id is not None:
        therapist = _lock_active_therapist(therapist_id)
        if not therapist_offers_services(therapist.pk, service_ids):
            raise NoEligibleTherapist("The selected therapist does not offer all the requested services")
        if not is_therapist_available(therapist.pk, date):
            raise NoAvailableSlot("The selected therapist is not available at this date/time")
    else:
        User = get_user_model()
        therapist = User.objects.get(pk=pick_therapist(service_ids, date, now=now))

    appointment = Appointment.objects.create_with_services(
        patient=patient,
        therapist=therapist,
        date=date,
        services=services,
        notes=notes,
    )
    AppointmentActivityLog.record(
        appointment,
        AppointmentActivityLog.CREATED,
        performed_by=performed_by,
        new_date=date,
        therapist_id=therapist.pk,
        service_ids=service_ids,
    )
    logger.info(
        f"Appointment {appointment.pk} booked for patient {patient.pk} "
        f"with therapist {therapist.pk} at {date:%Y-%m-%d %H:%M}"
    )
    return appointment


@transaction.atomic
def update_status(appointment_id, status, therapist_id=None, performed_by=None):
    """
    Set the status of an appointment. Any status may follow any other.

    ``therapist_id`` reassigns the appointment as well; the new therapist must
    offer every service of the appointment and be free at its date.
    Reviving a cancelled appointment re-checks that its therapist is free.
    """
    if status not in VALID_STATUSES:
        raise InvalidStatus(f"Invalid status: {status}")

    appointment = _lock_appointment(appointment_id)
    previous_status = appointment.status
    update_fields = ["status", "updated_at"]
    reassigned_from = None

    if therapist_id is not None and therapist_id != appointment.therapist_id:
        _ensure_not_terminal(appointment, "reassign")
        therapist = _lock_active_therapist(therapist_id)
        service_ids = list(appointment.appointment_services.values_list("service_id", flat=True))
        if not therapist_offers_services(therapist.pk, service_ids):
            raise NoEligibleTherapist("The selected therapist does not offer all the services of this appointment")
        if not is_therapist_available(therapist.pk, appointment.date, exclude_appointment_id=appointment.pk):
            raise NoAvailableSlot("The selected therapist is not available at this date/time")
        reassigned_from = appointment.therapist_id
        appointment.therapist = therapist
        update_fields.append("therapist")
    elif (
        previous_status == Appointment.CANCELLED
        and status != Appointment.CANCELLED
        and appointment.therapist_id is not None
    ):
        lock_therapists([appointment.therapist_id])
        if not is_therapist_available(appointment.therapist_id, appointment.date, exclude_appointment_id=appointment.pk):
            raise NoAvailableSlot("The therapist already has another appointment at this date/time")

    appointment.status = status
    appointment.save(update_fields=update_fields)

    if "therapist" in update_fields:
        AppointmentActivityLog.record(
            appointment,
            AppointmentActivityLog.REASSIGNED,
            previous_status=previous_status,
            performed_by=performed_by,
            previous_therapist_id=reassigned_from,
            therapist_id=appointment.therapist_id,
        )
    if status != previous_status:
        AppointmentActivityLog.record(
            appointment,
            AppointmentActivityLog.STATUS_CHANGED,
            previous_status=previous_status,
            performed_by=performed_by,
        )
    logger.info(f"Appointment {appointment.pk} status {previous_status} -> {status}")
    return appointment


@transaction.atomic
def confirm_appointment(appointment_id, performed_by=None):
    appointment = _lock_appointment(appointment_id)
    _ensure_not_terminal(appointment, "confirm")

    previous_status = appointment.status
    appointment.status = Appointment.CONFIRMED
    appointment.save(update_fields=["status", "updated_at"])
    AppointmentActivityLog.record(
        appointment,
        AppointmentActivityLog.CONFIRMED,
        previous_status=previous_status,
        performed_by=performed_by,
    )
    logger.info(f"Appointment {appointment.pk} confirmed")
    return appointment


@transaction.atomic
def reschedule_appointment(appointment_id, new_date, reason="", performed_by=None, now=None):
    """Move the appointment to ``new_date``, keeping its therapist"""
    now = now or timezone.now()
    appointment = _lock_appointment(appointment_id)
    _ensure_not_terminal(appointment, "reschedule")

    if new_date <= now:
        raise InvalidAppointmentDate("The new date must be in the future")

    if appointment.therapist_id is not None:
        lock_therapists([appointment.therapist_id])
        if not is_therapist_available(appointment.therapist_id, new_date, exclude_appointment_id=appointment.pk):
            raise NoAvailableSlot("The therapist is not available at the new date/time")

    previous_status = appointment.status
    previous_date = appointment.date
    appointment.date = new_date
    appointment.status = Appointment.RESCHEDULED
    appointment.save(update_fields=["date", "status", "updated_at"])
    AppointmentActivityLog.record(
        appointment,
        AppointmentActivityLog.RESCHEDULED,
        previous_status=previous_status,
        performed_by=performed_by,
        previous_date=previous_date,
        new_date=new_date,
        reason=reason,
    )
    logger.info(f"Appointment {appointment.pk} rescheduled from {previous_date:%Y-%m-%d %H:%M} to {new_date:%Y-%m-%d %H:%M}")
    return appointment


@transaction.atomic
def complete_appointment(appointment_id, performed_by=None, notes=""):
    """
    Mark the appointment as completed. Returns ``(appointment, changed)``;
    completing it again is a no-op.
    """
    appointment = _lock_appointment(appointment_id)
    if appointment.status == Appointment.COMPLETED:
        return appointment, False
    if appointment.status == Appointment.CANCELLED:
        raise InvalidStatusTransition("Cannot complete a cancelled appointment")

    previous_status = appointment.status
    appointment.status = Appointment.COMPLETED
    update_fields = ["status", "updated_at"]
    if notes:
        appointment.notes = f"{appointment.notes}\n{notes}".strip()
        update_fields.append("notes")
    appointment.save(update_fields=update_fields)
    AppointmentActivityLog.record(
        appointment,
        AppointmentActivityLog.COMPLETED,
        previous_status=previous_status,
        performed_by=performed_by,
    )
    logger.info(f"Appointment {appointment.pk} completed")
    return appointment, True
