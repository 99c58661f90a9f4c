"""
Therapist selection for bookings.

A booking asks for a set of services at an instant. The candidate pool is
every active therapist who offers all of them; busy therapists (another live
appointment within the booking buffer) are dropped, and the least loaded of
the rest gets the appointment, provided a weekly schedule covers the instant.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from physio.catalog.models import Service
from physio.core.exceptions import NoAvailableSlot, NoEligibleTherapist, UnknownTherapistOrService
from physio.staff.models import Schedule

from .models import Appointment

logger = logging.getLogger(__name__)


def booking_buffer_minutes():
    return getattr(settings, "BOOKING_BUFFER_MINUTES", 30)


def workload_window():
    return timedelta(days=getattr(settings, "WORKLOAD_WINDOW_DAYS", 7))


def resolve_services(service_ids):
    """
    Load the requested services, keeping request order and dropping
    duplicates. Every id must name an active service.
    """
    service_ids = list(dict.fromkeys(service_ids))
    if not service_ids:
        raise UnknownTherapistOrService("At least one service is required")

    services = Service.objects.in_bulk(service_ids)
    missing = [sid for sid in service_ids if sid not in services or not services[sid].is_active]
    if missing:
        raise UnknownTherapistOrService(
            f"Unknown or inactive services: {', '.join(str(sid) for sid in missing)}"
        )
    return [services[sid] for sid in service_ids]


def eligible_therapist_ids(service_ids):
    """Ids of active therapists offering all of ``service_ids``, ascending"""
    User = get_user_model()
    return list(User.objects.therapists_offering(service_ids).values_list("id", flat=True))


def therapist_offers_services(therapist_id, service_ids):
    User = get_user_model()
    return User.objects.therapists_offering(service_ids).filter(pk=therapist_id).exists()


def is_therapist_available(therapist_id, when, exclude_appointment_id=None):
    """
    A therapist is busy at ``when`` if any live appointment of theirs lies in
    [when - buffer, when + buffer]. ``exclude_appointment_id`` ignores the
    appointment being moved or reassigned.
    """
    return not Appointment.objects.non_cancelled_near(
        therapist_id,
        when,
        booking_buffer_minutes(),
        exclude_id=exclude_appointment_id,
    ).exists()


def upcoming_load(therapist_id, now=None):
    """Live appointments in the workload window starting at ``now``"""
    now = now or timezone.now()
    return Appointment.objects.count_non_cancelled_in_window(therapist_id, now, now + workload_window())


def has_schedule_coverage(therapist_id, when):
    return Schedule.objects.covering(therapist_id, when).exists()


def lock_therapists(therapist_ids):
    """
    Lock the therapists' user rows until the end of the transaction. Rows are
    taken in id order so two bookings never wait on each other crosswise.
    """
    User = get_user_model()
    return list(User.objects.select_for_update().filter(pk__in=therapist_ids).order_by("pk"))


def balance_workload(candidate_ids, when, now=None):
    """
    Choose among eligible candidates.

    Free candidates are ranked by upcoming load, lowest id first on ties.
    The best one wins if a weekly schedule covers ``when``. Otherwise the
    runner-up is taken without checking its schedule, as long as there is one.
    """
    free = [tid for tid in candidate_ids if is_therapist_available(tid, when)]
    if not free:
        raise NoAvailableSlot("No therapist available at this date/time")

    loads = {tid: upcoming_load(tid, now) for tid in free}
    ranked = sorted(free, key=lambda tid: (loads[tid], tid))
    logger.debug(f"Workload ranking for {when:%Y-%m-%d %H:%M}: {[(tid, loads[tid]) for tid in ranked]}")

    best = ranked[0]
    if has_schedule_coverage(best, when):
        return best

    if len(ranked) > 1:
        logger.info(
            f"Therapist {best} has no schedule covering {when:%Y-%m-%d %H:%M}, "
            f"falling back to therapist {ranked[1]}"
        )
        return ranked[1]

    raise NoAvailableSlot("No available therapist for date/time")


@transaction.atomic
def pick_therapist(service_ids, when, now=None):
    """
    Id of the therapist who should take a booking of ``service_ids`` at
    ``when``. Candidate rows stay locked until the surrounding transaction
    ends, so the caller must create the appointment in that same transaction.
    """
    candidates = eligible_therapist_ids(service_ids)
    if not candidates:
        raise NoEligibleTherapist("No therapist available for the requested services")

    lock_therapists(candidates)
    # Eligibility may have changed while waiting for the locks
    User = get_user_model()
    candidates = list(
        User.objects.therapists_offering(service_ids).filter(pk__in=candidates).values_list("id", flat=True)
    )
    if not candidates:
        raise NoEligibleTherapist("No therapist available for the requested services")

    therapist_id = balance_workload(candidates, when, now=now)
    logger.info(f"Therapist {therapist_id} picked for services {sorted(set(service_ids))} at {when:%Y-%m-%d %H:%M}")
    return therapist_id
