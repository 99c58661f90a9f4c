"""
Staff services: recurring schedule validation and therapist administration.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from physio.catalog.models import Service
from physio.core.exceptions import (
    InvalidTimeRange,
    ScheduleOverlap,
    UnknownTherapistOrService,
)

from .models import DAYS_OF_WEEK, Schedule, TherapistService

logger = logging.getLogger(__name__)


def validate_time_range(start_time, end_time):
    if end_time <= start_time:
        raise InvalidTimeRange("End time must be after start time")


def check_schedule_overlap(therapist_id, day_of_week, start_time, end_time, exclude_id=None):
    """
    Reject the window if it overlaps any active window of the same therapist
    and day. ``exclude_id`` is the schedule being updated, if any.
    """
    conflict = (
        Schedule.objects
        .active_for_therapist_day(therapist_id, day_of_week, exclude_id=exclude_id)
        .overlapping(start_time, end_time)
        .first()
    )
    if conflict:
        raise ScheduleOverlap(
            f"The schedule overlaps an existing schedule "
            f"({conflict.day_of_week} {conflict.start_time:%H:%M}-{conflict.end_time:%H:%M})"
        )


def validate_schedule_window(therapist_id, day_of_week, start_time, end_time, exclude_id=None, is_active=True):
    validate_time_range(start_time, end_time)
    # Inactive windows never conflict
    if is_active:
        check_schedule_overlap(therapist_id, day_of_week, start_time, end_time, exclude_id=exclude_id)


def _lock_therapist(therapist_id):
    """
    Lock the therapist row for the rest of the transaction so concurrent
    schedule writes for the same therapist are serialized.
    """
    User = get_user_model()
    therapist = (
        User.objects.select_for_update()
        .filter(pk=therapist_id, role=User.THERAPIST)
        .first()
    )
    if therapist is None:
        raise UnknownTherapistOrService("The therapist does not exist")
    return therapist


def _get_active_service(service_id):
    service = Service.objects.filter(pk=service_id, is_active=True).first()
    if service is None:
        raise UnknownTherapistOrService("The selected service does not exist or is inactive")
    return service


@transaction.atomic
def create_schedule(therapist_id, day_of_week, start_time, end_time, service_id, is_active=True):
    if day_of_week not in DAYS_OF_WEEK:
        raise ValueError(f"Unknown day of week: {day_of_week}")

    validate_time_range(start_time, end_time)
    therapist = _lock_therapist(therapist_id)
    if not therapist.is_active:
        raise UnknownTherapistOrService("The therapist is not active")
    service = _get_active_service(service_id)

    if is_active:
        check_schedule_overlap(therapist.pk, day_of_week, start_time, end_time)

    schedule = Schedule.objects.create(
        therapist=therapist,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        service=service,
        is_active=is_active,
    )
    logger.info(
        f"Schedule {schedule.id} created for therapist {therapist.pk}: "
        f"{day_of_week} {start_time:%H:%M}-{end_time:%H:%M}"
    )
    return schedule


@transaction.atomic
def update_schedule(schedule, **changes):
    """
    Partially update a schedule. Fields not given keep their stored value,
    and the merged window is validated against the therapist's other windows.
    """
    _lock_therapist(schedule.therapist_id)
    schedule = Schedule.objects.select_for_update().get(pk=schedule.pk)

    day_of_week = changes.get('day_of_week') or schedule.day_of_week
    start_time = changes.get('start_time') or schedule.start_time
    end_time = changes.get('end_time') or schedule.end_time
    is_active = changes['is_active'] if changes.get('is_active') is not None else schedule.is_active

    if day_of_week not in DAYS_OF_WEEK:
        raise ValueError(f"Unknown day of week: {day_of_week}")

    validate_schedule_window(
        schedule.therapist_id,
        day_of_week,
        start_time,
        end_time,
        exclude_id=schedule.pk,
        is_active=is_active,
    )

    if changes.get('service_id'):
        schedule.service = _get_active_service(changes['service_id'])

    schedule.day_of_week = day_of_week
    schedule.start_time = start_time
    schedule.end_time = end_time
    schedule.is_active = is_active
    schedule.save()
    logger.info(f"Schedule {schedule.id} updated")
    return schedule


@transaction.atomic
def set_therapist_services(therapist, service_ids):
    """Replace the set of services the therapist offers"""
    service_ids = set(service_ids)
    services = list(Service.objects.filter(pk__in=service_ids))
    if len(services) != len(service_ids):
        raise UnknownTherapistOrService("One or more services do not exist")

    TherapistService.objects.filter(therapist=therapist).exclude(service_id__in=service_ids).delete()
    existing = set(
        TherapistService.objects.filter(therapist=therapist).values_list('service_id', flat=True)
    )
    TherapistService.objects.bulk_create([
        TherapistService(therapist=therapist, service=service)
        for service in services
        if service.pk not in existing
    ])
    return services


@transaction.atomic
def toggle_therapist_active(therapist):
    # Flip the locked row, not the caller's possibly stale copy
    therapist = _lock_therapist(therapist.pk)
    therapist.is_active = not therapist.is_active
    therapist.save(update_fields=['is_active'])
    logger.info(f"Therapist {therapist.pk} is now {'active' if therapist.is_active else 'inactive'}")
    return therapist
