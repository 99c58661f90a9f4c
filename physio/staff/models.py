# physio/staff/models.py
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


MONDAY = 'MONDAY'
TUESDAY = 'TUESDAY'
WEDNESDAY = 'WEDNESDAY'
THURSDAY = 'THURSDAY'
FRIDAY = 'FRIDAY'
SATURDAY = 'SATURDAY'
SUNDAY = 'SUNDAY'

# Index matches datetime.weekday()
DAYS_OF_WEEK = [MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY]

DAY_CHOICES = [
    (MONDAY, _('Monday')),
    (TUESDAY, _('Tuesday')),
    (WEDNESDAY, _('Wednesday')),
    (THURSDAY, _('Thursday')),
    (FRIDAY, _('Friday')),
    (SATURDAY, _('Saturday')),
    (SUNDAY, _('Sunday')),
]


def day_of_week_for(value):
    """Weekday name (MONDAY..SUNDAY) of a date or datetime"""
    return DAYS_OF_WEEK[value.weekday()]


class TherapistService(models.Model):
    """A service a therapist is qualified to perform"""

    therapist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='therapist_services'
    )
    service = models.ForeignKey(
        'catalog.Service',
        on_delete=models.PROTECT,
        related_name='therapist_services'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Therapist Service")
        verbose_name_plural = _("Therapist Services")
        constraints = [
            models.UniqueConstraint(fields=['therapist', 'service'], name='unique_therapist_service'),
        ]

    def __str__(self):
        return f"{self.therapist} → {self.service}"


class ScheduleQuerySet(models.QuerySet):

    def active_for_therapist_day(self, therapist_id, day_of_week, exclude_id=None):
        queryset = self.filter(therapist_id=therapist_id, day_of_week=day_of_week, is_active=True)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset

    def overlapping(self, start_time, end_time):
        """
        Windows that conflict with [start_time, end_time):
        the new window starts inside one, ends inside one, or contains one.
        """
        return self.filter(
            Q(start_time__lte=start_time, end_time__gt=start_time)
            | Q(start_time__lt=end_time, end_time__gte=end_time)
            | Q(start_time__gte=start_time, end_time__lte=end_time)
        )

    def covering(self, therapist_id, when):
        """Active windows of the therapist that contain the wall-clock instant ``when``"""
        moment = when.time()
        return self.active_for_therapist_day(therapist_id, day_of_week_for(when)).filter(
            start_time__lte=moment,
            end_time__gt=moment,
        )


class Schedule(models.Model):
    """Recurring weekly availability window of a therapist for one service"""

    therapist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='schedules'
    )
    day_of_week = models.CharField(_("Day of Week"), max_length=10, choices=DAY_CHOICES)
    start_time = models.TimeField(_("Start Time"))
    end_time = models.TimeField(_("End Time"))
    service = models.ForeignKey(
        'catalog.Service',
        on_delete=models.PROTECT,
        related_name='schedules'
    )
    is_active = models.BooleanField(_("Active"), default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ScheduleQuerySet.as_manager()

    class Meta:
        verbose_name = _("Schedule")
        verbose_name_plural = _("Schedules")
        ordering = ['therapist', 'day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['therapist', 'day_of_week'], name='schedule_therapist_day_idx'),
        ]

    def __str__(self):
        return f"{self.therapist} - {self.day_of_week} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def clean(self):
        """Validate the window the same way the schedule services do"""
        from physio.core.exceptions import SchedulingError
        from .services import validate_schedule_window

        if not (self.therapist_id and self.day_of_week and self.start_time and self.end_time):
            return
        try:
            validate_schedule_window(
                self.therapist_id,
                self.day_of_week,
                self.start_time,
                self.end_time,
                exclude_id=self.pk,
                is_active=self.is_active,
            )
        except SchedulingError as e:
            raise ValidationError(e.message)
