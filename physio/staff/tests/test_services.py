from datetime import time

import pytest

from physio.core.exceptions import InvalidTimeRange, ScheduleOverlap, UnknownTherapistOrService
from physio.staff import services
from physio.staff.models import MONDAY, TUESDAY, Schedule, TherapistService
from physio.users.models import User

pytestmark = pytest.mark.django_db


@pytest.fixture
def therapist(make_therapist, massage):
    return make_therapist("lucia", services=[massage])


def create(therapist, service, start, end, day=MONDAY, is_active=True):
    return services.create_schedule(
        therapist_id=therapist.pk,
        day_of_week=day,
        start_time=start,
        end_time=end,
        service_id=service.pk,
        is_active=is_active,
    )


class TestCreateSchedule:

    def test_creates_window(self, therapist, massage):
        schedule = create(therapist, massage, time(10), time(11))

        assert schedule.pk
        assert schedule.day_of_week == MONDAY
        assert schedule.is_active

    @pytest.mark.parametrize("existing,new", [
        ((time(10), time(11)), (time(10, 30), time(11, 30))),
        ((time(10, 30), time(11, 30)), (time(10), time(11))),
        ((time(10), time(11)), (time(9), time(12))),
        ((time(9), time(12)), (time(10), time(11))),
        ((time(10), time(11)), (time(10), time(11))),
    ])
    def test_overlap_is_rejected(self, therapist, massage, existing, new):
        create(therapist, massage, *existing)

        with pytest.raises(ScheduleOverlap):
            create(therapist, massage, *new)

    def test_back_to_back_windows_are_accepted(self, therapist, massage):
        create(therapist, massage, time(10), time(11))

        create(therapist, massage, time(11), time(12))
        create(therapist, massage, time(9), time(10))

        assert Schedule.objects.filter(therapist=therapist).count() == 3

    def test_other_day_or_therapist_does_not_conflict(self, therapist, make_therapist, massage):
        other = make_therapist("pablo", services=[massage])
        create(therapist, massage, time(10), time(11))

        create(therapist, massage, time(10), time(11), day=TUESDAY)
        create(other, massage, time(10), time(11))

    def test_inactive_windows_never_conflict(self, therapist, massage):
        create(therapist, massage, time(10), time(11), is_active=False)

        create(therapist, massage, time(10), time(11))
        # Saving an inactive window skips the check as well
        create(therapist, massage, time(10, 30), time(11, 30), is_active=False)

    @pytest.mark.parametrize("start,end", [(time(11), time(10)), (time(10), time(10))])
    def test_end_must_follow_start(self, therapist, massage, start, end):
        with pytest.raises(InvalidTimeRange):
            create(therapist, massage, start, end)

    def test_time_range_is_checked_before_overlap(self, therapist, massage):
        create(therapist, massage, time(10), time(11))

        with pytest.raises(InvalidTimeRange):
            create(therapist, massage, time(10, 30), time(10))

    def test_unknown_therapist(self, patient, massage):
        with pytest.raises(UnknownTherapistOrService):
            create(patient, massage, time(10), time(11))

    def test_inactive_service(self, therapist, make_service):
        retired = make_service("Retired", is_active=False)

        with pytest.raises(UnknownTherapistOrService):
            create(therapist, retired, time(10), time(11))


class TestUpdateSchedule:

    def test_update_does_not_conflict_with_itself(self, therapist, massage):
        schedule = create(therapist, massage, time(10), time(11))

        updated = services.update_schedule(schedule, end_time=time(11, 30))

        assert updated.start_time == time(10)
        assert updated.end_time == time(11, 30)

    def test_partial_update_is_merged_with_stored_values(self, therapist, massage):
        create(therapist, massage, time(12), time(13))
        schedule = create(therapist, massage, time(10), time(11))

        with pytest.raises(ScheduleOverlap):
            services.update_schedule(schedule, end_time=time(12, 30))

        schedule.refresh_from_db()
        assert schedule.end_time == time(11)

    def test_merged_range_is_validated(self, therapist, massage):
        schedule = create(therapist, massage, time(10), time(11))

        with pytest.raises(InvalidTimeRange):
            services.update_schedule(schedule, start_time=time(11, 30))

    def test_reactivating_checks_overlap(self, therapist, massage):
        create(therapist, massage, time(10), time(11))
        inactive = create(therapist, massage, time(10, 30), time(11, 30), is_active=False)

        with pytest.raises(ScheduleOverlap):
            services.update_schedule(inactive, is_active=True)

    def test_move_to_another_day(self, therapist, massage):
        create(therapist, massage, time(10), time(11), day=TUESDAY)
        schedule = create(therapist, massage, time(10), time(11))

        with pytest.raises(ScheduleOverlap):
            services.update_schedule(schedule, day_of_week=TUESDAY)


class TestTherapistAdministration:

    def test_set_services_replaces_the_set(self, therapist, massage, electro):
        services.set_therapist_services(therapist, [electro.pk])

        offered = set(TherapistService.objects.filter(therapist=therapist).values_list("service_id", flat=True))
        assert offered == {electro.pk}

    def test_set_services_round_trips_regardless_of_order(self, therapist, massage, electro):
        services.set_therapist_services(therapist, [electro.pk, massage.pk])
        first = set(TherapistService.objects.filter(therapist=therapist).values_list("service_id", flat=True))

        services.set_therapist_services(therapist, [massage.pk, electro.pk])
        second = set(TherapistService.objects.filter(therapist=therapist).values_list("service_id", flat=True))

        assert first == second == {massage.pk, electro.pk}

    def test_set_services_rejects_unknown_ids(self, therapist):
        with pytest.raises(UnknownTherapistOrService):
            services.set_therapist_services(therapist, [9999])

    def test_toggle_active(self, therapist):
        services.toggle_therapist_active(therapist)
        therapist.refresh_from_db()
        assert not therapist.is_active

        services.toggle_therapist_active(therapist)
        therapist.refresh_from_db()
        assert therapist.is_active

    def test_toggle_active_flips_the_stored_flag(self, therapist):
        stale = User.objects.get(pk=therapist.pk)
        User.objects.filter(pk=therapist.pk).update(is_active=False)

        toggled = services.toggle_therapist_active(stale)

        therapist.refresh_from_db()
        assert toggled.is_active
        assert therapist.is_active
