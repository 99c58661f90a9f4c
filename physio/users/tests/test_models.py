import pytest

from physio.users.models import User

pytestmark = pytest.mark.django_db


class TestTherapistsOffering:

    def test_only_therapists_offering_every_service(self, make_therapist, massage, electro):
        both = make_therapist("both", services=[massage, electro])
        make_therapist("massage_only", services=[massage])

        result = list(User.objects.therapists_offering([massage.pk, electro.pk]))

        assert result == [both]

    def test_superset_of_services_is_eligible(self, make_therapist, make_service, massage, electro):
        acupuncture = make_service("Acupuncture")
        wide = make_therapist("wide", services=[massage, electro, acupuncture])
        narrow = make_therapist("narrow", services=[massage])

        result = set(User.objects.therapists_offering([massage.pk]))

        assert result == {wide, narrow}

    def test_inactive_therapists_are_excluded(self, make_therapist, massage):
        make_therapist("away", services=[massage], is_active=False)

        assert not User.objects.therapists_offering([massage.pk]).exists()

    def test_duplicate_ids_count_once(self, make_therapist, massage):
        therapist = make_therapist("dup", services=[massage])

        assert list(User.objects.therapists_offering([massage.pk, massage.pk])) == [therapist]

    def test_empty_request_matches_nobody(self, make_therapist, massage):
        make_therapist("any", services=[massage])

        assert not User.objects.therapists_offering([]).exists()

    def test_patients_never_match(self, patient, massage):
        from physio.staff.models import TherapistService
        TherapistService.objects.create(therapist=patient, service=massage)

        assert not User.objects.therapists_offering([massage.pk]).exists()

    def test_ordered_by_id(self, make_therapist, massage):
        first = make_therapist("first", services=[massage])
        second = make_therapist("second", services=[massage])

        assert list(User.objects.therapists_offering([massage.pk])) == [first, second]


class TestUpsertPatient:

    def test_creates_patient(self):
        user, created = User.objects.upsert_patient("New@Physio.test", name="New Patient", phone="600")

        assert created
        assert user.role == User.PATIENT
        assert user.email == "New@physio.test"
        assert user.name == "New Patient"

    def test_existing_email_is_reused_and_updated(self, patient):
        user, created = User.objects.upsert_patient("ANA@physio.test", name="Ana María", phone="")

        assert not created
        assert user == patient
        user.refresh_from_db()
        assert user.name == "Ana María"
        # Empty values never overwrite stored ones
        assert user.phone == "600111222"

    def test_existing_staff_keeps_role(self, make_therapist):
        therapist = make_therapist("lucia")

        user, created = User.objects.upsert_patient(therapist.email, name="Lucia")

        assert not created
        assert user.role == User.THERAPIST


def test_is_active_therapist(make_therapist, patient):
    active = make_therapist("active")
    inactive = make_therapist("inactive", is_active=False)

    assert User.objects.is_active_therapist(active.pk)
    assert not User.objects.is_active_therapist(inactive.pk)
    assert not User.objects.is_active_therapist(patient.pk)
