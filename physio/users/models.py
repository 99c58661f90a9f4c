from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import UserManager as DjangoUserManager
from django.db import models
from django.db.models import Count
from django.utils.translation import gettext_lazy as _


class UserQuerySet(models.QuerySet):

    def therapists(self):
        return self.filter(role=User.THERAPIST)

    def active_therapists(self):
        return self.filter(role=User.THERAPIST, is_active=True)

    def therapists_offering(self, service_ids):
        """
        Active therapists who offer *every* service in ``service_ids``.

        Counts the therapist/service associations restricted to the requested
        ids and keeps only therapists whose count equals the size of the set.
        """
        service_ids = set(service_ids)
        if not service_ids:
            return self.none()
        return (
            self.active_therapists()
            .filter(therapist_services__service_id__in=service_ids)
            .annotate(matched_services=Count("therapist_services", distinct=True))
            .filter(matched_services=len(service_ids))
            .order_by("id")
        )

    def is_active_therapist(self, user_id):
        return self.active_therapists().filter(pk=user_id).exists()


class UserManager(DjangoUserManager.from_queryset(UserQuerySet)):

    def upsert_patient(self, email, name="", phone=""):
        """
        Find a user by email or create a patient for it.
        An existing user keeps its role; name/phone are refreshed when given.
        """
        email = self.normalize_email(email)
        user = self.filter(email__iexact=email).first()
        if user:
            update_fields = []
            if name and name != user.name:
                user.name = name
                update_fields.append("name")
            if phone and phone != user.phone:
                user.phone = phone
                update_fields.append("phone")
            if update_fields:
                user.save(update_fields=update_fields)
            return user, False

        user = self.create_user(
            username=email,
            email=email,
            name=name,
            phone=phone,
            role=User.PATIENT,
        )
        return user, True


class User(AbstractUser):
    """
    Clinic user. The role decides what the account is: administrators manage
    schedules and staff, therapists are booked, patients book.
    """

    ADMIN = "ADMIN"
    THERAPIST = "THERAPIST"
    PATIENT = "PATIENT"
    ROLE_CHOICES = [
        (ADMIN, _("Administrator")),
        (THERAPIST, _("Therapist")),
        (PATIENT, _("Patient")),
    ]

    # First and last name do not cover name patterns around the globe
    name = models.CharField(_("Name of User"), blank=True, max_length=255)
    first_name = None  # type: ignore[assignment]
    last_name = None  # type: ignore[assignment]

    email = models.EmailField(_("Email address"), unique=True)
    phone = models.CharField(_("Phone"), max_length=32, blank=True)
    role = models.CharField(_("Role"), max_length=16, choices=ROLE_CHOICES, default=PATIENT, db_index=True)

    objects = UserManager()

    class Meta:
        ordering = ["name", "username"]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return (self.name or "").strip() or self.username

    @property
    def is_therapist(self):
        return self.role == self.THERAPIST

    @property
    def is_clinic_admin(self):
        return self.role == self.ADMIN
