from django.db import models
from django.utils.translation import gettext_lazy as _


class Service(models.Model):
    """
    A treatment offered by the clinic. Services referenced by appointments
    or schedules are never deleted, only deactivated.
    """
    name = models.CharField(_("Service"), max_length=120, unique=True)
    description = models.TextField(_("Description"), blank=True)
    duration_min = models.PositiveIntegerField(_("Duration (minutes)"), default=60)
    price_minor_units = models.PositiveIntegerField(
        _("Price (cents)"),
        default=0,
        help_text=_("Price in the currency's minor unit, e.g. 4500 = 45.00"),
    )
    is_active = models.BooleanField(_("Active"), default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def price(self):
        return self.price_minor_units / 100
