from django.apps import AppConfig


class AppointmentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'physio.appointments'

    def ready(self):
        import physio.appointments.signals  # noqa: F401
