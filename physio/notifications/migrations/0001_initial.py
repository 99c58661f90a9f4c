import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("appointments", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("channel", models.CharField(choices=[("sms", "SMS"), ("email", "Email")], max_length=10, verbose_name="Channel")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("booking", "Booking confirmation"),
                            ("reminder", "Appointment reminder"),
                            ("survey", "Satisfaction survey"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=20,
                        verbose_name="Kind",
                    ),
                ),
                ("subject", models.CharField(blank=True, max_length=200, verbose_name="Subject")),
                ("message", models.TextField(verbose_name="Message")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")],
                        default="pending",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("sent_at", models.DateTimeField(blank=True, null=True, verbose_name="Sent At")),
                ("external_id", models.CharField(blank=True, max_length=100, verbose_name="External ID")),
                ("error_message", models.TextField(blank=True, verbose_name="Error Message")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "appointment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="appointments.appointment",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Notification Log",
                "verbose_name_plural": "Notification Logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "-created_at"], name="notification_recipient_idx"),
                    models.Index(fields=["status", "-created_at"], name="notification_status_idx"),
                    models.Index(fields=["appointment"], name="notification_appointment_idx"),
                ],
            },
        ),
    ]
