from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True, verbose_name="Service")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("duration_min", models.PositiveIntegerField(default=60, verbose_name="Duration (minutes)")),
                (
                    "price_minor_units",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Price in the currency's minor unit, e.g. 4500 = 45.00",
                        verbose_name="Price (cents)",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
    ]
