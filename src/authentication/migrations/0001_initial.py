import uuid

import django.db.models.deletion
from django.db import migrations, models

import authentication.managers


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("access_control", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("password_hash", models.CharField(max_length=128)),
                ("name", models.CharField(max_length=150)),
                (
                    "membership_type",
                    models.CharField(
                        choices=[
                            ("MACOM_ADMIN_GERAL", "Maçom - administrador geral"),
                            ("ADMIN_DM", "Administrador DeMolay"),
                            ("ADMIN_FDJ", "Administradora Filhas de Jó"),
                            ("ADMIN_FRATERNA", "Administradora Fraterna"),
                            ("MACOM", "Maçom"),
                            ("MEMBRO_DM", "Membro DeMolay"),
                            ("MEMBRO_FDJ", "Membro Filhas de Jó"),
                            ("MEMBRO_FRATERNA", "Membro Fraterna"),
                        ],
                        default="MACOM",
                        max_length=32,
                    ),
                ),
                ("birth_date", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("token_version", models.PositiveIntegerField(default=1)),
                ("date_joined", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "subgroup",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="members",
                        to="access_control.subgroup",
                    ),
                ),
            ],
            options={
                "ordering": ["-date_joined"],
            },
            managers=[
                ("objects", authentication.managers.UserManager()),
            ],
        ),
    ]
