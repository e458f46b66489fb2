import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _person_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
        ("first_name", models.CharField(max_length=100)),
        ("last_name", models.CharField(blank=True, default="", max_length=100)),
        ("email", models.EmailField(blank=True, default="", max_length=254)),
        ("phone", models.CharField(blank=True, default="", max_length=50)),
        ("is_active", models.BooleanField(default=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="accounts.company")),
        ("user", models.ForeignKey(blank=True, help_text="Login used for the self-service pages.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Student",
            fields=_person_fields(),
            options={
                "ordering": ["last_name", "first_name"],
                "abstract": False,
                "indexes": [models.Index(fields=["company", "is_active"], name="people_student_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="Mentor",
            fields=_person_fields(),
            options={
                "ordering": ["last_name", "first_name"],
                "abstract": False,
                "indexes": [models.Index(fields=["company", "is_active"], name="people_mentor_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="Professor",
            fields=_person_fields() + [
                ("subject", models.CharField(blank=True, default="", max_length=100)),
            ],
            options={
                "ordering": ["last_name", "first_name"],
                "abstract": False,
                "indexes": [models.Index(fields=["company", "is_active"], name="people_prof_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="Pack",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("base_price", models.BigIntegerField(help_text="EUR cents")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="packs", to="accounts.company")),
            ],
            options={
                "ordering": ["name"],
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uniq_pack_name_per_company")],
            },
        ),
        migrations.CreateModel(
            name="StudentPack",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("custom_price", models.BigIntegerField(help_text="EUR cents")),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled")], default="ACTIVE", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="accounts.company")),
                ("pack", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="student_packs", to="people.pack")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="packs", to="people.student")),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
    ]
