# people/models.py
"""
Directory of the people the back office bills and pays.

- Student: pays for packs through quotes and payment schedules
- Mentor / Professor: paid for validated missions
- Pack / StudentPack: the catalogue and what each student bought
"""

import uuid

from django.conf import settings
from django.db import models

from accounts.models import Company


class Person(models.Model):
    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Login used for the self-service pages.",
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["last_name", "first_name"]

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.display_name


class Student(Person):
    class Meta(Person.Meta):
        indexes = [models.Index(fields=["company", "is_active"], name="people_student_active_idx")]


class Mentor(Person):
    class Meta(Person.Meta):
        indexes = [models.Index(fields=["company", "is_active"], name="people_mentor_active_idx")]


class Professor(Person):
    subject = models.CharField(max_length=100, blank=True, default="")

    class Meta(Person.Meta):
        indexes = [models.Index(fields=["company", "is_active"], name="people_prof_active_idx")]


class Pack(models.Model):
    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="packs")
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    base_price = models.BigIntegerField(help_text="EUR cents")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["company", "name"], name="uniq_pack_name_per_company"),
        ]

    def __str__(self):
        return self.name


class StudentPack(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="packs")
    pack = models.ForeignKey(Pack, on_delete=models.PROTECT, related_name="student_packs")
    custom_price = models.BigIntegerField(help_text="EUR cents")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.student} - {self.pack}"
