from django.contrib import admin

from .models import Student, Mentor, Professor, Pack, StudentPack


@admin.register(Student, Mentor, Professor)
class PersonAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "email", "company", "is_active")
    list_filter = ("is_active",)
    search_fields = ("first_name", "last_name", "email")


@admin.register(Pack)
class PackAdmin(admin.ModelAdmin):
    list_display = ("name", "base_price", "company", "is_active")


@admin.register(StudentPack)
class StudentPackAdmin(admin.ModelAdmin):
    list_display = ("student", "pack", "custom_price", "status")
    list_filter = ("status",)
