from rest_framework import serializers

from .models import Student, Mentor, Professor, Pack, StudentPack


PERSON_OUTPUT_FIELDS = (
    "id", "public_id", "first_name", "last_name", "display_name",
    "email", "phone", "is_active", "user_id", "created_at",
)


class StudentSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Student
        fields = PERSON_OUTPUT_FIELDS


class MentorSerializer(StudentSerializer):
    class Meta:
        model = Mentor
        fields = PERSON_OUTPUT_FIELDS


class ProfessorSerializer(StudentSerializer):
    class Meta:
        model = Professor
        fields = PERSON_OUTPUT_FIELDS + ("subject",)


class PersonInputSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    subject = serializers.CharField(max_length=100, required=False, allow_blank=True)
    user_id = serializers.IntegerField(required=False, allow_null=True)


class PersonUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100, required=False)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    subject = serializers.CharField(max_length=100, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    user_id = serializers.IntegerField(required=False, allow_null=True)


class PackSerializer(serializers.ModelSerializer):
    class Meta:
        model = Pack
        fields = ("id", "public_id", "name", "description", "base_price", "is_active")


class PackCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    base_price = serializers.IntegerField(min_value=0)


class StudentPackSerializer(serializers.ModelSerializer):
    pack = PackSerializer(read_only=True)

    class Meta:
        model = StudentPack
        fields = ("id", "public_id", "pack", "custom_price", "status", "created_at")


class AssignPackSerializer(serializers.Serializer):
    pack_id = serializers.IntegerField()
    custom_price = serializers.IntegerField(required=False, min_value=0)
