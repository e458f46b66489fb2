# reports/serializers.py
"""
Query-parameter validation and output formatting for report endpoints.
"""

from django.conf import settings
from rest_framework import serializers

from accounting.models import Currency, Transaction
from accounting.serializers import TransactionSerializer
from .exports import ExportFormat
from .forecast import MAX_MONTHS, MIN_MONTHS


class JournalFilterSerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    type = serializers.ChoiceField(choices=Transaction.Type.choices, required=False)
    account = serializers.IntegerField(required=False)
    student = serializers.IntegerField(required=False)
    mentor = serializers.IntegerField(required=False)
    professor = serializers.IntegerField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1)
    offset = serializers.IntegerField(required=False, min_value=0, default=0)

    def to_internal_value(self, data):
        # "all" in a select box means no filter.
        cleaned = {key: value for key, value in data.items() if value not in ("", "all")}
        return super().to_internal_value(cleaned)

    def validate_limit(self, value):
        return min(value, settings.JOURNAL_MAX_PAGE_SIZE)


class JournalExportQuerySerializer(JournalFilterSerializer):
    format = serializers.ChoiceField(choices=ExportFormat.CHOICES, required=False, default=ExportFormat.EXCEL)


class ForecastQuerySerializer(serializers.Serializer):
    months = serializers.IntegerField(
        required=False,
        min_value=MIN_MONTHS,
        max_value=MAX_MONTHS,
        default=settings.FORECAST_DEFAULT_MONTHS,
    )


class JournalTransactionSerializer(TransactionSerializer):
    """Ledger row with counterparty names for the journal screen."""
    student_name = serializers.CharField(source="student.display_name", read_only=True, default=None)
    mentor_name = serializers.CharField(source="mentor.display_name", read_only=True, default=None)
    professor_name = serializers.CharField(source="professor.display_name", read_only=True, default=None)
    created_by_email = serializers.CharField(source="created_by.email", read_only=True, default=None)

    class Meta(TransactionSerializer.Meta):
        fields = TransactionSerializer.Meta.fields + [
            "student_name", "mentor_name", "professor_name", "created_by_email",
        ]
        read_only_fields = fields
