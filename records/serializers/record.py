import html
from datetime import date

import bleach
from rest_framework import serializers

from records.models import Record

SORT_CHOICES = ['asc', 'desc']


def clean_text(v):
    # strip markup but keep plain "&" / "<" as typed
    return html.unescape(bleach.clean((v or '').strip(), strip=True)).strip()


class RecordSerializer(serializers.ModelSerializer):
    """Shape and constraints of a patient record.

    Used for input validation on ``record.add`` / ``record.edit`` and as
    the output representation of a record. ``age`` is derived from the
    birthday and never written.
    """
    age = serializers.IntegerField(read_only=True)

    class Meta:
        model = Record
        fields = [
            'id', 'name', 'address', 'telephone', 'occupation',
            'status', 'gender', 'complaint', 'birthday', 'age',
        ]
        read_only_fields = ['id']
        extra_kwargs = {
            'status': {'required': True},
        }

    def _required_text(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('This field may not be blank.')
        return v

    validate_name = _required_text
    validate_address = _required_text
    validate_telephone = _required_text
    validate_occupation = _required_text
    validate_complaint = _required_text

    def validate_birthday(self, v):
        if v > date.today():
            raise serializers.ValidationError('Birthday cannot be in the future.')
        return v


class RecordEditSerializer(RecordSerializer):
    """Record input for ``record.edit``: every field, including the id."""
    id = serializers.CharField()

    class Meta(RecordSerializer.Meta):
        read_only_fields = []


class RecordSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Record
        fields = ['id', 'name']


class RecordListQuerySerializer(serializers.Serializer):
    pageNumber = serializers.IntegerField(min_value=1)
    searchTerm = serializers.CharField(required=False, allow_blank=True)
    sortType = serializers.ChoiceField(choices=SORT_CHOICES)


class RecordIdSerializer(serializers.Serializer):
    id = serializers.CharField()
