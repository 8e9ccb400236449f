from decimal import Decimal

from rest_framework import serializers

from records.models import TreatmentEntry
from records.serializers.record import RecordSerializer, clean_text


class TransactionSerializer(serializers.ModelSerializer):
    """A treatment entry as exposed over the API."""
    recordId = serializers.CharField(source='record_id', read_only=True)

    class Meta:
        model = TreatmentEntry
        fields = ['id', 'recordId', 'date', 'tooth', 'service', 'fees']
        read_only_fields = ['id']

    def _required_text(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('This field may not be blank.')
        return v

    validate_tooth = _required_text
    validate_service = _required_text

    def validate_fees(self, v):
        if v is None or v <= Decimal('0'):
            raise serializers.ValidationError('Fees must be greater than zero.')
        return v


class TransactionAddSerializer(TransactionSerializer):
    """``transaction.add`` input: the entry plus the owning record id."""
    recordId = serializers.CharField()


class TransactionEditSerializer(TransactionSerializer):
    """``transaction.edit`` input: every field including the id.

    The owning record is fixed at creation; a ``recordId`` sent here is
    ignored.
    """
    id = serializers.CharField()


class TransactionIdSerializer(serializers.Serializer):
    id = serializers.CharField()


class RecordDetailSerializer(RecordSerializer):
    """``record.specific`` output: the record with its treatment entries."""
    entries = TransactionSerializer(many=True, read_only=True)

    class Meta(RecordSerializer.Meta):
        fields = RecordSerializer.Meta.fields + ['entries']
