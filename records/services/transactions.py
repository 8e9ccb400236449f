import logging

from django.db import transaction
from rest_framework.exceptions import NotFound

from records.models import Record, TreatmentEntry

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ('date', 'tooth', 'service', 'fees')


def get_entry_or_404(entry_id: str) -> TreatmentEntry:
    entry = TreatmentEntry.objects.filter(id=entry_id).first()
    if not entry:
        raise NotFound('transaction not found')
    return entry


def add_entry(record_id: str, **fields) -> TreatmentEntry:
    """Create a treatment entry under an existing record."""
    with transaction.atomic():
        record = Record.objects.select_for_update().filter(id=record_id).first()
        if not record:
            raise NotFound('record not found')
        entry = TreatmentEntry.objects.create(record=record, **{f: fields[f] for f in ENTRY_FIELDS})
    logger.info('transaction added', extra={'transaction_id': entry.id, 'record_id': record_id})
    return entry


def update_entry(entry_id: str, **fields) -> TreatmentEntry:
    """Replace date, tooth, service and fees; the owning record is fixed."""
    with transaction.atomic():
        entry = get_entry_or_404(entry_id)
        for f in ENTRY_FIELDS:
            setattr(entry, f, fields[f])
        entry.save(update_fields=list(ENTRY_FIELDS))
    logger.info('transaction updated', extra={'transaction_id': entry.id, 'record_id': entry.record_id})
    return entry


def delete_entry(entry_id: str) -> TreatmentEntry:
    with transaction.atomic():
        entry = get_entry_or_404(entry_id)
        entry.delete()
    entry.id = entry_id
    logger.info('transaction deleted', extra={'transaction_id': entry_id, 'record_id': entry.record_id})
    return entry
