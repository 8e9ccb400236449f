import logging
import math
from typing import Optional

from django.db import connection, transaction
from django.db.models import ProtectedError
from rest_framework.exceptions import NotFound

from records.exceptions import RecordHasEntries
from records.metrics import LISTING_QUERY_SECONDS
from records.models import Record

logger = logging.getLogger(__name__)

RECORDS_PER_PAGE = 20

RECORD_FIELDS = (
    'name', 'address', 'telephone', 'occupation',
    'status', 'gender', 'complaint', 'birthday',
)


def _repeatable_read():
    # The first statement of an outermost PostgreSQL transaction may pick
    # its isolation level. MySQL/InnoDB already defaults to REPEATABLE
    # READ and SQLite transactions are serializable.
    if connection.vendor == 'postgresql':
        with connection.cursor() as c:
            c.execute('SET TRANSACTION ISOLATION LEVEL REPEATABLE READ')


def list_records(*, page_number: int, search_term: Optional[str] = None,
                 sort_type: str = 'asc') -> tuple[int, list[dict]]:
    """Return ``(page_count, rows)`` for one page of the record listing.

    Rows are ``{'id', 'name'}`` dicts ordered by name, ties broken by id
    in the same direction. The count and the page are read in one
    transaction so they describe the same state of the table.
    """
    qs = Record.objects.all()
    term = (search_term or '').strip()
    if term:
        qs = qs.filter(name__icontains=term)
    if sort_type == 'desc':
        qs = qs.order_by('-name', '-id')
    else:
        qs = qs.order_by('name', 'id')

    start = (page_number - 1) * RECORDS_PER_PAGE
    end = start + RECORDS_PER_PAGE
    outermost = not connection.in_atomic_block
    with LISTING_QUERY_SECONDS.time(), transaction.atomic():
        if outermost:
            _repeatable_read()
        total = qs.count()
        # past the end: the offset may not even fit the database's integer type
        rows = list(qs.values('id', 'name')[start:end]) if start < total else []
    return math.ceil(total / RECORDS_PER_PAGE), rows


def get_record(record_id: str) -> Optional[Record]:
    """Return the record with its entries prefetched, or ``None``."""
    return Record.objects.prefetch_related('entries').filter(id=record_id).first()


def get_record_or_404(record_id: str) -> Record:
    record = Record.objects.filter(id=record_id).first()
    if not record:
        raise NotFound('record not found')
    return record


def create_record(**fields) -> Record:
    record = Record.objects.create(**{f: fields[f] for f in RECORD_FIELDS})
    logger.info('record created', extra={'record_id': record.id})
    return record


def update_record(record_id: str, **fields) -> Record:
    """Replace every field of an existing record; the id never changes."""
    with transaction.atomic():
        record = get_record_or_404(record_id)
        for f in RECORD_FIELDS:
            setattr(record, f, fields[f])
        record.save(update_fields=list(RECORD_FIELDS))
    logger.info('record updated', extra={'record_id': record.id})
    return record


def delete_record(record_id: str) -> Record:
    """Hard-delete a record and return it as it was.

    Records that still own treatment entries are not deleted.
    """
    with transaction.atomic():
        record = get_record_or_404(record_id)
        try:
            record.delete()
        except ProtectedError:
            raise RecordHasEntries()
    # delete() clears the primary key on the instance
    record.id = record_id
    logger.info('record deleted', extra={'record_id': record_id})
    return record
