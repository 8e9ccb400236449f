from django.core.management.base import BaseCommand
from django.utils import timezone

from records.invalidation import RECORD_ALL, RECORD_SPECIFIC, scoped
from records.models import Record
from records.serializers.record import SORT_CHOICES
from records.services import query_cache
from records.services.records import list_records


class Command(BaseCommand):
    help = "Invalidate record query caches, warm the first listing page and broadcast the refresh."

    def handle(self, *args, **options):
        now = timezone.now()
        prefixes = [RECORD_ALL] + [
            scoped(RECORD_SPECIFIC, rid) for rid in Record.objects.values_list('id', flat=True)
        ]
        query_cache.invalidate_prefixes(prefixes)

        # Same arguments the record.all view caches under
        for sort_type in SORT_CHOICES:
            args = {'pageNumber': 1, 'searchTerm': '', 'sortType': sort_type}

            def run(sort_type=sort_type):
                page_count, rows = list_records(page_number=1, sort_type=sort_type)
                return {'pageCount': page_count, 'records': rows}

            query_cache.cached_query('record.all', RECORD_ALL, args, run)

        # browsers match keys as prefixes, so these two cover every record page
        query_cache.broadcast_invalidation('refresh_caches', [RECORD_ALL, RECORD_SPECIFIC])
        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(prefixes)} cache prefixes at {now}"))
