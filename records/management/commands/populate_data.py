"""
Management command to populate the database with sample patient records.
"""
import random
from datetime import date, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from records.models import Record, TreatmentEntry
from records.services import query_cache

FIRST_NAMES = ['Jane', 'John', 'Maria', 'Jose', 'Ana', 'Mark', 'Grace', 'Paolo', 'Liza', 'Ramon']
LAST_NAMES = ['Doe', 'Santos', 'Reyes', 'Cruz', 'Bautista', 'Garcia', 'Mendoza', 'Torres']
OCCUPATIONS = ['Teacher', 'Engineer', 'Nurse', 'Driver', 'Student', 'Vendor', 'Accountant']
COMPLAINTS = ['Checkup', 'Toothache', 'Bleeding gums', 'Sensitivity', 'Broken tooth', 'Cleaning']
SERVICES = [
    ('Oral prophylaxis', Decimal('800.00')),
    ('Tooth extraction', Decimal('1000.00')),
    ('Composite filling', Decimal('1500.00')),
    ('Root canal treatment', Decimal('8000.00')),
    ('Fluoride application', Decimal('500.00')),
]


class Command(BaseCommand):
    help = 'Populate database with sample patient records and treatment entries'

    def add_arguments(self, parser):
        parser.add_argument('--records', type=int, default=50, help='number of records to create')
        parser.add_argument('--seed', type=int, default=None, help='random seed for repeatable data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        count = options['records']
        self.stdout.write(f'Creating {count} records...')

        with transaction.atomic():
            records = [self.create_record(rng) for _ in range(count)]
            entries = sum(self.create_entries(rng, r) for r in records)

        query_cache.invalidate('record.add')
        self.stdout.write(self.style.SUCCESS(f'Created {len(records)} records and {entries} treatment entries.'))

    def create_record(self, rng):
        today = date.today()
        return Record.objects.create(
            name=f'{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}',
            address=f'{rng.randint(1, 999)} Rizal Street',
            telephone=f'09{rng.randint(100000000, 999999999)}',
            occupation=rng.choice(OCCUPATIONS),
            status=rng.choice([c for c, _ in Record.STATUS_CHOICES]),
            gender=rng.choice([c for c, _ in Record.GENDER_CHOICES]),
            complaint=rng.choice(COMPLAINTS),
            birthday=today - timedelta(days=rng.randint(6 * 365, 80 * 365)),
        )

    def create_entries(self, rng, record):
        n = rng.randint(0, 4)
        for _ in range(n):
            service, fees = rng.choice(SERVICES)
            TreatmentEntry.objects.create(
                record=record,
                date=date.today() - timedelta(days=rng.randint(0, 720)),
                tooth=str(rng.randint(11, 48)),
                service=service,
                fees=fees,
            )
        return n
