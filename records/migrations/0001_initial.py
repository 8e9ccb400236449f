from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import records.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Record',
            fields=[
                ('id', models.CharField(default=records.models.generate_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('address', models.CharField(max_length=255)),
                ('telephone', models.CharField(max_length=64)),
                ('occupation', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[('single', 'Single'), ('married', 'Married'), ('divorced', 'Divorced'), ('separated', 'Separated'), ('widowed', 'Widowed')], default='single', max_length=10)),
                ('gender', models.CharField(choices=[('male', 'Male'), ('female', 'Female')], max_length=6)),
                ('complaint', models.TextField()),
                ('birthday', models.DateField()),
            ],
            options={
                'ordering': ['name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='TreatmentEntry',
            fields=[
                ('id', models.CharField(default=records.models.generate_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('tooth', models.CharField(max_length=255)),
                ('service', models.TextField()),
                ('fees', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='entries', to='records.record')),
            ],
            options={
                'ordering': ['date', 'id'],
                'verbose_name_plural': 'treatment entries',
            },
        ),
    ]
