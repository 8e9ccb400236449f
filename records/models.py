"""
Database models for the clinic records backend.

A :class:`Record` is a patient file and a :class:`TreatmentEntry` is a
dated, billable service performed for that patient. The API exposes
treatment entries as "transactions".
"""
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


def generate_id() -> str:
    return uuid.uuid4().hex


class Record(models.Model):
    """A patient's demographic and intake information."""

    STATUS_CHOICES = [
        ('single', 'Single'),
        ('married', 'Married'),
        ('divorced', 'Divorced'),
        ('separated', 'Separated'),
        ('widowed', 'Widowed'),
    ]
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
    ]

    id = models.CharField(max_length=32, primary_key=True, default=generate_id, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    address = models.CharField(max_length=255)
    telephone = models.CharField(max_length=64)
    occupation = models.CharField(max_length=255)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='single')
    gender = models.CharField(max_length=6, choices=GENDER_CHOICES)
    complaint = models.TextField()
    birthday = models.DateField()

    class Meta:
        ordering = ['name', 'id']

    @property
    def age(self) -> int | None:
        if self.birthday:
            today = date.today()
            return (
                today.year
                - self.birthday.year
                - ((today.month, today.day) < (self.birthday.month, self.birthday.day))
            )
        return None

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class TreatmentEntry(models.Model):
    """A treatment performed on a patient, with its fee.

    Entries block deletion of their record (``PROTECT``); they must be
    removed first.
    """

    id = models.CharField(max_length=32, primary_key=True, default=generate_id, editable=False)
    record = models.ForeignKey(Record, on_delete=models.PROTECT, related_name='entries')
    date = models.DateField()
    tooth = models.CharField(max_length=255)
    service = models.TextField()
    fees = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))]
    )

    class Meta:
        ordering = ['date', 'id']
        verbose_name_plural = 'treatment entries'

    def __str__(self) -> str:
        return f"{self.date} {self.tooth} ({self.record_id})"
