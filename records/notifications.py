"""
User-facing notifications for procedure outcomes.

Every operation has a success and an error notification with its own
title. Error notifications never carry server detail; the only
exception is validation, whose per-field messages are meant for the
user.
"""
from __future__ import annotations

from dataclasses import dataclass, field

SUCCESS = 'success'
ERROR = 'error'


@dataclass(frozen=True)
class Notification:
    status: str
    title: str
    message: str
    fields: dict = field(default_factory=dict)


NOTIFICATIONS: dict[str, tuple[str, str, str]] = {
    # key: (status, title, message)
    'record.query.error': (ERROR, 'Error', 'An error occurred while getting patient records.'),
    'record.add.success': (SUCCESS, 'Add Record', 'Successfully added patient to records.'),
    'record.add.error': (ERROR, 'Error', 'An error occurred while adding patient to records.'),
    'record.edit.success': (SUCCESS, 'Edit Record', "Successfully updated the patient's records."),
    'record.edit.error': (ERROR, 'Error', "An error occurred while updating the patient's records."),
    'record.delete.success': (SUCCESS, 'Delete Record', "Successfully deleted the patient's records."),
    'record.delete.error': (ERROR, 'Error', "An error occurred while deleting the patient's records."),
    'transaction.add.success': (SUCCESS, 'Add Transaction', "Successfully added transaction to patient's records."),
    'transaction.add.error': (ERROR, 'Error', "An error occurred while adding transaction to patient's records."),
    'transaction.edit.success': (SUCCESS, 'Edit Transaction', "Successfully updated the patient's transaction."),
    'transaction.edit.error': (ERROR, 'Error', "An error occurred while updating the patient's transaction."),
    'transaction.delete.success': (SUCCESS, 'Delete Transaction', "Successfully deleted the patient's transaction."),
    'transaction.delete.error': (ERROR, 'Error', "An error occurred while deleting the patient's transaction."),
}

VALIDATION_TITLE = 'Invalid input'


def _key(procedure: str, outcome: str) -> str:
    entity, op = procedure.split('.', 1)
    if op in ('all', 'specific'):
        op = 'query'
    return f'{entity}.{op}.{outcome}'


def success_for(procedure: str) -> Notification | None:
    entry = NOTIFICATIONS.get(_key(procedure, 'success'))
    return Notification(*entry) if entry else None


def error_for(procedure: str) -> Notification:
    return Notification(*NOTIFICATIONS[_key(procedure, 'error')])


def validation_error(fields: dict) -> Notification:
    """Notification for rejected input, listing what was wrong per field."""
    lines = []
    for name, errors in fields.items():
        if isinstance(errors, (list, tuple)):
            errors = ' '.join(str(e) for e in errors)
        lines.append(f'{name}: {errors}')
    return Notification(ERROR, VALIDATION_TITLE, '\n'.join(lines), dict(fields))
