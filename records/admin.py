"""
Django admin registrations for patient records.

Treatment entries are edited inline on their record so staff can fix
data by hand during development. Admin writes are mutations like any
other: once they commit, the query caches they touched are invalidated.
"""
from django.contrib import admin
from django.db import transaction

from .models import Record, TreatmentEntry
from .services import query_cache


def invalidate_on_commit(mutation, record_id):
    transaction.on_commit(lambda: query_cache.invalidate(mutation, record_id))


class TreatmentEntryInline(admin.TabularInline):
    model = TreatmentEntry
    extra = 0
    fields = ('date', 'tooth', 'service', 'fees')


@admin.register(Record)
class RecordAdmin(admin.ModelAdmin):
    list_display = ('name', 'gender', 'status', 'birthday', 'age', 'telephone')
    list_filter = ('status', 'gender')
    search_fields = ('id', 'name', 'telephone')
    inlines = [TreatmentEntryInline]

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        invalidate_on_commit('record.edit' if change else 'record.add', obj.id)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        if any(fs.has_changed() for fs in formsets):
            invalidate_on_commit('transaction.edit', form.instance.id)

    def delete_model(self, request, obj):
        record_id = obj.id
        super().delete_model(request, obj)
        invalidate_on_commit('record.delete', record_id)

    def delete_queryset(self, request, queryset):
        record_ids = list(queryset.values_list('id', flat=True))
        super().delete_queryset(request, queryset)
        for record_id in record_ids:
            invalidate_on_commit('record.delete', record_id)


@admin.register(TreatmentEntry)
class TreatmentEntryAdmin(admin.ModelAdmin):
    list_display = ('id', 'record', 'date', 'tooth', 'fees')
    list_filter = ('date',)
    search_fields = ('id', 'record__name', 'tooth', 'service')
    raw_id_fields = ('record',)

    def save_model(self, request, obj, form, change):
        # the admin can move an entry to another record; both are stale then
        previous = None
        if change:
            previous = TreatmentEntry.objects.filter(pk=obj.pk).values_list('record_id', flat=True).first()
        super().save_model(request, obj, form, change)
        invalidate_on_commit('transaction.edit' if change else 'transaction.add', obj.record_id)
        if previous and previous != obj.record_id:
            invalidate_on_commit('transaction.edit', previous)

    def delete_model(self, request, obj):
        record_id = obj.record_id
        super().delete_model(request, obj)
        invalidate_on_commit('transaction.delete', record_id)

    def delete_queryset(self, request, queryset):
        record_ids = set(queryset.values_list('record_id', flat=True))
        super().delete_queryset(request, queryset)
        for record_id in record_ids:
            invalidate_on_commit('transaction.delete', record_id)
