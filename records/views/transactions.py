"""
Transaction (treatment entry) procedures.

Entries are only ever read through ``record.specific``, so every
mutation here invalidates the cached fetch of the owning record.
"""
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.serializers.transaction import (
    TransactionAddSerializer,
    TransactionEditSerializer,
    TransactionIdSerializer,
    TransactionSerializer,
)
from records.services import query_cache
from records.services.transactions import add_entry, delete_entry, update_entry


@swagger_auto_schema(method='post', request_body=TransactionAddSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transaction_add(request):
    s = TransactionAddSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    entry = add_entry(fields.pop('recordId'), **fields)
    query_cache.invalidate('transaction.add', entry.record_id)
    return Response({'ok': True, 'data': TransactionSerializer(entry).data}, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='post', request_body=TransactionEditSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transaction_edit(request):
    s = TransactionEditSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    entry = update_entry(fields.pop('id'), **fields)
    query_cache.invalidate('transaction.edit', entry.record_id)
    return Response({'ok': True, 'data': TransactionSerializer(entry).data})


@swagger_auto_schema(method='post', request_body=TransactionIdSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transaction_delete(request):
    s = TransactionIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    entry = delete_entry(s.validated_data['id'])
    query_cache.invalidate('transaction.delete', entry.record_id)
    return Response({'ok': True, 'data': TransactionSerializer(entry).data})
