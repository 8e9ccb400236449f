"""
Record procedures.

``record.all`` and ``record.specific`` are queries served through the
query cache; ``record.add``, ``record.edit`` and ``record.delete`` are
mutations that invalidate it once they have committed. Input is always
validated by the record serializers before the service layer runs.
"""
from __future__ import annotations

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.invalidation import RECORD_ALL, RECORD_SPECIFIC, scoped
from records.serializers.record import (
    RecordEditSerializer,
    RecordIdSerializer,
    RecordListQuerySerializer,
    RecordSerializer,
)
from records.serializers.transaction import RecordDetailSerializer
from records.services import query_cache
from records.services.records import (
    create_record,
    delete_record,
    get_record,
    list_records,
    update_record,
)


@swagger_auto_schema(method='get', query_serializer=RecordListQuerySerializer)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def record_all(request):
    """One page (20 rows) of records, optionally filtered by name.

    Query params:
      - pageNumber: 1-based page
      - searchTerm: optional case-insensitive substring of the name
      - sortType: asc | desc (by name)
    """
    q = RecordListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    args = {
        'pageNumber': q.validated_data['pageNumber'],
        'searchTerm': (q.validated_data.get('searchTerm') or '').strip(),
        'sortType': q.validated_data['sortType'],
    }

    def run():
        page_count, rows = list_records(
            page_number=args['pageNumber'],
            search_term=args['searchTerm'],
            sort_type=args['sortType'],
        )
        return {'pageCount': page_count, 'records': rows}

    data = query_cache.cached_query('record.all', RECORD_ALL, args, run)
    return Response({'ok': True, 'data': data})


@swagger_auto_schema(method='get', query_serializer=RecordIdSerializer)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def record_specific(request):
    """A record with all of its treatment entries; ``data`` is null if missing."""
    q = RecordIdSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    record_id = q.validated_data['id']

    def run():
        record = get_record(record_id)
        return RecordDetailSerializer(record).data if record else None

    data = query_cache.cached_query('record.specific', scoped(RECORD_SPECIFIC, record_id), None, run)
    return Response({'ok': True, 'data': data})


@swagger_auto_schema(method='post', request_body=RecordSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_add(request):
    s = RecordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = create_record(**s.validated_data)
    query_cache.invalidate('record.add', record.id)
    return Response({'ok': True, 'data': RecordSerializer(record).data}, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='post', request_body=RecordEditSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_edit(request):
    """Replace every field of a record. Partial updates are rejected."""
    s = RecordEditSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    record = update_record(fields.pop('id'), **fields)
    query_cache.invalidate('record.edit', record.id)
    return Response({'ok': True, 'data': RecordSerializer(record).data})


@swagger_auto_schema(method='post', request_body=RecordIdSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_delete(request):
    """Delete a record. Unknown ids are 404; records with entries are 409."""
    s = RecordIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = delete_record(s.validated_data['id'])
    query_cache.invalidate('record.delete', record.id)
    return Response({'ok': True, 'data': RecordSerializer(record).data})
