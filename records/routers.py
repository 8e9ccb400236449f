"""
URL mappings for the clinic records API.

Each record/transaction procedure gets its own path, named after the
procedure (``record.all`` -> ``api/record/all``). Queries are GET with
query parameters; mutations are POST with a JSON body. Trailing slashes
are omitted.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.records import record_all, record_specific, record_add, record_edit, record_delete
from .views.transactions import transaction_add, transaction_edit, transaction_delete


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Records
    path('api/record/all', record_all, name='record.all'),
    path('api/record/specific', record_specific, name='record.specific'),
    path('api/record/add', record_add, name='record.add'),
    path('api/record/edit', record_edit, name='record.edit'),
    path('api/record/delete', record_delete, name='record.delete'),
    # Transactions (treatment entries)
    path('api/transaction/add', transaction_add, name='transaction.add'),
    path('api/transaction/edit', transaction_edit, name='transaction.edit'),
    path('api/transaction/delete', transaction_delete, name='transaction.delete'),
]
