"""Patient records application for the clinic backend.

Holds the models, serializers, services and procedure views for patient
records and their treatment entries, plus the query cache that keeps
listings and record pages fresh after mutations.
"""
