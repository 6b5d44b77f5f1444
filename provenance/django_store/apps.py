"""
Provenance Store — App Configuration
======================================
Relational Storage Port backend for trails and events.

This app:
- Persists trails and hash-chained events
- Serializes appends per trail

This app does NOT:
- Compute or verify hashes (provenance.hashing / provenance.verifier)
- Sanitize content
"""

from django.apps import AppConfig


class ProvenanceStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "provenance.django_store"
    label = "provenance_store"
    verbose_name = "Provenance Trail Store"
