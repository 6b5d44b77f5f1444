"""
Provenance Store — Django ORM backend.

Add "provenance.django_store" to INSTALLED_APPS, then import
DjangoTrailStore from provenance.django_store.store.
"""
