"""
Provenance Store — Service Wiring
===================================
Builds a ChainService over the Django store from settings.

Settings read:
    PROVENANCE_DATABASE_ALIAS       database alias (default "default")
    PROVENANCE_STRICT_TRANSITIONS   enforce the request → approve →
                                    execute → verify workflow (default False)
"""

from __future__ import annotations

from typing import Optional

from django.conf import settings

from provenance.clock import Clock
from provenance.django_store.store import DjangoTrailStore
from provenance.sanitizer import Sanitizer
from provenance.service import ChainService
from provenance.transitions import PermissiveTransitions, StrictWorkflowTransitions


def build_chain_service(
    *,
    sanitizer: Optional[Sanitizer] = None,
    clock: Optional[Clock] = None,
) -> ChainService:
    alias = getattr(settings, "PROVENANCE_DATABASE_ALIAS", "default")
    strict = getattr(settings, "PROVENANCE_STRICT_TRANSITIONS", False)
    transitions = StrictWorkflowTransitions() if strict else PermissiveTransitions()
    return ChainService(
        DjangoTrailStore(using=alias),
        sanitizer=sanitizer,
        clock=clock,
        transitions=transitions,
    )
