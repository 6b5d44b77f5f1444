"""
Provenance Store — Relational Trail & Event Records
=====================================================
Django ORM persistence for trails and their hash-chained events.

RULES (NON-NEGOTIABLE):
- No deletes, no updates after insert
- Events keep append order through the auto-increment seq column
- (trail, prev_hash) is unique: the database itself refuses a forked
  chain, even for writers that skip the trail lock

This file contains NO hashing logic.
"""

from __future__ import annotations

from django.db import models


class EventTypeChoices(models.TextChoices):
    REQUESTED = "REQUESTED", "Requested"
    APPROVED = "APPROVED", "Approved"
    EXECUTED = "EXECUTED", "Executed"
    VERIFIED = "VERIFIED", "Verified"
    FAILED = "FAILED", "Failed"


class _InsertOnlyModel(models.Model):
    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError(
                f"{type(self).__name__} rows are immutable. "
                "Append a new event instead of updating."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError(
            f"{type(self).__name__} rows are never deleted."
        )


class TrailRecord(_InsertOnlyModel):
    trail_id = models.CharField(primary_key=True, max_length=32)
    created_at = models.DateTimeField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    correlation_id = models.CharField(max_length=255, blank=True, default="")
    targets = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "provenance_trails"
        ordering = ["created_at", "trail_id"]

    def __str__(self) -> str:
        return f"{self.trail_id} ({self.title})"


class EventRecord(_InsertOnlyModel):
    # ── Identity & Order ──────────────────────────────────────
    seq = models.BigAutoField(primary_key=True)
    event_id = models.CharField(max_length=32, unique=True)
    trail = models.ForeignKey(
        TrailRecord,
        on_delete=models.PROTECT,
        related_name="events",
        db_column="trail_id",
    )
    event_type = models.CharField(max_length=16, choices=EventTypeChoices.choices)

    # ── Content ───────────────────────────────────────────────
    at = models.DateTimeField()
    actor = models.JSONField()
    targets = models.JSONField(default=list, blank=True)
    commands = models.JSONField(default=list, blank=True)
    result = models.JSONField(null=True, blank=True)
    evidence = models.JSONField(default=list, blank=True)
    correlation_id = models.CharField(max_length=255, blank=True, default="")

    # ── Integrity (Hash-Chain) ────────────────────────────────
    prev_hash = models.CharField(
        max_length=64,
        blank=True,
        help_text="Hash of the preceding event. Empty for the first event.",
    )
    event_hash = models.CharField(
        max_length=64,
        help_text="SHA-256 of the canonical encoding of this event.",
    )

    class Meta:
        db_table = "provenance_events"
        ordering = ["seq"]
        indexes = [
            models.Index(fields=["trail", "seq"], name="idx_prov_evt_trail_seq"),
            models.Index(fields=["at"], name="idx_prov_evt_at"),
            models.Index(fields=["event_type"], name="idx_prov_evt_type"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["trail", "prev_hash"],
                name="uq_prov_evt_trail_prev_hash",
            ),
        ]

    def __str__(self) -> str:
        return f"[{self.event_type}] {self.event_id} ({self.trail_id})"
