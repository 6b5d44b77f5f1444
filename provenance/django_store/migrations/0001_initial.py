from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TrailRecord",
            fields=[
                ("trail_id", models.CharField(max_length=32, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField()),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("correlation_id", models.CharField(blank=True, default="", max_length=255)),
                ("targets", models.JSONField(blank=True, default=list)),
            ],
            options={
                "db_table": "provenance_trails",
                "ordering": ["created_at", "trail_id"],
            },
        ),
        migrations.CreateModel(
            name="EventRecord",
            fields=[
                ("seq", models.BigAutoField(primary_key=True, serialize=False)),
                ("event_id", models.CharField(max_length=32, unique=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("REQUESTED", "Requested"),
                            ("APPROVED", "Approved"),
                            ("EXECUTED", "Executed"),
                            ("VERIFIED", "Verified"),
                            ("FAILED", "Failed"),
                        ],
                        max_length=16,
                    ),
                ),
                ("at", models.DateTimeField()),
                ("actor", models.JSONField()),
                ("targets", models.JSONField(blank=True, default=list)),
                ("commands", models.JSONField(blank=True, default=list)),
                ("result", models.JSONField(blank=True, null=True)),
                ("evidence", models.JSONField(blank=True, default=list)),
                ("correlation_id", models.CharField(blank=True, default="", max_length=255)),
                (
                    "prev_hash",
                    models.CharField(
                        blank=True,
                        help_text="Hash of the preceding event. Empty for the first event.",
                        max_length=64,
                    ),
                ),
                (
                    "event_hash",
                    models.CharField(
                        help_text="SHA-256 of the canonical encoding of this event.",
                        max_length=64,
                    ),
                ),
                (
                    "trail",
                    models.ForeignKey(
                        db_column="trail_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="events",
                        to="provenance_store.trailrecord",
                    ),
                ),
            ],
            options={
                "db_table": "provenance_events",
                "ordering": ["seq"],
                "indexes": [
                    models.Index(fields=["trail", "seq"], name="idx_prov_evt_trail_seq"),
                    models.Index(fields=["at"], name="idx_prov_evt_at"),
                    models.Index(fields=["event_type"], name="idx_prov_evt_type"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("trail", "prev_hash"),
                        name="uq_prov_evt_trail_prev_hash",
                    ),
                ],
            },
        ),
    ]
