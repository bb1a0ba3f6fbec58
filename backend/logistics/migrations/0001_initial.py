# Generated manually for the initial logistics schema
import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("organizing_city", models.CharField(blank=True, default="", max_length=128)),
                ("organizing_country", models.CharField(blank=True, default="", max_length=128)),
                ("currency", models.CharField(default="EUR", max_length=3)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="LogisticsFlow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("origin_city", models.CharField(blank=True, default="", max_length=128)),
                ("origin_country", models.CharField(blank=True, default="", max_length=128)),
                ("origin_country_code", models.CharField(blank=True, default="", max_length=2)),
                ("destination_city", models.CharField(blank=True, default="", max_length=128)),
                ("destination_country", models.CharField(blank=True, default="", max_length=128)),
                ("destination_country_code", models.CharField(blank=True, default="", max_length=2)),
                ("flow_type", models.CharField(choices=[("DOMESTIC_ROAD", "Domestic road"), ("EU_ROAD", "EU road"), ("AIR_FREIGHT", "Air freight"), ("DEDICATED_TRUCK", "Dedicated truck"), ("ART_SHUTTLE", "Art shuttle")], max_length=20)),
                ("status", models.CharField(choices=[("PENDING_QUOTE", "Pending quote"), ("AWAITING_QUOTE", "Awaiting quote"), ("QUOTE_RECEIVED", "Quote received"), ("VALIDATED", "Validated")], default="PENDING_QUOTE", max_length=20)),
                ("leg", models.CharField(choices=[("OUTBOUND", "Outbound"), ("TOUR", "Tour"), ("DIRECT", "Direct"), ("RETURN", "Return")], default="OUTBOUND", max_length=10)),
                ("assigned_carrier", models.CharField(blank=True, max_length=255, null=True)),
                ("validated_carrier", models.CharField(blank=True, max_length=255, null=True)),
                ("distance_km", models.DecimalField(blank=True, decimal_places=1, max_digits=10, null=True)),
                ("team_members", models.JSONField(blank=True, default=list)),
                ("mission_duration_days", models.PositiveIntegerField(blank=True, null=True)),
                ("per_diem_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("hotel_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("team_cost_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("transport_cost_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("transport_breakdown", models.JSONField(blank=True, null=True)),
                ("steps", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="flows", to="logistics.project")),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [models.Index(fields=["project", "origin_city", "destination_city"], name="logistics_flow_route_idx")],
            },
        ),
        migrations.CreateModel(
            name="Artwork",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("height_cm", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("width_cm", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("depth_cm", models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ("weight_kg", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("typology", models.CharField(choices=[("PAINTING", "Painting"), ("SCULPTURE", "Sculpture"), ("OBJECT", "Object"), ("INSTALLATION", "Installation")], default="PAINTING", max_length=20)),
                ("fragility", models.PositiveSmallIntegerField(default=1)),
                ("has_fragile_frame", models.BooleanField(default=False)),
                ("insurance_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("lender_city", models.CharField(blank=True, default="", max_length=128)),
                ("lender_country", models.CharField(blank=True, default="", max_length=128)),
                ("destination_city", models.CharField(blank=True, max_length=128, null=True)),
                ("destination_city_2", models.CharField(blank=True, max_length=128, null=True)),
                ("imposed_carrier", models.CharField(blank=True, max_length=255, null=True)),
                ("customs_required", models.BooleanField(default=False)),
                ("courier_required", models.BooleanField(default=False)),
                ("crate_specification", models.JSONField(blank=True, null=True)),
                ("recommended_crate", models.CharField(blank=True, default="", max_length=128)),
                ("crate_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("crate_factory_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("flow", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="artworks", to="logistics.logisticsflow")),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="artworks", to="logistics.project")),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="QuoteLine",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("category", models.CharField(choices=[("PACKING", "Packing"), ("TRANSPORT", "Transport"), ("HANDLING", "Handling"), ("COURIER", "Courier"), ("CUSTOMS", "Customs"), ("INSURANCE", "Insurance"), ("SECURITY", "Security")], max_length=20)),
                ("description", models.CharField(max_length=512)),
                ("quantity", models.DecimalField(decimal_places=2, default=1, max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("currency", models.CharField(default="EUR", max_length=3)),
                ("source", models.CharField(choices=[("CALCULATION", "Calculation"), ("ESTIMATION", "Estimation"), ("AGENT", "Agent quote"), ("MANUAL", "Manual")], max_length=20)),
                ("agent_name", models.CharField(blank=True, max_length=255, null=True)),
                ("applied_constraints", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("flow", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="quote_lines", to="logistics.logisticsflow")),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="quote_lines", to="logistics.project")),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [models.Index(fields=["project", "category"], name="logistics_quote_cat_idx")],
            },
        ),
        migrations.CreateModel(
            name="ProjectConstraints",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("access", models.JSONField(blank=True, default=dict)),
                ("security", models.JSONField(blank=True, default=dict)),
                ("packing", models.JSONField(blank=True, default=dict)),
                ("schedule", models.JSONField(blank=True, default=dict)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("project", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="constraints", to="logistics.project")),
            ],
            options={
                "verbose_name_plural": "project constraints",
            },
        ),
    ]
