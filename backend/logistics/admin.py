from django.contrib import admin

from .models import Artwork, LogisticsFlow, Project, ProjectConstraints, QuoteLine


class ArtworkInline(admin.TabularInline):
    model = Artwork
    fields = ("title", "typology", "height_cm", "width_cm", "depth_cm", "weight_kg", "fragility", "recommended_crate", "crate_cost")
    readonly_fields = ("recommended_crate", "crate_cost")
    extra = 0


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "organizing_city", "organizing_country", "currency", "end_date", "created_at")
    search_fields = ("name", "organizing_city")
    date_hierarchy = "created_at"
    inlines = [ArtworkInline]


@admin.register(Artwork)
class ArtworkAdmin(admin.ModelAdmin):
    list_display = ("title", "project", "typology", "fragility", "lender_city", "lender_country", "recommended_crate", "crate_cost", "flow")
    list_filter = ("typology", "fragility", "customs_required", "courier_required")
    search_fields = ("title", "lender_city", "project__name")
    readonly_fields = ("crate_specification", "recommended_crate", "crate_cost", "crate_factory_cost")


@admin.register(LogisticsFlow)
class LogisticsFlowAdmin(admin.ModelAdmin):
    list_display = ("project", "origin_city", "destination_city", "flow_type", "leg", "status", "assigned_carrier", "transport_cost_total", "team_cost_total")
    list_filter = ("flow_type", "leg", "status")
    search_fields = ("origin_city", "destination_city", "project__name")


@admin.register(QuoteLine)
class QuoteLineAdmin(admin.ModelAdmin):
    list_display = ("project", "category", "description", "quantity", "unit_price", "total_price", "currency", "source")
    list_filter = ("category", "source", "currency")
    search_fields = ("description", "project__name")


@admin.register(ProjectConstraints)
class ProjectConstraintsAdmin(admin.ModelAdmin):
    list_display = ("project", "updated_at")
