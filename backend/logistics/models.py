import uuid

from django.db import models


class Project(models.Model):
    name = models.CharField(max_length=255)
    organizing_city = models.CharField(max_length=128, blank=True, default='')
    organizing_country = models.CharField(max_length=128, blank=True, default='')
    currency = models.CharField(max_length=3, default='EUR')
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class LogisticsFlow(models.Model):
    FLOW_TYPE_CHOICES = [
        ('DOMESTIC_ROAD', 'Domestic road'),
        ('EU_ROAD', 'EU road'),
        ('AIR_FREIGHT', 'Air freight'),
        ('DEDICATED_TRUCK', 'Dedicated truck'),
        ('ART_SHUTTLE', 'Art shuttle'),
    ]
    STATUS_CHOICES = [
        ('PENDING_QUOTE', 'Pending quote'),
        ('AWAITING_QUOTE', 'Awaiting quote'),
        ('QUOTE_RECEIVED', 'Quote received'),
        ('VALIDATED', 'Validated'),
    ]
    LEG_CHOICES = [
        ('OUTBOUND', 'Outbound'),
        ('TOUR', 'Tour'),
        ('DIRECT', 'Direct'),
        ('RETURN', 'Return'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='flows')
    origin_city = models.CharField(max_length=128, blank=True, default='')
    origin_country = models.CharField(max_length=128, blank=True, default='')
    origin_country_code = models.CharField(max_length=2, blank=True, default='')
    destination_city = models.CharField(max_length=128, blank=True, default='')
    destination_country = models.CharField(max_length=128, blank=True, default='')
    destination_country_code = models.CharField(max_length=2, blank=True, default='')
    flow_type = models.CharField(max_length=20, choices=FLOW_TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING_QUOTE')
    leg = models.CharField(max_length=10, choices=LEG_CHOICES, default='OUTBOUND')
    assigned_carrier = models.CharField(max_length=255, blank=True, null=True)
    validated_carrier = models.CharField(max_length=255, blank=True, null=True)
    distance_km = models.DecimalField(max_digits=10, decimal_places=1, null=True, blank=True)
    team_members = models.JSONField(default=list, blank=True)
    mission_duration_days = models.PositiveIntegerField(null=True, blank=True)
    per_diem_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    hotel_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    team_cost_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    transport_cost_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    transport_breakdown = models.JSONField(null=True, blank=True)
    steps = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['project', 'origin_city', 'destination_city'], name='logistics_flow_route_idx'),
        ]

    def __str__(self):
        return f"{self.origin_city} → {self.destination_city} ({self.flow_type})"


class Artwork(models.Model):
    TYPOLOGY_CHOICES = [
        ('PAINTING', 'Painting'),
        ('SCULPTURE', 'Sculpture'),
        ('OBJECT', 'Object'),
        ('INSTALLATION', 'Installation'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='artworks')
    title = models.CharField(max_length=255, blank=True, default='')
    height_cm = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    width_cm = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    depth_cm = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    weight_kg = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    typology = models.CharField(max_length=20, choices=TYPOLOGY_CHOICES, default='PAINTING')
    fragility = models.PositiveSmallIntegerField(default=1)
    has_fragile_frame = models.BooleanField(default=False)
    insurance_value = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    lender_city = models.CharField(max_length=128, blank=True, default='')
    lender_country = models.CharField(max_length=128, blank=True, default='')
    destination_city = models.CharField(max_length=128, blank=True, null=True)
    destination_city_2 = models.CharField(max_length=128, blank=True, null=True)
    imposed_carrier = models.CharField(max_length=255, blank=True, null=True)
    customs_required = models.BooleanField(default=False)
    courier_required = models.BooleanField(default=False)
    crate_specification = models.JSONField(null=True, blank=True)
    recommended_crate = models.CharField(max_length=128, blank=True, default='')
    crate_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    crate_factory_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    flow = models.ForeignKey(LogisticsFlow, on_delete=models.PROTECT, null=True, blank=True, related_name='artworks')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.title or str(self.id)


class QuoteLine(models.Model):
    CATEGORY_CHOICES = [
        ('PACKING', 'Packing'),
        ('TRANSPORT', 'Transport'),
        ('HANDLING', 'Handling'),
        ('COURIER', 'Courier'),
        ('CUSTOMS', 'Customs'),
        ('INSURANCE', 'Insurance'),
        ('SECURITY', 'Security'),
    ]
    SOURCE_CHOICES = [
        ('CALCULATION', 'Calculation'),
        ('ESTIMATION', 'Estimation'),
        ('AGENT', 'Agent quote'),
        ('MANUAL', 'Manual'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='quote_lines')
    flow = models.ForeignKey(LogisticsFlow, on_delete=models.PROTECT, null=True, blank=True, related_name='quote_lines')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    description = models.CharField(max_length=512)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='EUR')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    agent_name = models.CharField(max_length=255, blank=True, null=True)
    applied_constraints = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['project', 'category'], name='logistics_quote_cat_idx'),
        ]

    def __str__(self):
        return f"{self.category} {self.total_price} {self.currency}"


class ProjectConstraints(models.Model):
    project = models.OneToOneField(Project, on_delete=models.CASCADE, related_name='constraints')
    access = models.JSONField(default=dict, blank=True)
    security = models.JSONField(default=dict, blank=True)
    packing = models.JSONField(default=dict, blank=True)
    schedule = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'project constraints'

    def __str__(self):
        return f"Constraints for {self.project}"
