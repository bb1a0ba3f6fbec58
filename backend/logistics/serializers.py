from __future__ import annotations

from rest_framework import serializers

from .models import Artwork, LogisticsFlow, QuoteLine


# ---------- INPUT ----------
class PackingEstimateSerializer(serializers.Serializer):
    height_cm = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    width_cm = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    depth_cm = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    weight_kg = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    typology = serializers.ChoiceField(choices=[c[0] for c in Artwork.TYPOLOGY_CHOICES], default='PAINTING')
    fragility = serializers.IntegerField(min_value=1, max_value=5, default=1)
    has_fragile_frame = serializers.BooleanField(default=False)
    title = serializers.CharField(required=False, allow_blank=True, default='')


class FlowGenerationRequestSerializer(serializers.Serializer):
    offline = serializers.BooleanField(default=False)


# ---------- OUTPUT ----------
class ArtworkSerializer(serializers.ModelSerializer):
    class Meta:
        model = Artwork
        fields = (
            "id", "title", "typology", "lender_city", "lender_country",
            "recommended_crate", "crate_cost", "crate_factory_cost", "crate_specification", "flow",
        )


class LogisticsFlowSerializer(serializers.ModelSerializer):
    artwork_ids = serializers.SerializerMethodField()

    class Meta:
        model = LogisticsFlow
        exclude = ("project",)

    def get_artwork_ids(self, obj):
        return [str(pk) for pk in obj.artworks.values_list("pk", flat=True)]


class QuoteLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteLine
        exclude = ("project",)
