# apps/catalog/serializers.py
from rest_framework import serializers
from .models import Product


class ProductSummarySerializer(serializers.ModelSerializer):
    """
    Product fields embedded in bulk order line items.
    """
    image = serializers.SerializerMethodField()
    category = serializers.CharField(source="category.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = ["id", "name", "image", "price", "category"]

    def get_image(self, obj):
        return [obj.image_url] if obj.image_url else []


class ProductDetailSerializer(ProductSummarySerializer):
    class Meta(ProductSummarySerializer.Meta):
        fields = ProductSummarySerializer.Meta.fields + ["description"]
