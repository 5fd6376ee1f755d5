from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from apps.catalog.serializers import ProductSummarySerializer, ProductDetailSerializer
from apps.utils.validators import validate_phone
from .models import BulkOrder, BulkOrderItem, BulkOrderTimeline

LINE_ITEM_ERROR = "Each product must have valid product ID and quantity"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class LineItemInputSerializer(serializers.Serializer):
    product = serializers.UUIDField(error_messages={
        "required": LINE_ITEM_ERROR,
        "null": LINE_ITEM_ERROR,
        "invalid": LINE_ITEM_ERROR,
    })
    quantity = serializers.IntegerField(min_value=1, error_messages={
        "required": LINE_ITEM_ERROR,
        "null": LINE_ITEM_ERROR,
        "invalid": LINE_ITEM_ERROR,
        "min_value": LINE_ITEM_ERROR,
    })
    size = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)


class BulkOrderCreateSerializer(serializers.Serializer):
    """
    Buyer submission. Wire keys are camelCase; validated_data uses model names.
    """
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20, validators=[validate_phone])
    email = serializers.EmailField()
    buyerType = serializers.ChoiceField(choices=BulkOrder.BuyerType.choices, source="buyer_type")
    address = serializers.CharField()
    products = LineItemInputSerializer(
        many=True,
        allow_empty=False,
        error_messages={
            "empty": "At least one product must be selected",
            "not_a_list": "At least one product must be selected",
        },
    )


class StatusUpdateSerializer(serializers.Serializer):
    # Value checked by the review service so every caller gets the same message
    status = serializers.CharField()
    adminNotes = serializers.CharField(source="admin_notes", required=False, allow_blank=True, allow_null=True)
    rejectionReason = serializers.CharField(
        source="rejection_reason", required=False, allow_blank=True, allow_null=True
    )


class ReopenSerializer(serializers.Serializer):
    adminNotes = serializers.CharField(source="admin_notes", required=False, allow_blank=True, allow_null=True)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class BulkOrderItemSerializer(serializers.ModelSerializer):
    product = ProductSummarySerializer(read_only=True)

    class Meta:
        model = BulkOrderItem
        fields = ["product", "quantity", "size"]


class BulkOrderItemDetailSerializer(BulkOrderItemSerializer):
    product = ProductDetailSerializer(read_only=True)


class BulkOrderTimelineSerializer(serializers.ModelSerializer):
    createdBy = serializers.EmailField(source="created_by.email", read_only=True, default=None)

    class Meta:
        model = BulkOrderTimeline
        fields = ["status", "note", "timestamp", "createdBy"]


class BulkOrderSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    buyerType = serializers.CharField(source="buyer_type", read_only=True)
    products = BulkOrderItemSerializer(source="items", many=True, read_only=True)
    adminNotes = serializers.CharField(source="admin_notes", read_only=True)
    rejectionReason = serializers.CharField(source="rejection_reason", read_only=True)
    totalQuantity = serializers.IntegerField(source="total_quantity", read_only=True)
    approvedBy = UserSummarySerializer(source="approved_by", read_only=True, allow_null=True)
    approvedAt = serializers.DateTimeField(source="approved_at", read_only=True, allow_null=True)
    submittedAt = serializers.DateTimeField(source="submitted_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = BulkOrder
        fields = [
            "id", "user", "name", "phone", "email", "buyerType", "address",
            "products", "status", "adminNotes", "rejectionReason", "totalQuantity",
            "approvedBy", "approvedAt", "submittedAt", "updatedAt",
        ]


class BulkOrderDetailSerializer(BulkOrderSerializer):
    products = BulkOrderItemDetailSerializer(source="items", many=True, read_only=True)
    timeline = BulkOrderTimelineSerializer(many=True, read_only=True)

    class Meta(BulkOrderSerializer.Meta):
        fields = BulkOrderSerializer.Meta.fields + ["timeline"]
