import logging

from django.conf import settings
from django.core.cache import cache
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.accounts.permissions import IsAdmin
from apps.utils.exceptions import DuplicateRequest
from apps.utils.pagination import PageRequest
from apps.utils.responses import api_response
from .models import BulkOrder
from .permissions import CanReopenBulkOrder
from .serializers import (
    BulkOrderCreateSerializer,
    BulkOrderDetailSerializer,
    BulkOrderSerializer,
    ReopenSerializer,
    StatusUpdateSerializer,
)
from .services import BulkOrderIntakeService, BulkOrderQueryService, BulkOrderReviewService

logger = logging.getLogger(__name__)

PAGE_PARAMS = [
    OpenApiParameter("page", int, description="1-based page number (default 1)"),
    OpenApiParameter("limit", int, description="Page size (default 10)"),
]


# ==========================
# BUYER ENDPOINTS
# ==========================

class BulkOrderCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=BulkOrderCreateSerializer, responses={201: BulkOrderSerializer})
    def post(self, request):
        """
        Submit a bulk order request.

        Optional `X-Idempotency-Key` header blocks accidental double submits.
        """
        cache_key = None
        idempotency_key = request.headers.get("X-Idempotency-Key")
        if idempotency_key:
            cache_key = f"bulk_order_create:{request.user.id}:{idempotency_key}"
            added = cache.add(cache_key, "processing", timeout=settings.IDEMPOTENCY_KEY_TTL)
            if added is False:
                raise DuplicateRequest()
            if added is None:
                # Cache backend swallowed an error; submit without the guard
                logger.warning(
                    "Idempotency cache unavailable, accepting bulk order submit from user %s",
                    request.user.pk, extra={"user_id": request.user.pk},
                )
                cache_key = None

        try:
            serializer = BulkOrderCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            order = BulkOrderIntakeService.submit(request.user, serializer.validated_data)
        except Exception:
            if cache_key:
                cache.delete(cache_key)  # let the client retry after a failure
            raise

        return api_response(
            "Bulk order request submitted successfully. Our team will contact you soon.",
            BulkOrderSerializer(order).data,
            status=status.HTTP_201_CREATED,
        )


class MyBulkOrdersView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(parameters=PAGE_PARAMS, responses=BulkOrderSerializer(many=True))
    def get(self, request):
        orders, pagination = BulkOrderQueryService.list_orders(
            user=request.user,
            page_request=PageRequest.from_query_params(request.query_params),
        )
        return api_response("Bulk orders retrieved successfully", {
            "orders": BulkOrderSerializer(orders, many=True).data,
            "pagination": pagination,
        })


class BulkOrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=BulkOrderDetailSerializer)
    def get(self, request, order_id):
        order = BulkOrderQueryService.get_order_for_user(order_id, request.user)
        return api_response(
            "Bulk order details retrieved successfully",
            BulkOrderDetailSerializer(order).data,
        )


# ==========================
# ADMIN ENDPOINTS
# ==========================

class AdminBulkOrderListView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        parameters=PAGE_PARAMS + [
            OpenApiParameter("status", str, enum=BulkOrder.Status.values, description="Filter by status"),
        ],
        responses=BulkOrderSerializer(many=True),
    )
    def get(self, request):
        orders, pagination = BulkOrderQueryService.list_orders(
            status=request.query_params.get("status"),
            page_request=PageRequest.from_query_params(request.query_params),
        )
        return api_response("Bulk orders retrieved successfully", {
            "orders": BulkOrderSerializer(orders, many=True).data,
            "statusCounts": BulkOrderQueryService.status_counts(),
            "pagination": pagination,
        })


class AdminUpdateStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(request=StatusUpdateSerializer, responses=BulkOrderSerializer)
    def put(self, request, order_id):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = BulkOrderReviewService.update_status(
            order_id,
            data["status"],
            admin=request.user,
            admin_notes=data.get("admin_notes"),
            rejection_reason=data.get("rejection_reason"),
        )
        return api_response(
            f"Bulk order {order.status.lower()} successfully",
            BulkOrderSerializer(order).data,
        )


class AdminReopenView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin, CanReopenBulkOrder]

    @extend_schema(request=ReopenSerializer, responses=BulkOrderSerializer)
    def put(self, request, order_id):
        serializer = ReopenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = BulkOrderReviewService.reopen(
            order_id,
            admin=request.user,
            admin_notes=serializer.validated_data.get("admin_notes"),
        )
        return api_response("Bulk order reopened successfully", BulkOrderSerializer(order).data)


class AdminDeleteView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(responses={200: None})
    def delete(self, request, order_id):
        BulkOrderReviewService.delete(order_id, admin=request.user)
        return api_response("Bulk order deleted successfully")


class AdminAnalyticsView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(responses={200: dict})
    def get(self, request):
        return api_response("Analytics retrieved successfully", BulkOrderQueryService.analytics())
