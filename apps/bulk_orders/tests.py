# apps/bulk_orders/tests.py
import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import Role, User
from apps.catalog.models import Category, Product
from apps.utils.exceptions import BusinessLogicException, ResourceNotFound
from apps.utils.pagination import PageRequest

from .models import BulkOrder, BulkOrderItem, BulkOrderTimeline
from .services import BulkOrderIntakeService, BulkOrderQueryService


def order_payload(*products, **overrides):
    data = {
        "name": "Asha Traders",
        "phone": "9876543210",
        "email": "Asha@Example.com",
        "buyer_type": "Shop",
        "address": "12 Market Road, Pune",
        "products": [
            {"product": str(product.id), "quantity": qty, "size": size}
            for product, qty, size in products
        ],
    }
    data.update(overrides)
    return data


class BulkOrderFixtures:

    def setUp(self):
        cache.clear()
        self.buyer = User.objects.create_user(email="buyer@example.com", name="Asha")
        self.other_buyer = User.objects.create_user(email="other@example.com")
        self.admin = User.objects.create_user(email="ops@example.com", role=Role.ADMIN)

        category = Category.objects.create(name="Tees")
        self.tee = Product.objects.create(
            name="Cotton Tee", price=Decimal("199.00"), category=category,
            image_url="https://cdn.example.com/tee.png",
        )
        self.cap = Product.objects.create(name="Cap", price=Decimal("99.00"))

    def submit(self, user=None, **overrides):
        return BulkOrderIntakeService.submit(
            user or self.buyer,
            order_payload((self.tee, 50, "M"), (self.cap, 25, None), **overrides),
        )


# ==========================
# STATE MACHINE
# ==========================

class BulkOrderStateTests(SimpleTestCase):

    def test_terminal_states(self):
        self.assertFalse(BulkOrder(status=BulkOrder.Status.REQUESTED).is_terminal)
        self.assertTrue(BulkOrder(status=BulkOrder.Status.APPROVED).is_terminal)
        self.assertTrue(BulkOrder(status=BulkOrder.Status.REJECTED).is_terminal)

    def test_only_requested_moves_forward(self):
        requested = BulkOrder(status=BulkOrder.Status.REQUESTED)
        self.assertTrue(requested.can_transition_to(BulkOrder.Status.APPROVED))
        self.assertTrue(requested.can_transition_to(BulkOrder.Status.REJECTED))
        self.assertFalse(requested.can_transition_to(BulkOrder.Status.REQUESTED))

        approved = BulkOrder(status=BulkOrder.Status.APPROVED)
        self.assertFalse(approved.can_transition_to(BulkOrder.Status.REJECTED))
        self.assertFalse(approved.can_transition_to(BulkOrder.Status.REQUESTED))


# ==========================
# INTAKE
# ==========================

class IntakeServiceTests(BulkOrderFixtures, TestCase):

    def test_submit_creates_requested_order(self):
        order = self.submit()

        self.assertEqual(order.status, BulkOrder.Status.REQUESTED)
        self.assertEqual(order.user, self.buyer)
        self.assertEqual(order.email, "asha@example.com")
        self.assertIsNone(order.approved_by)
        self.assertIsNone(order.approved_at)
        self.assertIsNotNone(order.submitted_at)
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.items.get(product=self.cap).size, "")

        timeline = BulkOrderTimeline.objects.get(order=order)
        self.assertEqual(timeline.status, BulkOrder.Status.REQUESTED)
        self.assertEqual(timeline.created_by, self.buyer)

    def test_total_quantity_is_sum_of_items(self):
        order = self.submit()
        self.assertEqual(order.total_quantity, 75)
        order.refresh_from_db()
        self.assertEqual(order.total_quantity, 75)

    def test_total_quantity_follows_item_edits(self):
        order = self.submit()
        item = order.items.get(product=self.cap)
        item.quantity = 5
        item.save()

        order.refresh_from_db()
        self.assertEqual(order.total_quantity, 55)

        item.delete()
        order.refresh_from_db()
        self.assertEqual(order.total_quantity, 50)

    def test_empty_products_creates_nothing(self):
        with self.assertRaisesMessage(BusinessLogicException, "At least one product must be selected"):
            BulkOrderIntakeService.submit(self.buyer, order_payload())
        self.assertFalse(BulkOrder.objects.exists())

    def test_missing_field(self):
        with self.assertRaisesMessage(BusinessLogicException, "All fields are required"):
            BulkOrderIntakeService.submit(self.buyer, order_payload((self.tee, 1, None), address=""))

    def test_invalid_buyer_type(self):
        with self.assertRaisesMessage(BusinessLogicException, "Invalid buyer type"):
            BulkOrderIntakeService.submit(self.buyer, order_payload((self.tee, 1, None), buyer_type="Retail"))

    def test_zero_quantity_rejected(self):
        with self.assertRaisesMessage(BusinessLogicException, "Each product must have valid product ID and quantity"):
            BulkOrderIntakeService.submit(self.buyer, order_payload((self.tee, 0, None)))
        self.assertFalse(BulkOrder.objects.exists())

    def test_one_unknown_product_creates_nothing(self):
        ghost = uuid.uuid4()
        data = order_payload((self.tee, 10, None))
        data["products"].append({"product": str(ghost), "quantity": 5})

        with self.assertRaisesMessage(BusinessLogicException, f"Product with ID {ghost} not found"):
            BulkOrderIntakeService.submit(self.buyer, data)

        self.assertFalse(BulkOrder.objects.exists())
        self.assertFalse(BulkOrderItem.objects.exists())
        self.assertFalse(BulkOrderTimeline.objects.exists())

    def test_malformed_product_id(self):
        data = order_payload()
        data["products"] = [{"product": "not-a-uuid", "quantity": 5}]
        with self.assertRaisesMessage(BusinessLogicException, "Product with ID not-a-uuid not found"):
            BulkOrderIntakeService.submit(self.buyer, data)


# ==========================
# QUERY / ANALYTICS
# ==========================

class QueryServiceTests(BulkOrderFixtures, TestCase):

    def test_second_page(self):
        for _ in range(15):
            self.submit()

        orders, pagination = BulkOrderQueryService.list_orders(
            user=self.buyer, page_request=PageRequest(2, 10)
        )
        self.assertEqual(len(orders), 5)
        self.assertEqual(pagination, {"page": 2, "limit": 10, "total": 15, "pages": 2})

    def test_newest_first(self):
        older = self.submit()
        BulkOrder.objects.filter(pk=older.pk).update(submitted_at=timezone.now() - timedelta(days=1))
        newer = self.submit()

        orders, _ = BulkOrderQueryService.list_orders()
        self.assertEqual([o.id for o in orders], [newer.id, older.id])

    def test_user_and_status_filters(self):
        mine = self.submit()
        theirs = self.submit(user=self.other_buyer)
        BulkOrder.objects.filter(pk=theirs.pk).update(status=BulkOrder.Status.APPROVED)

        orders, _ = BulkOrderQueryService.list_orders(user=self.buyer)
        self.assertEqual([o.id for o in orders], [mine.id])

        orders, _ = BulkOrderQueryService.list_orders(status="Approved")
        self.assertEqual([o.id for o in orders], [theirs.id])

        # unrecognized values do not filter
        orders, pagination = BulkOrderQueryService.list_orders(status="Shipped")
        self.assertEqual(pagination["total"], 2)

    def test_get_order_for_user_is_owner_only(self):
        order = self.submit()
        self.assertEqual(BulkOrderQueryService.get_order_for_user(order.id, self.buyer), order)

        with self.assertRaises(ResourceNotFound):
            BulkOrderQueryService.get_order_for_user(order.id, self.other_buyer)
        with self.assertRaises(ResourceNotFound):
            BulkOrderQueryService.get_order_for_user(uuid.uuid4(), self.buyer)

    def test_analytics_on_empty_store(self):
        self.assertEqual(BulkOrderQueryService.analytics(), {
            "statusCounts": {"Requested": 0, "Approved": 0, "Rejected": 0},
            "recentOrders": 0,
            "totalQuantity": 0,
            "buyerTypes": {"Shop": 0, "Solo": 0, "Wholesale": 0},
            "totalOrders": 0,
        })

    def test_analytics(self):
        self.submit()
        old = self.submit(buyer_type="Wholesale")
        BulkOrder.objects.filter(pk=old.pk).update(
            submitted_at=timezone.now() - timedelta(days=45),
            status=BulkOrder.Status.REJECTED,
        )

        stats = BulkOrderQueryService.analytics()
        self.assertEqual(stats["statusCounts"], {"Requested": 1, "Approved": 0, "Rejected": 1})
        self.assertEqual(stats["recentOrders"], 1)
        self.assertEqual(stats["totalQuantity"], 150)
        self.assertEqual(stats["buyerTypes"], {"Shop": 1, "Solo": 0, "Wholesale": 1})
        self.assertEqual(stats["totalOrders"], 2)


# ==========================
# API
# ==========================

class BuyerApiTests(BulkOrderFixtures, APITestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.buyer)

    def _payload(self, **overrides):
        data = order_payload((self.tee, 50, "M"), (self.cap, 25, None), **overrides)
        data["buyerType"] = data.pop("buyer_type")
        return data

    def test_create_requires_auth(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(reverse("bulk-order-create"), self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create(self):
        response = self.client.post(reverse("bulk-order-create"), self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["success"])
        self.assertEqual(
            response.data["message"],
            "Bulk order request submitted successfully. Our team will contact you soon.",
        )
        data = response.data["data"]
        self.assertEqual(data["status"], "Requested")
        self.assertEqual(data["buyerType"], "Shop")
        self.assertEqual(data["totalQuantity"], 75)
        self.assertIsNone(data["approvedBy"])
        self.assertIsNone(data["approvedAt"])
        self.assertEqual(data["user"]["email"], "buyer@example.com")

        tee_line = next(p for p in data["products"] if p["size"] == "M")
        self.assertEqual(tee_line["product"]["name"], "Cotton Tee")
        self.assertEqual(tee_line["product"]["image"], ["https://cdn.example.com/tee.png"])
        self.assertEqual(tee_line["product"]["price"], "199.00")

    def test_create_with_empty_products(self):
        payload = self._payload()
        payload["products"] = []
        response = self.client.post(reverse("bulk-order-create"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("At least one product must be selected", response.data["message"])
        self.assertFalse(response.data["success"])
        self.assertFalse(BulkOrder.objects.exists())

    def test_create_with_bad_phone(self):
        response = self.client.post(reverse("bulk-order-create"), self._payload(phone="12ab"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", response.data["errors"])

    def test_create_with_unknown_product(self):
        payload = self._payload()
        payload["products"][0]["product"] = str(uuid.uuid4())
        response = self.client.post(reverse("bulk-order-create"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "product_not_found")
        self.assertFalse(BulkOrder.objects.exists())

    def test_idempotency_key_blocks_replay(self):
        url = reverse("bulk-order-create")
        first = self.client.post(url, self._payload(), format="json", HTTP_X_IDEMPOTENCY_KEY="abc-1")
        second = self.client.post(url, self._payload(), format="json", HTTP_X_IDEMPOTENCY_KEY="abc-1")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(BulkOrder.objects.count(), 1)

    def test_idempotency_key_released_on_failure(self):
        url = reverse("bulk-order-create")
        bad = self._payload()
        bad["products"] = []
        self.client.post(url, bad, format="json", HTTP_X_IDEMPOTENCY_KEY="abc-2")

        retry = self.client.post(url, self._payload(), format="json", HTTP_X_IDEMPOTENCY_KEY="abc-2")
        self.assertEqual(retry.status_code, status.HTTP_201_CREATED)

    @patch("apps.bulk_orders.views.cache")
    def test_idempotency_cache_outage_still_accepts(self, mock_cache):
        # django-redis with IGNORE_EXCEPTIONS returns None when Redis is down
        mock_cache.add.return_value = None

        with self.assertLogs("apps.bulk_orders.views", level="WARNING"):
            response = self.client.post(
                reverse("bulk-order-create"), self._payload(), format="json", HTTP_X_IDEMPOTENCY_KEY="k1"
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(BulkOrder.objects.count(), 1)

    def test_my_orders_paginated(self):
        for _ in range(3):
            self.submit()
        self.submit(user=self.other_buyer)

        response = self.client.get(reverse("bulk-order-mine"), {"page": 1, "limit": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["data"]["orders"]), 2)
        self.assertEqual(response.data["data"]["pagination"], {"page": 1, "limit": 2, "total": 3, "pages": 2})

    def test_detail_includes_timeline(self):
        order = self.submit()
        response = self.client.get(reverse("bulk-order-detail", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual(data["id"], str(order.id))
        self.assertEqual(len(data["timeline"]), 1)
        self.assertEqual(data["timeline"][0]["createdBy"], "buyer@example.com")
        self.assertIn("description", data["products"][0]["product"])

    def test_detail_of_foreign_order_is_404(self):
        order = self.submit(user=self.other_buyer)
        response = self.client.get(reverse("bulk-order-detail", args=[order.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Bulk order not found")

    def test_buyer_cannot_use_admin_endpoints(self):
        order = self.submit()
        self.assertEqual(self.client.get(reverse("bulk-order-admin-list")).status_code, 403)
        self.assertEqual(self.client.get(reverse("bulk-order-analytics")).status_code, 403)
        response = self.client.put(
            reverse("bulk-order-update-status", args=[order.id]), {"status": "Approved"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdminQueryApiTests(BulkOrderFixtures, APITestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def test_admin_list_with_counts(self):
        self.submit()
        rejected = self.submit(user=self.other_buyer)
        BulkOrder.objects.filter(pk=rejected.pk).update(status=BulkOrder.Status.REJECTED)

        response = self.client.get(reverse("bulk-order-admin-list"), {"status": "Rejected"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual([o["id"] for o in data["orders"]], [str(rejected.id)])
        self.assertEqual(data["statusCounts"], {"Requested": 1, "Approved": 0, "Rejected": 1})
        self.assertEqual(data["pagination"]["total"], 1)

    def test_analytics_endpoint(self):
        self.submit()
        response = self.client.get(reverse("bulk-order-analytics"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Analytics retrieved successfully")
        self.assertEqual(response.data["data"]["totalOrders"], 1)
        self.assertEqual(response.data["data"]["totalQuantity"], 75)
