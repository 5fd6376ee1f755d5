# apps/catalog/tests.py
import uuid
from decimal import Decimal

from django.test import TestCase

from .models import Category, Product
from .serializers import ProductDetailSerializer, ProductSummarySerializer
from .services import ProductLookupService


class CategoryModelTests(TestCase):
    def test_category_slug_auto_generated_and_unique(self):
        c1 = Category.objects.create(name="Men Shirts")
        c2 = Category.objects.create(name="Men Shirts")

        self.assertEqual(c1.slug, "men-shirts")
        self.assertNotEqual(c1.slug, c2.slug)


class ProductLookupTests(TestCase):
    def setUp(self):
        self.product = Product.objects.create(name="Cotton Tee", price=Decimal("199.00"))

    def test_all_found(self):
        self.assertEqual(ProductLookupService.find_missing([self.product.id]), [])

    def test_reports_missing_in_request_order(self):
        ghost_a, ghost_b = uuid.uuid4(), uuid.uuid4()
        missing = ProductLookupService.find_missing([ghost_a, self.product.id, ghost_b, ghost_a])
        self.assertEqual(missing, [ghost_a, ghost_b])

    def test_accepts_string_ids(self):
        self.assertEqual(ProductLookupService.find_missing([str(self.product.id)]), [])


class ProductSerializerTests(TestCase):
    def test_summary_shape(self):
        category = Category.objects.create(name="Tees")
        product = Product.objects.create(
            name="Cotton Tee",
            price=Decimal("199.00"),
            category=category,
            image_url="https://cdn.example.com/tee.png",
            description="Soft",
        )
        data = ProductSummarySerializer(product).data
        self.assertEqual(data["image"], ["https://cdn.example.com/tee.png"])
        self.assertEqual(data["category"], "Tees")
        self.assertNotIn("description", data)
        self.assertEqual(ProductDetailSerializer(product).data["description"], "Soft")

    def test_no_image_no_category(self):
        product = Product.objects.create(name="Plain", price=Decimal("10.00"))
        data = ProductSummarySerializer(product).data
        self.assertEqual(data["image"], [])
        self.assertIsNone(data["category"])
