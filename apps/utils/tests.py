# apps/utils/tests.py
import importlib
import json
import logging

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from .exceptions import (
    BusinessLogicException,
    DuplicateRequest,
    InvalidStatusTransition,
    ResourceNotFound,
    _first_message,
    custom_exception_handler,
)
from .logging import JSONFormatter
from .pagination import PageRequest
from .validators import parse_positive_int, validate_phone


class ValidatorTests(SimpleTestCase):
    def test_phone_validator(self):
        self.assertEqual(validate_phone("+919876543210"), "+919876543210")
        with self.assertRaises(ValidationError):
            validate_phone("123")  # Invalid

    def test_parse_positive_int_falls_back(self):
        self.assertEqual(parse_positive_int("3", 1), 3)
        self.assertEqual(parse_positive_int(None, 10), 10)
        self.assertEqual(parse_positive_int("abc", 10), 10)
        self.assertEqual(parse_positive_int("0", 10), 10)
        self.assertEqual(parse_positive_int("-4", 10), 10)


@override_settings(BULK_ORDER_PAGE_SIZE=10, BULK_ORDER_MAX_PAGE_SIZE=100)
class PageRequestTests(SimpleTestCase):
    def test_defaults(self):
        page = PageRequest()
        self.assertEqual((page.page, page.limit, page.offset), (1, 10, 0))

    def test_limit_is_capped(self):
        self.assertEqual(PageRequest(1, 5000).limit, 100)

    def test_summary_rounds_pages_up(self):
        page = PageRequest(2, 10)
        self.assertEqual(page.offset, 10)
        self.assertEqual(page.summary(15), {"page": 2, "limit": 10, "total": 15, "pages": 2})
        self.assertEqual(page.summary(0)["pages"], 0)

    def test_slice(self):
        self.assertEqual(PageRequest(2, 3).slice(list(range(10))), [3, 4, 5])

    def test_page_past_end_is_empty(self):
        page = PageRequest(5, 10)
        self.assertEqual(page.slice(list(range(15))), [])
        self.assertEqual(page.summary(15)["pages"], 2)


class ExceptionHandlerTests(SimpleTestCase):
    def test_business_error_envelope(self):
        response = custom_exception_handler(BusinessLogicException("Invalid buyer type", code="x"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Invalid buyer type")
        self.assertFalse(response.data["success"])
        self.assertTrue(response.data["error"])

    def test_subclass_status_codes(self):
        self.assertEqual(custom_exception_handler(ResourceNotFound(), {}).status_code, 404)
        self.assertEqual(custom_exception_handler(DuplicateRequest(), {}).status_code, 409)
        self.assertEqual(custom_exception_handler(InvalidStatusTransition("no"), {}).status_code, 409)

    def test_validation_error_keeps_field_errors(self):
        exc = ValidationError({"email": ["Enter a valid email address."]})
        response = custom_exception_handler(exc, {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "email: Enter a valid email address.")
        self.assertIn("email", response.data["errors"])

    def test_unhandled_error_is_500(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["message"], "Internal Server Error")

    def test_first_message_skips_empty(self):
        self.assertEqual(_first_message([{}, {"quantity": ["bad"]}]), "quantity: bad")


class HealthCheckTests(TestCase):
    def test_health_ok(self):
        response = self.client.get("/api/v1/utils/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["components"], {"db": "ok", "cache": "ok"})


class ServerInfoTests(APITestCase):
    def test_info_is_public(self):
        response = self.client.get("/api/v1/utils/info/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["data"]["version"], "1.0.0")


class JSONFormatterTests(SimpleTestCase):
    def test_redacts_and_keeps_context(self):
        record = logging.LogRecord(
            "apps.test", logging.INFO, __file__, 1,
            {"email": "a@example.com", "password": "hunter2", "nested": [{"token": "t"}]},
            None, None,
        )
        record.bulk_order_id = "42"

        line = json.loads(JSONFormatter().format(record))
        self.assertEqual(line["lvl"], "INFO")
        self.assertEqual(line["bulk_order_id"], "42")
        self.assertIn("***REDACTED***", line["msg"])
        self.assertNotIn("hunter2", line["msg"])
        self.assertNotIn("'t'", line["msg"])


class PackageLayoutTests(SimpleTestCase):
    def test_apps_is_a_regular_package(self):
        # Test modules must import under their app label path for model registration
        package = importlib.import_module("apps")
        self.assertTrue(package.__file__.endswith("__init__.py"))
        self.assertEqual(__name__, "apps.utils.tests")
