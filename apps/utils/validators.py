import re
from rest_framework import serializers


def validate_phone(value):
    pattern = r"^\+?\d{10,15}$"
    if not re.match(pattern, str(value)):
        raise serializers.ValidationError("Invalid phone number format.")
    return value


def parse_positive_int(value, default):
    """
    Query-string integer with a fallback for missing, non-numeric or < 1 values.
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default
