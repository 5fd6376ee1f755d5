"""
Top-level models import shim for the Bulk Orders app.

Lets callers write `from apps.bulk_orders.models import BulkOrder` while the
models themselves live in separate modules.
"""

from .order import *      # BulkOrder
from .item import *       # BulkOrderItem
from .timeline import *   # BulkOrderTimeline
