import logging

from .models import Product

logger = logging.getLogger(__name__)


class ProductLookupService:
    """
    Read-only catalog access for other apps.
    """

    @staticmethod
    def find_missing(product_ids) -> list:
        """
        Return the ids (in request order, de-duplicated) that do not resolve to a Product.
        """
        unique_ids = list(dict.fromkeys(product_ids))
        found = Product.objects.in_bulk(unique_ids)
        found_keys = {str(pk) for pk in found}
        missing = [pid for pid in unique_ids if str(pid) not in found_keys]
        if missing:
            logger.info("Catalog lookup: %d of %d product ids unresolved", len(missing), len(unique_ids))
        return missing
