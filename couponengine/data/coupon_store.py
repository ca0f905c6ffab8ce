"""
Coupon repository over a key-value backend.

Keys follow the pattern:
- coupon:{coupon_id}        -- full coupon document as JSON
- lock:coupon:{coupon_id}   -- short-lived lock around coupon application
"""
import json
from typing import List, Optional

from couponengine.core.errors import UnknownCouponType
from couponengine.core.models import CouponBase, CouponType, normalize_type_tag, parse_coupon
from couponengine.data.backends import KeyValueBackend
from couponengine.utils.logger import get_logger

logger = get_logger("data.coupon_store")

KEY_PREFIX = "coupon:"
_KNOWN_TAGS = {member.value for member in CouponType}


class CouponStore:
    """Reads and writes Coupon documents under coupon:{id}."""

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend

    @staticmethod
    def key(coupon_id: str) -> str:
        return f"{KEY_PREFIX}{coupon_id}"

    def ping(self) -> bool:
        return self.backend.ping()

    def get(self, coupon_id: str) -> Optional[CouponBase]:
        """Load a coupon by id. Returns None on miss."""
        raw = self.backend.get(self.key(coupon_id))
        if raw is None:
            return None
        return self._decode(raw)

    def exists(self, coupon_id: str) -> bool:
        return self.backend.get(self.key(coupon_id)) is not None

    def save(self, coupon: CouponBase) -> CouponBase:
        self.backend.set(self.key(coupon.id), coupon.model_dump_json())
        return coupon

    def delete(self, coupon_id: str) -> bool:
        return self.backend.delete(self.key(coupon_id))

    def list_all(self) -> List[CouponBase]:
        """All stored coupons, ordered by id. Unreadable documents are logged and skipped."""
        coupons = []
        for key in self.backend.scan_keys(KEY_PREFIX):
            raw = self.backend.get(key)
            if raw is None:
                continue  # deleted between scan and read
            try:
                coupons.append(self._decode(raw))
            except (ValueError, UnknownCouponType) as e:
                logger.error(f"Failed to parse coupon for key {key}: {e}")
        coupons.sort(key=lambda coupon: coupon.id)
        return coupons

    def lock(self, coupon_id: str):
        """Exclusive lock for one coupon (context manager)."""
        return self.backend.lock(self.key(coupon_id))

    @staticmethod
    def _decode(raw: str) -> CouponBase:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("coupon document is not a JSON object")
        tag = normalize_type_tag(data.get("type"))
        if tag not in _KNOWN_TAGS:
            raise UnknownCouponType(str(tag), data.get("id"))
        return parse_coupon(data)
