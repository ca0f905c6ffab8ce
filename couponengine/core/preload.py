"""
Seed coupons from a JSON file at startup.

File format:
    {"coupons": [{"id": "...", "name": "...", "type": "cart", ...}, ...]}
"""
import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from couponengine.data.coupon_store import CouponStore
from couponengine.core.models import parse_coupon
from couponengine.utils.logger import get_logger

logger = get_logger("core.preload")


def seed_coupons(store: CouponStore, path: Union[str, Path]) -> int:
    """
    Save every valid coupon in the file whose id is not stored yet.

    Coupons already in the store are left alone, so restarting with the same
    seed file keeps their usage counts and any edits made since.

    Returns:
        Number of coupons saved

    Raises:
        ValueError: the file is not a {"coupons": [...]} document
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Seed file {path} not found, nothing to load")
        return 0

    with open(path, 'r') as f:
        data = json.load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("coupons", []), list):
        raise ValueError(f"Seed file {path} must contain an object with a 'coupons' list")

    saved = 0
    skipped = 0
    for index, raw in enumerate(data.get("coupons", [])):
        try:
            coupon = parse_coupon(raw)
        except ValidationError as e:
            logger.error(f"Skipping invalid coupon #{index} in {path}: {e}")
            continue
        with store.lock(coupon.id):
            if store.exists(coupon.id):
                skipped += 1
                continue
            store.save(coupon)
        saved += 1

    logger.info(f"Seeded {saved} coupon(s) from {path} ({skipped} already stored)")
    return saved
