"""
Coupon service: CRUD, discovery of applicable coupons, and application of a
chosen coupon to a cart.

Discovery:   store -> status gate -> group by type -> strategy.is_applicable
             -> merge -> rank (discount desc, coupon id asc)
Application: lock coupon -> load -> status checks -> strategy lookup ->
             re-validate against this cart -> apply once -> used_count += 1 -> save
"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from couponengine.core import gate
from couponengine.core.errors import (
    CouponAlreadyExists,
    CouponEngineError,
    CouponNotApplicable,
    CouponNotFound,
)
from couponengine.core.models import (
    ApplicableCandidate,
    Cart,
    CouponBase,
    CouponType,
    CouponUpdate,
    parse_coupon,
)
from couponengine.data.coupon_store import CouponStore
from couponengine.strategies.registry import StrategyRegistry
from couponengine.utils.logger import get_logger

logger = get_logger("core.service")


def rank_candidates(candidates: List[ApplicableCandidate]) -> List[ApplicableCandidate]:
    """Largest discount first; equal discounts ordered by coupon id."""
    return sorted(candidates, key=lambda candidate: (-candidate.discount, candidate.coupon_id))


class CouponService:
    """
    Orchestrates the coupon store and the strategy registry.

    Example:
        service = CouponService(CouponStore(InMemoryBackend()), create_registry())
        service.create_coupon(coupon)
        candidates = service.find_applicable_coupons(cart)
        updated_cart = service.apply_coupon(cart, candidates[0].coupon_id)
    """

    def __init__(self, store: CouponStore, registry: StrategyRegistry):
        self.store = store
        self.registry = registry

    #
    # CRUD
    #

    def create_coupon(self, coupon: CouponBase) -> CouponBase:
        with self.store.lock(coupon.id):
            if self.store.exists(coupon.id):
                raise CouponAlreadyExists(coupon.id)
            self.store.save(coupon)
        logger.info(f"Created coupon {coupon.id} ({coupon.type})")
        return coupon

    def list_coupons(self) -> List[CouponBase]:
        return self.store.list_all()

    def get_coupon(self, coupon_id: str) -> CouponBase:
        coupon = self.store.get(coupon_id)
        if coupon is None:
            raise CouponNotFound(coupon_id)
        return coupon

    def update_coupon(self, coupon_id: str, update: CouponUpdate) -> CouponBase:
        """
        Merge the set fields of ``update`` onto the stored coupon. The stored
        ``used_count`` and id are always kept.

        Changing ``type`` requires sending matching ``conditions``; the merged
        document is validated as a whole.

        Raises:
            CouponNotFound: no coupon with this id
            pydantic.ValidationError: merged coupon is not well-formed
        """
        with self.store.lock(coupon_id):
            existing = self.get_coupon(coupon_id)
            merged = existing.model_dump()
            merged.update(update.changes())
            coupon = parse_coupon(merged)
            self.store.save(coupon)
        logger.info(f"Updated coupon {coupon_id}")
        return coupon

    def delete_coupon(self, coupon_id: str) -> None:
        with self.store.lock(coupon_id):
            if not self.store.delete(coupon_id):
                raise CouponNotFound(coupon_id)
        logger.info(f"Deleted coupon {coupon_id}")

    #
    # Discovery
    #

    def find_applicable_coupons(self, cart: Cart, now: Optional[datetime] = None) -> List[ApplicableCandidate]:
        """
        Every coupon that currently applies to the cart, best discount first.

        Coupons that do not fit the cart are left out; nothing here raises for
        an individual coupon.
        """
        eligible = gate.filter_eligible(self.store.list_all(), now)

        by_type: Dict[CouponType, List[CouponBase]] = defaultdict(list)
        for coupon in eligible:
            by_type[coupon.coupon_type].append(coupon)

        candidates: List[ApplicableCandidate] = []
        for coupon_type, coupons in by_type.items():
            strategy = self.registry.find(coupon_type)
            if strategy is None:
                logger.warning(f"No strategy registered for '{coupon_type.value}', skipping {len(coupons)} coupon(s)")
                continue
            candidates.extend(strategy.is_applicable(cart, coupons))

        ranked = rank_candidates(candidates)
        logger.debug(f"Cart {cart.id or '-'}: {len(ranked)} applicable of {len(eligible)} eligible coupons")
        return ranked

    #
    # Application
    #

    def apply_coupon(self, cart: Cart, coupon_id: str, now: Optional[datetime] = None) -> Cart:
        """
        Apply one coupon to the cart and record its use.

        The caller's cart is never modified; the discounted cart is returned.
        The coupon lock is held from the status check until the usage count is
        saved, so concurrent applications cannot exceed the usage limit.

        Raises:
            CouponNotFound, CouponInactive, CouponExpired, UsageLimitExceeded,
            UnknownCouponType, CouponNotApplicable, BackendUnavailable
        """
        with self.store.lock(coupon_id):
            try:
                coupon = self.get_coupon(coupon_id)
                gate.check_coupon_status(coupon, now)
                strategy = self.registry.get(coupon.type, coupon.id)
                if not strategy.is_applicable(cart, [coupon]):
                    raise CouponNotApplicable(coupon_id)
            except CouponEngineError as e:
                logger.warning(f"Coupon {coupon_id} rejected for cart {cart.id or '-'}: {e.message}")
                raise

            updated_cart = strategy.apply_discount(cart, coupon)
            self.store.save(coupon.model_copy(update={"used_count": coupon.used_count + 1}))

        logger.info(
            f"Applied coupon {coupon_id} to cart {cart.id or '-'}: "
            f"discount={updated_cart.discounted_amount} sub_total={updated_cart.sub_total}"
        )
        return updated_cart

    @staticmethod
    def calculate_cart_total(cart: Cart) -> int:
        return cart.items_total()
