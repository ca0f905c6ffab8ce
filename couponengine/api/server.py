"""
FastAPI server for the coupon engine.

Provides coupon CRUD plus discovery and application of coupons for a cart.

Usage:
    python -m couponengine.api.server
    # or
    uvicorn couponengine.api.server:app --reload --port 8000
"""
import os
import traceback
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Type

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dotenv import load_dotenv
load_dotenv()

from couponengine import __version__
from couponengine.api.models import (
    ApplicableCouponsResponse,
    ApplyCouponResponse,
    CartRequest,
    HealthResponse,
    MessageResponse,
)
from couponengine.core.config import EngineConfig, get_config
from couponengine.core.errors import (
    BackendUnavailable,
    CouponAlreadyExists,
    CouponEngineError,
    CouponExpired,
    CouponInactive,
    CouponNotApplicable,
    CouponNotFound,
    UnknownCouponType,
    UsageLimitExceeded,
)
from couponengine.core.models import Coupon, CouponUpdate
from couponengine.core.preload import seed_coupons
from couponengine.core.service import CouponService
from couponengine.data.backends import create_backend
from couponengine.data.coupon_store import CouponStore
from couponengine.strategies.registry import create_registry
from couponengine.utils.logger import get_logger

logger = get_logger("api.server")

ERROR_STATUS: Dict[Type[CouponEngineError], int] = {
    CouponNotFound: 404,
    CouponAlreadyExists: 409,
    CouponInactive: 400,
    CouponExpired: 400,
    UsageLimitExceeded: 400,
    CouponNotApplicable: 400,
    UnknownCouponType: 400,
    BackendUnavailable: 503,
}


def status_for(exc: CouponEngineError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


# Service is built once per process; strategies are shared singletons
_service: Optional[CouponService] = None
_seeded: Optional[int] = None


def build_service(config: EngineConfig) -> CouponService:
    store = CouponStore(create_backend(config))
    return CouponService(store, create_registry(config.enabled_types))


def get_service() -> CouponService:
    global _service
    if _service is None:
        _service = build_service(get_config())
    return _service


def set_service(service: Optional[CouponService]) -> None:
    global _service
    _service = service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect storage and load seed coupons at startup."""
    global _seeded
    config = get_config()
    service = get_service()

    if not service.store.ping():
        logger.warning(f"Storage backend '{config.storage_backend}' is not reachable at startup")
    elif config.seed_file:
        try:
            _seeded = seed_coupons(service.store, config.seed_file)
        except (OSError, ValueError, CouponEngineError) as e:
            logger.error(f"Failed to seed coupons from {config.seed_file}: {e}")

    logger.info(f"Coupon engine ready (backend={config.storage_backend}, types={config.enabled_types})")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Coupon Engine API",
    description="Coupon management, discovery and application for shopping carts",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CouponEngineError)
async def coupon_error_handler(request: Request, exc: CouponEngineError):
    return JSONResponse(
        status_code=status_for(exc),
        content={"error": exc.code, "detail": exc.message},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Coupons that fail validation after a merge (e.g. PUT changing type without conditions)."""
    errors = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"error": "VALIDATION_ERROR", "detail": errors})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return 500."""
    logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
    is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
    detail = str(exc) if is_dev else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "detail": detail},
    )


# API Endpoints

@app.get("/", response_model=HealthResponse)
def root(service: CouponService = Depends(get_service)):
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="online",
        service="Coupon Engine API",
        version=__version__,
        backend=config.storage_backend,
        backend_reachable=service.store.ping(),
        config={"enabled_types": [t.value for t in service.registry.types]},
        seeded=_seeded,
    )


@app.post("/coupons", response_model=Coupon, status_code=201)
def create_coupon(coupon: Coupon, service: CouponService = Depends(get_service)):
    """Create a new coupon. Fails with 409 if the id is taken."""
    return service.create_coupon(coupon)


@app.get("/coupons", response_model=List[Coupon])
def list_coupons(service: CouponService = Depends(get_service)):
    """Retrieve all coupons, including inactive and expired ones."""
    return service.list_coupons()


@app.get("/coupons/{coupon_id}", response_model=Coupon)
def get_coupon(coupon_id: str, service: CouponService = Depends(get_service)):
    return service.get_coupon(coupon_id)


@app.put("/coupons/{coupon_id}", response_model=Coupon)
def update_coupon(coupon_id: str, update: CouponUpdate, service: CouponService = Depends(get_service)):
    """Update a coupon; only the fields present in the body change."""
    return service.update_coupon(coupon_id, update)


@app.delete("/coupons/{coupon_id}", response_model=MessageResponse)
def delete_coupon(coupon_id: str, service: CouponService = Depends(get_service)):
    service.delete_coupon(coupon_id)
    return MessageResponse(message="Coupon deleted successfully")


@app.post("/applicable-coupons", response_model=ApplicableCouponsResponse)
def applicable_coupons(request: CartRequest, service: CouponService = Depends(get_service)):
    """
    All coupons applicable to the cart, largest discount first.

    Equal discounts are ordered by coupon id.
    """
    candidates = service.find_applicable_coupons(request.cart)
    return ApplicableCouponsResponse(applicable_coupons=candidates)


@app.post("/apply-coupon/{coupon_id}", response_model=ApplyCouponResponse)
def apply_coupon(coupon_id: str, request: CartRequest, service: CouponService = Depends(get_service)):
    """Apply one coupon to the cart and return the discounted cart."""
    updated_cart = service.apply_coupon(request.cart, coupon_id)
    return ApplyCouponResponse(updated_cart=updated_cart)


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
