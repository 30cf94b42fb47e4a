"""API routes for the café backend.

Thin HTTP layer over the delivery, cart and session services. Service
errors (``InvalidLocation``, ``NotFound``, ...) propagate to the exception
handlers registered in ``cafe.main``.

The caller is identified by the bearer token, which doubles as the session
id written by the auth service at login.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from cafe.config import get_settings
from cafe.models import (
    CartItemInput,
    CartLine,
    CartSummary,
    CartValidation,
    DistanceQuote,
    Forbidden,
    GeoPoint,
    GPSReading,
    LandmarkDistance,
    LocationAdjustment,
    LocationAssessment,
    LocationSuggestion,
    MigrationResult,
    SessionEntry,
    UserSession,
)
from cafe.services import (
    CacheService,
    CacheSessionRegistry,
    CartService,
    DeliveryPricer,
    DeliverySettingsProvider,
    HttpMenuCatalog,
    InMemoryMenuCatalog,
    LocationValidator,
    MenuCatalog,
    SessionRegistry,
    create_cache_service,
    quote_from_store,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ADMIN_ROLES = {"admin", "super_admin"}


# Request models
class LocationRequest(BaseModel):
    """Customer coordinates as reported by the device."""
    latitude: float = Field(..., description="Latitude coordinate")
    longitude: float = Field(..., description="Longitude coordinate")
    accuracy: Optional[float] = Field(None, ge=0, description="GPS accuracy in meters")
    address: Optional[str] = Field(None, max_length=200, description="Additional address information")

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class AssessLocationRequest(LocationRequest):
    force: bool = Field(False, description="Accept an inaccurate GPS fix")


class QuoteRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    origin_latitude: Optional[float] = Field(None, ge=-90, le=90, description="Defaults to the store")
    origin_longitude: Optional[float] = Field(None, ge=-180, le=180, description="Defaults to the store")


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., description="New quantity; 0 or less removes the line")
    notes: Optional[str] = None


class CountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str
    error: Optional[str] = None


class SessionListResponse(BaseModel):
    sessions: list[SessionEntry]


class OnlineUsersResponse(BaseModel):
    users: list[UserSession]


# Service instances
_cache_service: CacheService | None = None
_menu_catalog: MenuCatalog | None = None
_session_registry: SessionRegistry | None = None
_cart_service: CartService | None = None
_location_validator: LocationValidator | None = None
_delivery_pricer: DeliveryPricer | None = None
_delivery_settings: DeliverySettingsProvider | None = None


def get_cache_service() -> CacheService:
    global _cache_service
    if _cache_service is None:
        settings = get_settings()
        _cache_service = create_cache_service(
            settings.redis_url, default_ttl=settings.setting_cache_ttl_seconds
        )
    return _cache_service


def get_menu_catalog() -> MenuCatalog:
    global _menu_catalog
    if _menu_catalog is None:
        settings = get_settings()
        if settings.menu_service_url:
            _menu_catalog = HttpMenuCatalog(settings.menu_service_url, timeout=settings.menu_service_timeout)
        else:
            logger.warning("[MENU] No menu service URL configured, using an empty in-memory catalog")
            _menu_catalog = InMemoryMenuCatalog()
    return _menu_catalog


def get_session_registry() -> SessionRegistry:
    global _session_registry
    if _session_registry is None:
        _session_registry = CacheSessionRegistry(
            get_cache_service(), ttl_seconds=get_settings().session_ttl_seconds
        )
    return _session_registry


def get_cart_service() -> CartService:
    global _cart_service
    if _cart_service is None:
        _cart_service = CartService(
            get_cache_service(), get_menu_catalog(), ttl_seconds=get_settings().cart_ttl_seconds
        )
    return _cart_service


def get_location_validator() -> LocationValidator:
    global _location_validator
    if _location_validator is None:
        _location_validator = LocationValidator()
    return _location_validator


def get_delivery_pricer() -> DeliveryPricer:
    global _delivery_pricer
    if _delivery_pricer is None:
        _delivery_pricer = DeliveryPricer()
    return _delivery_pricer


def get_delivery_settings() -> DeliverySettingsProvider:
    global _delivery_settings
    if _delivery_settings is None:
        settings = get_settings()
        _delivery_settings = DeliverySettingsProvider(
            get_cache_service(),
            GeoPoint(latitude=settings.store_latitude, longitude=settings.store_longitude),
        )
    return _delivery_settings


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        return token or None
    return None


async def get_current_session(
    authorization: Optional[str] = Header(None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> UserSession:
    token = bearer_token(authorization)
    session = await registry.get_session(token) if token else None
    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session


def require_role(*roles: str):
    async def checker(session: UserSession = Depends(get_current_session)) -> UserSession:
        if session.role not in roles:
            raise Forbidden(f"Role {session.role!r} may not perform this action")
        return session
    return checker


# Delivery
@router.post("/delivery/validate-location", response_model=GPSReading)
async def validate_location(
    request: LocationRequest,
    validator: LocationValidator = Depends(get_location_validator),
) -> GPSReading:
    """Validate a customer GPS fix against the delivery areas."""
    return validator.validate(request.point, request.accuracy)


@router.post("/delivery/assess-location", response_model=LocationAssessment)
async def assess_location(
    request: AssessLocationRequest,
    validator: LocationValidator = Depends(get_location_validator),
) -> LocationAssessment:
    """Validate a fix, reject imprecise ones unless forced, and adjust for weak GPS."""
    return validator.assess(request.point, request.accuracy, force=request.force)


@router.post("/delivery/quote", response_model=DistanceQuote)
async def quote_delivery(
    request: QuoteRequest,
    pricer: DeliveryPricer = Depends(get_delivery_pricer),
    delivery_settings: DeliverySettingsProvider = Depends(get_delivery_settings),
) -> DistanceQuote:
    """Distance, ETA and fee from the store (or a given origin) to the customer."""
    destination = GeoPoint(latitude=request.latitude, longitude=request.longitude)
    if request.origin_latitude is not None and request.origin_longitude is not None:
        origin = GeoPoint(latitude=request.origin_latitude, longitude=request.origin_longitude)
        return pricer.quote(origin, destination)
    return await quote_from_store(pricer, delivery_settings, destination)


@router.get("/delivery/landmarks", response_model=list[LandmarkDistance])
async def nearby_landmarks(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(2, gt=0),
    validator: LocationValidator = Depends(get_location_validator),
) -> list[LandmarkDistance]:
    point = GeoPoint(latitude=latitude, longitude=longitude)
    return validator.find_nearby_landmarks(point, radius_km)


@router.post("/delivery/suggest-location", response_model=LocationSuggestion)
async def suggest_location(
    request: LocationRequest,
    validator: LocationValidator = Depends(get_location_validator),
) -> LocationSuggestion:
    return validator.suggest_better_location(request.point)


@router.post("/delivery/adjust-location", response_model=LocationAdjustment)
async def adjust_location(
    request: LocationRequest,
    validator: LocationValidator = Depends(get_location_validator),
) -> LocationAdjustment:
    return validator.adjust_location_for_poor_gps(request.point)


# Cart
@router.get("/cart", response_model=Union[list[CartLine], CartSummary])
async def get_cart(
    with_details: bool = Query(False, alias="withDetails"),
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> Union[list[CartLine], CartSummary]:
    if with_details:
        return await cart_service.get_cart_with_details(session.id)
    return await cart_service.get_cart(session.id)


@router.post("/cart", response_model=list[CartLine], status_code=201)
async def add_to_cart(
    item: CartItemInput,
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> list[CartLine]:
    return await cart_service.add_to_cart(session.id, item)


@router.get("/cart/validate", response_model=CartValidation)
async def validate_cart(
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> CartValidation:
    return await cart_service.validate_cart_items(session.id)


@router.get("/cart/count", response_model=CountResponse)
async def cart_item_count(
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> CountResponse:
    return CountResponse(count=await cart_service.get_cart_item_count(session.id))


@router.post("/cart/migrate", response_model=MigrationResult, status_code=201)
async def migrate_cart(
    local_cart: list[CartItemInput],
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> MigrationResult:
    """Merge a cart kept in browser storage into the server cart."""
    return await cart_service.migrate_cart_from_local(session.id, local_cart)


@router.patch("/cart/{item_id}", response_model=list[CartLine])
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> list[CartLine]:
    return await cart_service.update_cart_item(session.id, item_id, request.quantity, request.notes)


@router.delete("/cart/{item_id}", response_model=list[CartLine])
async def remove_from_cart(
    item_id: str,
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> list[CartLine]:
    return await cart_service.remove_from_cart(session.id, item_id)


@router.delete("/cart", response_model=MessageResponse)
async def clear_cart(
    session: UserSession = Depends(get_current_session),
    cart_service: CartService = Depends(get_cart_service),
) -> MessageResponse:
    await cart_service.clear_cart(session.id)
    return MessageResponse(message="Cart cleared successfully")


# Sessions
@router.get("/sessions/count", response_model=CountResponse)
async def online_users_count(
    _: UserSession = Depends(require_role(*ADMIN_ROLES)),
    registry: SessionRegistry = Depends(get_session_registry),
) -> CountResponse:
    return CountResponse(count=await registry.count_online())


@router.get("/sessions/online", response_model=OnlineUsersResponse)
async def online_users(
    _: UserSession = Depends(require_role(*ADMIN_ROLES)),
    registry: SessionRegistry = Depends(get_session_registry),
) -> OnlineUsersResponse:
    return OnlineUsersResponse(users=await registry.list_online())


@router.get("/sessions/mine", response_model=SessionListResponse)
async def my_sessions(
    session: UserSession = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionListResponse:
    return SessionListResponse(sessions=await registry.list_user_sessions(session.id))


@router.delete("/sessions/user/{user_id}", response_model=MessageResponse)
async def invalidate_user_sessions(
    user_id: str,
    _: UserSession = Depends(require_role(*ADMIN_ROLES)),
    registry: SessionRegistry = Depends(get_session_registry),
) -> MessageResponse:
    await registry.invalidate_all_user_sessions(user_id)
    return MessageResponse(message="All sessions for user logged out")


@router.delete("/sessions/{session_id}", response_model=MessageResponse)
async def invalidate_session(
    session_id: str,
    session: UserSession = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
) -> MessageResponse:
    target = await registry.get_session(session_id)
    if target is None or (target.id != session.id and session.role not in ADMIN_ROLES):
        raise Forbidden("You may not manage this session")
    await registry.invalidate_session(session_id)
    return MessageResponse(message="Logged out successfully")


@router.post("/sessions/logout-all", response_model=MessageResponse)
async def logout_all_users(
    _: UserSession = Depends(require_role("super_admin")),
    registry: SessionRegistry = Depends(get_session_registry),
) -> MessageResponse:
    return MessageResponse(**await registry.logout_all_users())
