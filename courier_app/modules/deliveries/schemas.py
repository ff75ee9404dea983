# courier_app/modules/deliveries/schemas.py
from pydantic import Field, field_validator, model_validator
from typing import Dict, List, Optional, Tuple
from datetime import datetime
from enum import Enum

from courier_app.core.auth.schemas import Courier
from courier_app.shared.schemas.common import CatalogRef, Pagination, WireModel

UNNAMED_PRODUCT = "ບໍ່ລະບຸຊື່"
UNKNOWN_CUSTOMER = "ລູກຄ້າ"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)


# Textos mostrados al repartidor
STATUS_LABELS: Dict[DeliveryStatus, str] = {
    DeliveryStatus.PENDING: "ລໍຖ້າ",
    DeliveryStatus.PREPARING: "ກຳລັງກຽມ",
    DeliveryStatus.OUT_FOR_DELIVERY: "ກຳລັງສົ່ງ",
    DeliveryStatus.DELIVERED: "ສົ່ງແລ້ວ",
    DeliveryStatus.CANCELLED: "ຍົກເລີກ",
}


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parsear un timestamp ISO-8601 del backend; None si no es válido"""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


class Customer(WireModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class LineItem(WireModel):
    id: int
    quantity: int
    unit_price: float = Field(..., alias="price")
    notes: Optional[str] = None
    food_menu: Optional[CatalogRef] = None
    beverage_menu: Optional[CatalogRef] = None

    @model_validator(mode="after")
    def check_single_catalog_ref(self):
        if self.food_menu is not None and self.beverage_menu is not None:
            raise ValueError("Un detalle de orden no puede referenciar comida y bebida a la vez")
        return self

    @property
    def product_name(self) -> str:
        if self.food_menu is not None:
            return self.food_menu.name
        if self.beverage_menu is not None:
            return self.beverage_menu.name
        return UNNAMED_PRODUCT

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class Order(WireModel):
    id: int
    order_code: str = Field(..., alias="order_id")
    user_id: Optional[int] = Field(None, alias="User_id")
    created_at: str = Field(..., alias="create_at")
    total_price: float
    customer: Optional[Customer] = Field(None, alias="user")
    line_items: Optional[List[LineItem]] = Field(None, alias="order_details")


class NavigationLinks(WireModel):
    """Enlaces de navegación hacia el cliente, con ruta en coche"""
    apple_maps: str
    google_maps_app: str
    google_maps_web: str

    @classmethod
    def to(cls, latitude: float, longitude: float) -> "NavigationLinks":
        destination = f"{latitude},{longitude}"
        return cls(
            apple_maps=f"http://maps.apple.com/?daddr={destination}&dirflg=d",
            google_maps_app=f"comgooglemaps://?daddr={destination}&directionsmode=driving",
            google_maps_web=f"https://maps.google.com/?daddr={destination}&directionsmode=driving",
        )


class Delivery(WireModel):
    id: int
    order_id: int
    status: DeliveryStatus
    delivery_code: str = Field(..., alias="delivery_id")
    address: Optional[str] = Field(None, alias="delivery_address")
    customer_latitude: Optional[float] = None
    customer_longitude: Optional[float] = None
    location_note: Optional[str] = Field(None, alias="customer_location_note")
    phone: Optional[str] = Field(None, alias="phone_number")
    assigned_courier_id: Optional[int] = Field(None, alias="employee_id")
    fee: Optional[float] = Field(None, alias="delivery_fee")
    estimated_time: Optional[str] = Field(None, alias="estimated_delivery_time")
    actual_delivery_time: Optional[str] = None
    pickup_time: Optional[str] = Field(None, alias="pickup_from_kitchen_time")
    customer_note: Optional[str] = None
    order: Order
    courier: Optional[Courier] = Field(None, alias="employee")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def customer_name(self) -> str:
        if self.order.customer and self.order.customer.full_name:
            return self.order.customer.full_name
        return UNKNOWN_CUSTOMER

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.customer_latitude is None or self.customer_longitude is None:
            return None
        return (self.customer_latitude, self.customer_longitude)

    @property
    def estimated_at(self) -> Optional[datetime]:
        return parse_timestamp(self.estimated_time)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @property
    def directions_urls(self) -> Optional[NavigationLinks]:
        if self.coordinates is None:
            return None
        return NavigationLinks.to(*self.coordinates)

    @property
    def call_url(self) -> Optional[str]:
        """tel:// al teléfono del cliente; si falta, al de la entrega"""
        customer = self.order.customer
        for number in (customer.phone if customer else None, self.phone):
            if number and number.strip():
                return f"tel://{number.strip()}"
        return None


class DeliveryListResponse(WireModel):
    data: List[Delivery]
    pagination: Optional[Pagination] = None


class StatusUpdateRequest(WireModel):
    status: DeliveryStatus
    notes: Optional[str] = None


class StatusCounts(WireModel):
    """Resumen de entregas por estado"""
    preparing: int = 0
    out_for_delivery: int = 0
    delivered: int = 0


class DeliveryLocation(WireModel):
    """Punto de entrega para mostrar en el mapa"""
    id: int
    latitude: float
    longitude: float
    delivery: Delivery
