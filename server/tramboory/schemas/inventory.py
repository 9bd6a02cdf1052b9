"""Inventory schemas: products, stock operations, movements and alerts."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from ..models.inventory import AlertPriority, AlertType, BatchStatus, MovementType, ProductStatus
from .common import CamelModel, clean_tags


class AlternativeUnit(CamelModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=50)
    # 1 ``code`` equals ``conversion_factor`` base units
    conversion_factor: float = Field(..., gt=0)


class StockLevels(CamelModel):
    minimum: float = Field(0, ge=0)
    reorder_point: float = Field(0, ge=0)
    maximum: float = Field(100, ge=0)


class ProductCreate(CamelModel):
    """Request schema for creating a product."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    sku: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    base_unit: str = Field(..., min_length=1, max_length=20)
    alternative_units: List[AlternativeUnit] = Field(default_factory=list)
    stock_levels: StockLevels = Field(default_factory=StockLevels)
    cost_price: float = Field(0, ge=0)
    unit_price: float = Field(0, ge=0)
    is_perishable: bool = False
    supplier_id: Optional[UUID] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        return clean_tags(v)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    alternative_units: Optional[List[AlternativeUnit]] = None
    stock_levels: Optional[StockLevels] = None
    cost_price: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    is_perishable: Optional[bool] = None
    supplier_id: Optional[UUID] = None
    status: Optional[ProductStatus] = None
    tags: Optional[List[str]] = None


class ProductOut(CamelModel):
    id: UUID
    product_id: str
    name: str
    description: Optional[str] = None
    sku: str
    category: str
    base_unit: str
    alternative_units: List[AlternativeUnit]
    stock_levels: StockLevels
    cost_price: float
    unit_price: float
    is_perishable: bool
    supplier_id: Optional[UUID] = None
    status: ProductStatus
    is_active: bool
    tags: List[str]
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BatchOut(CamelModel):
    batch_id: str
    quantity: float
    reserved_quantity: float
    unit: str
    cost_per_unit: float
    expiry_date: Optional[date] = None
    received_date: datetime
    status: BatchStatus


class InventoryTotals(CamelModel):
    available: float
    reserved: float
    quarantine: float
    unit: str


class InventoryOut(CamelModel):
    id: UUID
    product_id: UUID
    product_code: Optional[str] = None
    product_name: Optional[str] = None
    location_id: str
    totals: InventoryTotals
    batches: List[BatchOut]
    last_updated_by: Optional[str] = None
    updated_at: datetime


class StockAdjustRequest(CamelModel):
    """
    Stock adjustment.

    SALIDA and MERMA always remove stock and ENTRADA always adds it;
    AJUSTE uses the sign of ``quantity`` as given.
    """

    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1, max_length=100)
    type: MovementType
    quantity: float
    unit: str = Field(..., min_length=1, max_length=20)
    reason: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    batch_id: Optional[str] = Field(None, max_length=60)
    cost_per_unit: Optional[float] = Field(None, gt=0)
    expiry_date: Optional[date] = None

    @field_validator("quantity")
    @classmethod
    def non_zero(cls, v: float) -> float:
        if v == 0:
            raise ValueError("La cantidad debe ser distinta de cero")
        return v

    @property
    def signed_quantity(self) -> float:
        if self.type in (MovementType.SALIDA, MovementType.MERMA):
            return -abs(self.quantity)
        if self.type in (MovementType.ENTRADA, MovementType.TRANSFERENCIA):
            return abs(self.quantity)
        return self.quantity


class StockTransferRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    from_location_id: str = Field(..., min_length=1, max_length=100)
    to_location_id: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    reason: str = Field("Transferencia entre ubicaciones", min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def different_locations(self) -> "StockTransferRequest":
        if self.from_location_id == self.to_location_id:
            raise ValueError("Las ubicaciones de origen y destino deben ser distintas")
        return self


class StockReserveRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    reserved_for: str = Field(..., min_length=1, max_length=200)
    expires_at: Optional[datetime] = None


class StockReleaseRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)


class StockConsumeRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    consumed_for: str = Field(..., min_length=1, max_length=200)
    notes: Optional[str] = Field(None, max_length=2000)


class StockInitiateRequest(CamelModel):
    """Opens the inventory of a product at a location, with an optional first batch."""

    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(0, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    reason: str = Field("Inventario inicial", min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    batch_id: Optional[str] = Field(None, max_length=60)
    cost_per_unit: Optional[float] = Field(None, gt=0)
    expiry_date: Optional[date] = None


class MovementCost(CamelModel):
    unit_cost: float
    total_cost: float
    currency: str


class MovementOut(CamelModel):
    movement_id: str
    type: MovementType
    product_id: UUID
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    quantity: float
    unit: str
    batch_id: Optional[str] = None
    reason: str
    cost: Optional[MovementCost] = None
    performed_by: str
    notes: Optional[str] = None
    metadata: dict = Field(default_factory=dict, validation_alias="extra_data")
    created_at: datetime


class AlertOut(CamelModel):
    alert_id: str
    type: AlertType
    priority: AlertPriority
    product_id: UUID
    location_id: str
    batch_id: Optional[str] = None
    title: str
    message: str
    threshold: Optional[float] = None
    current_value: Optional[float] = None
    expiry_date: Optional[date] = None
    is_active: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None
    created_at: datetime


class ResolveAlertRequest(CamelModel):
    resolution: Optional[str] = Field(None, max_length=1000)
