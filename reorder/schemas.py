from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import settings
from .utils import days_to_months, round_half_up, to_utc


class ReasonCode(str, Enum):
    """Why an item's quantity-on-hand changed, as recorded by the point-of-sale inventory log."""

    SALE = "removeInventoryForTransaction"
    LAYAWAY_SALE = "removeInventoryForLayaway"
    SPECIAL_ORDER_SALE = "removeInventoryForSpecialOrder"
    WORKORDER_SALE = "removeInventoryForWorkorder"

    RECEIVED = "addInventoryForOrder"
    SALE_RETURN = "addInventoryForTransaction"
    LAYAWAY_RETURN = "addInventoryForLayaway"
    SPECIAL_ORDER_RETURN = "addInventoryForSpecialOrder"
    WORKORDER_RETURN = "addInventoryForWorkorder"
    TRANSFER_IN = "addInventoryForTransfer"
    TRANSFER_OUT = "removeInventoryForTransfer"
    VENDOR_RETURN = "removeInventoryForVendorReturn"
    COUNT = "inventoryCount"
    ADJUSTMENT = "manualAdjustment"
    ITEM_CREATED = "itemCreated"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: "str | ReasonCode | None") -> "ReasonCode":
        """Maps a raw log reason to a member; anything unrecognized becomes OTHER."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw or "").strip())
        except ValueError:
            return cls.OTHER

    @property
    def is_sale(self) -> bool:
        return self in SALE_REASONS


# Reasons that represent actual customer sales. Receiving, transfers,
# returns and count corrections must never feed the sales rate.
SALE_REASONS = frozenset(
    {
        ReasonCode.SALE,
        ReasonCode.LAYAWAY_SALE,
        ReasonCode.SPECIAL_ORDER_SALE,
        ReasonCode.WORKORDER_SALE,
    }
)


class Item(BaseModel):
    """
    A catalog entry with its current quantity-on-hand at the primary location.
    Alternate identifiers are only used to resolve scanned or typed tokens.
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    system_sku: str = ""
    custom_sku: str = ""
    manufacturer_sku: str = ""
    upc: str = ""
    description: str = ""
    unit_cost: float = 0.0
    retail_price: float = 0.0
    quantity_on_hand: int = 0

    @field_validator("item_id")
    @classmethod
    def _require_item_id(cls, value: str) -> str:
        value = value.strip()
        if not value or value == "0":
            raise ValueError("item_id must be a non-empty, non-zero identifier")
        return value

    @property
    def sku_ids(self) -> set[str]:
        return {s for s in (self.system_sku, self.custom_sku, self.manufacturer_sku) if s}


class InventoryChangeEvent(BaseModel):
    """One immutable inventory-log fact. Negative deltas are stock leaving the shop."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity_delta: int
    reason: ReasonCode
    timestamp: datetime
    location_id: str

    @field_validator("reason", mode="before")
    @classmethod
    def _close_reason(cls, value):
        return ReasonCode.parse(value)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_utc(value)

    @property
    def is_sale(self) -> bool:
        return self.reason.is_sale and self.quantity_delta < 0


class SaleEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime
    quantity: int = Field(..., gt=0)


class StockHistory(BaseModel):
    """Result of replaying one item's events against its current quantity."""

    initial_stock: int = 0
    out_of_stock_days: float = 0.0
    sales: list[SaleEvent] = Field(default_factory=list)
    first_event_at: datetime | None = None
    total_days: float = 0.0

    @property
    def total_months(self) -> float:
        return days_to_months(self.total_days)

    @property
    def out_of_stock_months(self) -> float:
        return round_half_up(days_to_months(self.out_of_stock_days), 1)

    @property
    def total_sold(self) -> int:
        return sum(s.quantity for s in self.sales)


class DemandEstimate(BaseModel):
    rate: float = 0.0
    # none | sparse | stale | weighted
    method: str = "none"
    recent_sales: int = 0
    middle_sales: int = 0
    older_sales: int = 0
    # units sold 6-12 months back, the hot-seller baseline
    trend_prior_sales: int = 0
    window_months: int = settings.LOOKBACK_MONTHS


class TrendSignal(BaseModel):
    last_rate: float = 0.0
    prior_rate: float = 0.0
    ratio: float = 1.0
    is_hot: bool = False


class ItemAnalysis(BaseModel):
    history: StockHistory
    demand: DemandEstimate
    seasonal_factor: float = 1.0
    trend: TrendSignal = Field(default_factory=TrendSignal)

    @property
    def avg_monthly_sales(self) -> float:
        return self.demand.rate * self.seasonal_factor


class AnalysisConfig(BaseModel):
    """Per-run knobs. Defaults come from settings (and therefore from .env)."""

    model_config = ConfigDict(frozen=True)

    location_id: str = settings.PRIMARY_LOCATION_ID
    order_cycle_months: float = Field(default=settings.ORDER_CYCLE_MONTHS, gt=0)
    # Must at least reach past the fixed recent and middle windows.
    lookback_months: int = Field(default=settings.LOOKBACK_MONTHS, ge=settings.MIN_LOOKBACK_MONTHS)
    stockout_warning_months: float = Field(default=settings.STOCKOUT_WARNING_MONTHS, ge=0)
    max_workers: int = Field(default=settings.MAX_WORKERS, ge=1)


class OrderRecommendation(BaseModel):
    """
    Defines the data contract for one row of the reorder report.
    Serialized with the camelCase aliases the ordering screen expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(..., alias="itemID")
    system_sku: str = Field(default="", alias="systemSku")
    description: str = ""
    manufacturer_sku: str = Field(default="", alias="manufacturerSku")
    upc: str = ""
    current_qty: int = Field(..., alias="currentQty")
    avg_monthly_sales: float = Field(default=0.0, ge=0, alias="avgMonthlySales")
    months_of_stock_left: float = Field(default=0.0, alias="monthsOfStockLeft")
    recommended_order_qty: int = Field(default=0, ge=0, alias="recommendedOrderQty")
    unit_cost: float = Field(default=0.0, alias="defaultCost")
    retail_price: float = Field(default=0.0, alias="retailPrice")
    estimated_order_cost: float = Field(default=0.0, alias="estimatedOrderCost")
    out_of_stock_months: float = Field(default=0.0, ge=0, alias="outOfStockMonths")
    notes: list[str] = Field(default_factory=list)


class AnalysisSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_items: int = Field(default=0, alias="totalItems")
    items_needing_reorder: int = Field(default=0, alias="itemsNeedingReorder")
    urgent_items: int = Field(default=0, alias="urgentItems")
    total_estimated_cost: float = Field(default=0.0, alias="totalEstimatedCost")


class IdentifierMatch(BaseModel):
    item_id: str
    # id | sku | upc | sku_check_digit | upc_check_digit
    tier: str


class ResolutionResult(BaseModel):
    items: list[Item] = Field(default_factory=list)
    matches: dict[str, IdentifierMatch] = Field(default_factory=dict)
    unmatched: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendations: list[OrderRecommendation] = Field(default_factory=list, alias="data")
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    unmatched: list[str] = Field(default_factory=list)
    as_of: datetime = Field(..., alias="asOf")
