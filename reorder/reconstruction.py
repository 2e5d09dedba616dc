from datetime import datetime

from .schemas import InventoryChangeEvent, SaleEvent, StockHistory
from .utils import days_between


def reconstruct_stock(
    events: list[InventoryChangeEvent], current_qty: int, as_of: datetime
) -> StockHistory:
    """
    Replays one item's inventory log to recover its stock history.

    The store never records an opening balance, so it is solved for:
    current_qty = initial_stock + sum(all deltas). A negative solution is
    kept as-is; the live quantity is trusted over the log.

    Out-of-stock time is any stretch where the running stock sat at or below
    zero, including the open stretch from the last event up to `as_of`.

    `events` must already be in ascending timestamp order.
    """
    if not events:
        return StockHistory(initial_stock=current_qty)

    first_event_at = events[0].timestamp
    initial_stock = current_qty - sum(e.quantity_delta for e in events)

    stock = initial_stock
    out_of_stock_days = 0.0
    last_event_at = first_event_at
    was_out_of_stock = initial_stock <= 0
    sales = []

    for event in events:
        if was_out_of_stock:
            out_of_stock_days += days_between(last_event_at, event.timestamp)

        stock += event.quantity_delta

        if event.is_sale:
            sales.append(SaleEvent(date=event.timestamp, quantity=abs(event.quantity_delta)))

        was_out_of_stock = stock <= 0
        last_event_at = event.timestamp

    if was_out_of_stock:
        out_of_stock_days += max(0.0, days_between(last_event_at, as_of))

    return StockHistory(
        initial_stock=initial_stock,
        out_of_stock_days=out_of_stock_days,
        sales=sales,
        first_event_at=first_event_at,
        total_days=max(0.0, days_between(first_event_at, as_of)),
    )
