import logging
from datetime import datetime

from .schemas import InventoryChangeEvent
from .stores import EventStore, RetrievalError

logger = logging.getLogger(__name__)


def retrieve_events(
    item_ids: list[str],
    store: EventStore,
    location_id: str,
    since: datetime | None = None,
) -> dict[str, list[InventoryChangeEvent]]:
    """
    Loads every inventory-log event for the given items at one location,
    grouped per item and sorted ascending by timestamp. The sort is stable, so
    events sharing a timestamp keep the order the store returned them in.

    Raises RetrievalError if the store fails; a partial history would solve to
    the wrong initial stock, so there is no partial result.
    """
    events_by_item: dict[str, list[InventoryChangeEvent]] = {item_id: [] for item_id in item_ids}
    if not item_ids:
        return events_by_item

    try:
        fetched = list(store.fetch_events(list(item_ids), location_id, since))
    except RetrievalError:
        logger.error(f"❌ Inventory log read failed for {len(item_ids)} items.")
        raise

    stray_count = 0
    for event in fetched:
        if event.item_id not in events_by_item or event.location_id != location_id:
            stray_count += 1
            continue
        events_by_item[event.item_id].append(event)

    if stray_count:
        logger.warning(f"⚠️ Ignored {stray_count} events for items or locations not requested.")

    for events in events_by_item.values():
        events.sort(key=lambda e: e.timestamp)

    logger.info(
        f"Found {len(fetched)} inventory log entries across "
        f"{sum(1 for events in events_by_item.values() if events)} items"
    )
    return events_by_item
