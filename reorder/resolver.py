import logging
from typing import Callable, Iterable

from .schemas import IdentifierMatch, Item, ResolutionResult
from .stores import CatalogStore

logger = logging.getLogger(__name__)

# Label printers append one check digit that the stored SKU/UPC does not carry.
# Shorter tokens are never trimmed: dropping a digit from a short id would
# mostly produce false matches.
CHECK_DIGIT_MIN_LENGTH = 7


def _unique_tokens(tokens: Iterable[str]) -> list[str]:
    seen = set()
    unique = []
    for raw in tokens:
        token = str(raw).strip()
        if token and token not in seen:
            seen.add(token)
            unique.append(token)
    return unique


def _index(items: list[Item], keys: Callable[[Item], Iterable[str]]) -> dict[str, Item]:
    # First item wins when two catalog entries share a value.
    index: dict[str, Item] = {}
    for item in items:
        for key in keys(item):
            if key:
                index.setdefault(key, item)
    return index


def _match_tier(
    lookups: dict[str, str],
    finder: Callable[[list[str]], list[Item]],
    keys: Callable[[Item], Iterable[str]],
    tier: str,
    matches: dict[str, IdentifierMatch],
    found: dict[str, Item],
) -> None:
    """
    Runs one lookup tier. `lookups` maps each still-pending token to the value
    searched for; matched tokens are removed from it in place.
    """
    if not lookups:
        return
    index = _index(finder(sorted(set(lookups.values()))), keys)
    for token, value in list(lookups.items()):
        item = index.get(value)
        if item is None:
            continue
        matches[token] = IdentifierMatch(item_id=item.item_id, tier=tier)
        found[item.item_id] = item
        del lookups[token]


def resolve_identifiers(tokens: Iterable[str], catalog: CatalogStore) -> ResolutionResult:
    """
    Resolves scanned or typed tokens to catalog items.

    Tiers, first match wins:
    1. exact item id
    2. exact SKU (system, custom or manufacturer)
    3. exact UPC
    4. tokens longer than 6 characters, minus their last character, against 2 and 3

    Tokens left over are returned as unmatched rather than raising.
    """
    ordered = _unique_tokens(tokens)
    matches: dict[str, IdentifierMatch] = {}
    found: dict[str, Item] = {}

    pending = {token: token for token in ordered}
    _match_tier(pending, catalog.find_by_ids, lambda i: [i.item_id], "id", matches, found)
    _match_tier(pending, catalog.find_by_skus, lambda i: i.sku_ids, "sku", matches, found)
    _match_tier(pending, catalog.find_by_upcs, lambda i: [i.upc], "upc", matches, found)

    trimmed = {
        token: token[:-1] for token in pending if len(token) >= CHECK_DIGIT_MIN_LENGTH
    }
    _match_tier(trimmed, catalog.find_by_skus, lambda i: i.sku_ids, "sku_check_digit", matches, found)
    _match_tier(trimmed, catalog.find_by_upcs, lambda i: [i.upc], "upc_check_digit", matches, found)

    items = []
    seen_ids = set()
    for token in ordered:
        match = matches.get(token)
        if match and match.item_id not in seen_ids:
            seen_ids.add(match.item_id)
            items.append(found[match.item_id])

    unmatched = [token for token in ordered if token not in matches]

    logger.info(f"🔎 Resolved {len(matches)}/{len(ordered)} identifiers to {len(items)} items.")
    if unmatched:
        logger.warning(f"⚠️ {len(unmatched)} identifier(s) not found: {', '.join(unmatched)}")

    return ResolutionResult(items=items, matches=matches, unmatched=unmatched)
