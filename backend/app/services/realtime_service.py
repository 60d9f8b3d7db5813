"""
Realtime Service
Drops cached reads when the database reports a change.

Supabase streams postgres changes for the watched tables; each change
invalidates the cached queries that read that table.
"""
import logging
from typing import Any, Dict, List, Optional

from supabase import acreate_client, AsyncClient

from app.core.cache import query_cache, QueryCache
from app.core.config import settings

logger = logging.getLogger(__name__)

CHANNEL_NAME = "comanda-changes"

# table -> cached query names that read it
INVALIDATION_MAP: Dict[str, List[str]] = {
    'orders': ['all-orders', 'kitchen-items'],
    'order_items': ['kitchen-items'],
    'table_orders': ['all-orders', 'kitchen-items'],
    'table_order_items': ['all-orders', 'kitchen-items'],
    'categories': ['menu'],
    'products': ['menu'],
    'ready_categories': ['menu'],
    'ready_products': ['menu'],
}


def invalidate_for_table(table: str, cache: Optional[QueryCache] = None) -> List[str]:
    """
    Invalidate every query reading `table`

    Returns:
        The query names invalidated (empty for unwatched tables)
    """
    cache = cache or query_cache
    names = INVALIDATION_MAP.get(table, [])
    for name in names:
        cache.invalidate(name)
    return names


def _table_from_payload(payload: Any) -> Optional[str]:
    """Change payloads carry the table either at the top level or under 'data'"""
    if not isinstance(payload, dict):
        return None
    if payload.get('table'):
        return payload['table']
    data = payload.get('data')
    if isinstance(data, dict):
        return data.get('table')
    return None


def handle_change(payload: Any) -> None:
    table = _table_from_payload(payload)
    if table is None:
        logger.warning(f"Realtime payload without table: {payload!r}")
        return

    names = invalidate_for_table(table)
    logger.debug(f"Realtime change on {table}, invalidated {names}")


class RealtimeListener:
    """Owns the Supabase realtime subscription for the app's lifetime"""

    def __init__(self):
        self.client: Optional[AsyncClient] = None
        self.channel = None

    async def start(self) -> None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            logger.warning("Realtime enabled but Supabase is not configured, skipping")
            return

        self.client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        self.channel = self.client.channel(CHANNEL_NAME)
        for table in INVALIDATION_MAP:
            self.channel.on_postgres_changes('*', schema='public', table=table, callback=handle_change)
        await self.channel.subscribe()
        logger.info(f"Realtime subscribed to {', '.join(INVALIDATION_MAP)}")

    async def stop(self) -> None:
        if self.client is not None and self.channel is not None:
            await self.client.remove_channel(self.channel)
            logger.info("Realtime unsubscribed")
        self.client = None
        self.channel = None


realtime_listener = RealtimeListener()
