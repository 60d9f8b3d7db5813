"""
Unit tests for the query cache and realtime invalidation
"""
import threading
from unittest.mock import patch

from app.core.cache import QueryCache
from app.services.realtime_service import handle_change, invalidate_for_table


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestQueryCache:

    def test_loader_called_once_within_ttl(self):
        clock = FakeClock()
        cache = QueryCache(ttl_seconds=4, clock=clock)
        calls = []

        def loader():
            calls.append(1)
            return ['item']

        cache.get_or_load(('kitchen-items', None), loader)
        clock.now = 3.9
        cache.get_or_load(('kitchen-items', None), loader)
        assert len(calls) == 1

        clock.now = 4.5
        cache.get_or_load(('kitchen-items', None), loader)
        assert len(calls) == 2

    def test_invalidate_drops_every_variant(self):
        cache = QueryCache()
        cache.set(('kitchen-items', None), [1])
        cache.set(('kitchen-items', ('ready',)), [2])
        cache.set(('all-orders',), [3])

        assert cache.invalidate('kitchen-items') == 2
        assert cache.get(('all-orders',)) == [3]

    def test_invalidate_while_other_threads_write(self):
        cache = QueryCache()
        errors = []

        def writer(offset):
            try:
                for i in range(2000):
                    cache.set(('kitchen-items', offset + i), i)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n * 10000,)) for n in range(4)]
        for thread in threads:
            thread.start()
        try:
            while any(thread.is_alive() for thread in threads):
                cache.invalidate('kitchen-items')
        except RuntimeError as e:
            errors.append(e)
        for thread in threads:
            thread.join()

        assert errors == []
        cache.invalidate('kitchen-items')
        assert cache.get(('kitchen-items', 0)) is None


class TestRealtimeInvalidation:

    def test_item_change_drops_kitchen_and_orders(self):
        cache = QueryCache()
        cache.set(('kitchen-items', None), [1])
        cache.set(('all-orders',), [2])
        cache.set(('menu', 'menu'), [3])

        names = invalidate_for_table('table_order_items', cache)

        assert set(names) == {'all-orders', 'kitchen-items'}
        assert cache.get(('menu', 'menu')) == [3]
        assert cache.get(('all-orders',)) is None

    def test_unwatched_table(self):
        assert invalidate_for_table('business_hours', QueryCache()) == []

    @patch('app.services.realtime_service.invalidate_for_table')
    def test_payload_shapes(self, mock_invalidate):
        handle_change({'table': 'orders'})
        handle_change({'data': {'table': 'products', 'type': 'UPDATE'}})
        handle_change({'unexpected': True})

        assert [c.args[0] for c in mock_invalidate.call_args_list] == ['orders', 'products']
