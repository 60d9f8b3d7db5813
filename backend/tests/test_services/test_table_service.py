"""
Unit tests for TableService (PDV)

Repositories are replaced by mocks; these tests cover totals, new rounds
once the kitchen started, closing, transfers and partial failures.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.exceptions import NotFoundError, PartialUpdateError, ValidationError
from app.domain.table import CloseTableRequest
from app.services.table_service import TableService, calculate_order_totals


@pytest.fixture
def service():
    service = TableService()
    service.table_repo = MagicMock()
    service.order_repo = MagicMock()
    return service


class TestCalculateOrderTotals:

    def test_service_fee_on_top_of_subtotal(self, make_table_item):
        items = [make_table_item('a', price='25.00', quantity=2), make_table_item('b', price='10.00')]

        totals = calculate_order_totals(items)

        assert totals.subtotal == Decimal('60.00')
        assert totals.service_fee == Decimal('6.00')
        assert totals.total == Decimal('66.00')

    def test_cancelled_items_are_ignored(self, make_table_item):
        items = [make_table_item('a', price='30.00'), make_table_item('b', price='99.00', status='cancelled')]

        totals = calculate_order_totals(items, service_fee_enabled=False)

        assert totals.total == Decimal('30.00')

    def test_percentage_discount_before_fee(self, make_table_item):
        totals = calculate_order_totals([make_table_item(price='100.00')], Decimal('10'), 'percentage')

        assert totals.discount_amount == Decimal('10.00')
        assert totals.service_fee == Decimal('9.00')
        assert totals.total == Decimal('99.00')

    def test_value_discount_and_custom_fee(self, make_table_item):
        totals = calculate_order_totals(
            [make_table_item(price='33.33')], Decimal('3.33'), 'value', True, Decimal('12.5')
        )

        assert totals.service_fee == Decimal('3.75')
        assert totals.total == Decimal('33.75')

    def test_empty_order(self):
        assert calculate_order_totals([]).total == Decimal('0.00')


class TestOpenTable:

    def test_creates_order_and_occupies_table(self, service, make_table, make_table_order):
        service.table_repo.find_by_id.return_value = make_table()
        service.order_repo.create.return_value = make_table_order(order_id=7)

        order = service.open_table('t1', customer_count=3, waiter_name='Bruno')

        assert order.id == 7
        created = service.order_repo.create.call_args.args[0]
        assert created['customer_count'] == 3
        assert created['service_fee_enabled'] is True
        service.table_repo.update.assert_called_once_with('t1', {'status': 'occupied', 'current_order_id': 7})

    def test_failure_after_order_created_is_partial(self, service, make_table, make_table_order):
        service.table_repo.find_by_id.return_value = make_table()
        service.order_repo.create.return_value = make_table_order(order_id=7)
        service.table_repo.update.side_effect = RuntimeError("connection lost")

        with pytest.raises(PartialUpdateError) as exc_info:
            service.open_table('t1')

        assert exc_info.value.completed_steps == ['order created']

    def test_failure_on_first_step_is_not_partial(self, service, make_table):
        service.table_repo.find_by_id.return_value = make_table()
        service.order_repo.create.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            service.open_table('t1')

    def test_unknown_table(self, service):
        service.table_repo.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            service.open_table('nope')


class TestAddItem:

    def test_adds_to_same_order_while_kitchen_has_not_started(self, service, make_table_order, make_table_item):
        service.order_repo.find_by_id.return_value = make_table_order(items=[make_table_item(status='pending')])
        service.order_repo.add_item.return_value = make_table_item('new')

        item, target_id, created_new = service.add_item(1, {'product_name': 'Suco', 'quantity': 1, 'unit_price': Decimal('8')})

        assert (target_id, created_new) == (1, False)
        service.order_repo.create.assert_not_called()
        service.order_repo.add_item.assert_called_once()

    def test_new_round_once_kitchen_started(self, service, make_table_order, make_table_item):
        service.order_repo.find_by_id.return_value = make_table_order(
            items=[make_table_item(status='preparing')], waiter_name='Bruno', customer_count=4
        )
        service.order_repo.create.return_value = make_table_order(order_id=2)
        service.order_repo.add_item.return_value = make_table_item('new', order_id=2)

        _, target_id, created_new = service.add_item(1, {'product_name': 'Suco', 'quantity': 1, 'unit_price': Decimal('8')})

        assert (target_id, created_new) == (2, True)
        carried = service.order_repo.create.call_args.args[0]
        assert carried['waiter_name'] == 'Bruno'
        assert carried['customer_count'] == 4
        service.table_repo.update.assert_called_once_with('t1', {'current_order_id': 2})
        service.order_repo.add_item.assert_called_once_with(2, {'product_name': 'Suco', 'quantity': 1, 'unit_price': Decimal('8')})

    def test_closed_order_rejects_items(self, service, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(status='paid')
        with pytest.raises(ValidationError):
            service.add_item(1, {})

    def test_totals_are_stored(self, service, make_table_order, make_table_item):
        service.order_repo.find_by_id.return_value = make_table_order(items=[make_table_item(price='20.00')])
        service.order_repo.add_item.return_value = make_table_item()

        service.add_item(1, {})

        service.order_repo.update.assert_called_with(1, {'subtotal': Decimal('20.00'), 'total_amount': Decimal('22.00')})


class TestCloseTable:

    def test_close_uses_checkout_total(self, service, make_table_order, make_table_item):
        service.order_repo.find_by_id.return_value = make_table_order(items=[make_table_item(price='50.00')])

        service.close_table(1, CloseTableRequest(payment_method='pix', total_amount=Decimal('48.00')))

        changes = service.order_repo.update.call_args.args[1]
        assert changes['status'] == 'paid'
        assert changes['total_amount'] == Decimal('48.00')
        service.table_repo.update.assert_called_once_with('t1', {'status': 'available', 'current_order_id': None})

    def test_close_recomputes_without_total(self, service, make_table_order, make_table_item):
        service.order_repo.find_by_id.return_value = make_table_order(items=[make_table_item(price='50.00')])

        service.close_table(1, CloseTableRequest(payment_method='card', service_fee_enabled=False))

        assert service.order_repo.update.call_args.args[1]['total_amount'] == Decimal('50.00')

    def test_cannot_close_twice(self, service, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(status='paid')
        with pytest.raises(ValidationError):
            service.close_table(1, CloseTableRequest(payment_method='pix'))

    def test_close_all_puts_discount_on_first_order(self, service, make_table, make_table_order, make_table_item):
        service.table_repo.find_by_id.return_value = make_table(status='occupied')
        orders = {
            1: make_table_order(order_id=1, items=[make_table_item('a', price='40.00')]),
            2: make_table_order(order_id=2, items=[make_table_item('b', price='60.00')]),
        }
        service.order_repo.find_by_id.side_effect = lambda order_id: orders[order_id]

        closed = service.close_all_orders('t1', [1, 2], CloseTableRequest(
            payment_method='money', discount=Decimal('10'), service_fee_enabled=False
        ))

        assert closed == [1, 2]
        updates = {c.args[0]: c.args[1] for c in service.order_repo.update.call_args_list}
        assert updates[1]['discount'] == Decimal('10')
        assert updates[1]['total_amount'] == Decimal('30.00')
        assert updates[2]['discount'] == Decimal('0')
        assert updates[2]['total_amount'] == Decimal('60.00')

    def test_close_all_partial_failure(self, service, make_table, make_table_order):
        service.table_repo.find_by_id.return_value = make_table(status='occupied')
        service.order_repo.find_by_id.side_effect = lambda order_id: make_table_order(order_id=order_id)
        service.order_repo.update.side_effect = [None, RuntimeError("timeout")]

        with pytest.raises(PartialUpdateError) as exc_info:
            service.close_all_orders('t1', [1, 2], CloseTableRequest(payment_method='pix'))

        assert exc_info.value.completed_steps == ['order 1 paid']


class TestTransfer:

    def test_frees_source_without_other_rounds(self, service, make_table, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(order_id=1, table_id='t1')
        service.table_repo.find_by_id.return_value = make_table('t2', number=8)
        service.order_repo.find_open_by_table.return_value = [make_table_order(order_id=1)]

        service.transfer_order(1, 't2')

        calls = [c.args for c in service.table_repo.update.call_args_list]
        assert ('t1', {'status': 'available', 'current_order_id': None}) in calls
        assert ('t2', {'status': 'occupied', 'current_order_id': 1}) in calls
        service.order_repo.update.assert_called_once_with(1, {'table_id': 't2'})

    def test_source_keeps_remaining_round(self, service, make_table, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(order_id=1, table_id='t1')
        service.table_repo.find_by_id.return_value = make_table('t2', number=8)
        service.order_repo.find_open_by_table.return_value = [make_table_order(order_id=3), make_table_order(order_id=1)]

        service.transfer_order(1, 't2')

        assert service.table_repo.update.call_args_list[0].args == ('t1', {'current_order_id': 3})

    def test_target_must_be_available(self, service, make_table, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(order_id=1, table_id='t1')
        service.table_repo.find_by_id.return_value = make_table('t2', status='occupied')

        with pytest.raises(ValidationError):
            service.transfer_order(1, 't2')

    def test_same_table_rejected(self, service, make_table_order):
        service.order_repo.find_by_id.return_value = make_table_order(order_id=1, table_id='t1')
        with pytest.raises(ValidationError):
            service.transfer_order(1, 't1')


class TestItems:

    def test_cancel_item_recomputes_totals(self, service, make_table_item, make_table_order):
        service.order_repo.update_item.return_value = make_table_item(status='cancelled', order_id=4)
        service.order_repo.find_by_id.return_value = make_table_order(order_id=4)

        service.update_item_status('i1', 'cancelled')

        service.order_repo.update.assert_called_once()

    def test_delivered_item_gets_timestamp(self, service, make_table_item):
        service.order_repo.update_item.return_value = make_table_item(status='delivered')

        service.update_item_status('i1', 'delivered')

        changes = service.order_repo.update_item.call_args.args[1]
        assert changes['delivered_at'] is not None
        service.order_repo.update.assert_not_called()

    def test_remove_missing_item(self, service):
        service.order_repo.delete_item.return_value = None
        with pytest.raises(NotFoundError):
            service.remove_item('ghost')
