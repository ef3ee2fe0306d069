"""Tests for checkout and the order status lifecycle."""

from decimal import Decimal

import pytest
from sqlmodel import Session, select

from bookstore.constants.order_status import OrderStatus
from bookstore.database import engine
from bookstore.errors import (
    BookNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    InvalidInputError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.services import cart_service, inventory_service, order_service
from bookstore.services.order_event_service import list_order_events


def _counts(session):
    orders = session.exec(select(Order)).all()
    items = session.exec(select(OrderItem)).all()
    return len(orders), len(items)


class TestCreateOrder:
    def test_checkout_creates_order_and_clears_cart(self, session, user, make_book):
        book = make_book(title="Emma", price="12.50", stock=2)
        cart_service.add(session, user.id, book.id, 2)

        order = order_service.create_order(session, user.id, "1 Main St")

        assert order.status == OrderStatus.pending.value
        assert order.user_id == user.id
        assert order.shipping_address == "1 Main St"
        assert order.total_amount == Decimal("25.00")
        assert inventory_service.get_stock(session, book.id) == 0
        assert cart_service.list_items(session, user.id) == []

        items = order_service.get_order_items(session, order.id)
        assert len(items) == 1
        assert items[0].book_title == "Emma"
        assert items[0].unit_price == Decimal("12.50")
        assert items[0].quantity == 2

    def test_total_matches_sum_of_lines(self, session, user, make_book):
        a = make_book(price="3.99", stock=10)
        b = make_book(price="15.25", stock=10)
        cart_service.add(session, user.id, a.id, 3)
        cart_service.add(session, user.id, b.id, 1)

        order = order_service.create_order(session, user.id, "Somewhere")
        items = order_service.get_order_items(session, order.id)

        assert order.total_amount == sum(i.unit_price * i.quantity for i in items)
        assert order.total_amount == Decimal("27.22")

    def test_second_checkout_after_stock_runs_out(self, session, make_user, make_book):
        first = make_user("first")
        second = make_user("second")
        book = make_book(stock=2)
        cart_service.add(session, first.id, book.id, 2)
        cart_service.add(session, second.id, book.id, 1)

        order_service.create_order(session, first.id, "A street")

        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_order(session, second.id, "B street")

        assert exc_info.value.book_id == book.id
        assert inventory_service.get_stock(session, book.id) == 0
        assert len(cart_service.list_items(session, second.id)) == 1

    def test_empty_cart_raises(self, session, user):
        with pytest.raises(EmptyCartError):
            order_service.create_order(session, user.id, "Nowhere")

        assert _counts(session) == (0, 0)

    def test_blank_address_rejected(self, session, user, make_book):
        cart_service.add(session, user.id, make_book().id)

        with pytest.raises(InvalidInputError):
            order_service.create_order(session, user.id, "   ")

    def test_failed_line_rolls_back_everything(self, session, user, make_book):
        plenty = make_book(stock=10)
        scarce = make_book(title="Rare", stock=1)
        cart_service.add(session, user.id, plenty.id, 4)
        cart_service.add(session, user.id, scarce.id, 3)

        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_order(session, user.id, "1 Main St")

        assert exc_info.value.title == "Rare"
        assert _counts(session) == (0, 0)
        assert inventory_service.get_stock(session, plenty.id) == 10
        assert inventory_service.get_stock(session, scarce.id) == 1
        quantities = {i.book_id: i.quantity for i in cart_service.list_items(session, user.id)}
        assert quantities == {plenty.id: 4, scarce.id: 3}

    def test_crash_midway_leaves_no_trace(self, session, user, make_book, monkeypatch):
        book = make_book(stock=5)
        cart_service.add(session, user.id, book.id, 2)

        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(order_service, "log_order_event", boom)

        with pytest.raises(RuntimeError):
            order_service.create_order(session, user.id, "1 Main St")

        assert _counts(session) == (0, 0)
        assert inventory_service.get_stock(session, book.id) == 5
        assert [i.quantity for i in cart_service.list_items(session, user.id)] == [2]

    def test_stale_cart_entry_raises_book_not_found(self, session, user, make_book):
        book = make_book(stock=5)
        cart_service.add(session, user.id, book.id, 1)
        # book vanishes behind the cart's back
        session.delete(session.get(Book, book.id))
        session.commit()

        with pytest.raises(BookNotFoundError):
            order_service.create_order(session, user.id, "1 Main St")

    def test_unit_price_is_frozen(self, session, user, make_book):
        book = make_book(price="10.00", stock=5)
        cart_service.add(session, user.id, book.id, 1)
        order = order_service.create_order(session, user.id, "1 Main St")

        fresh = session.get(Book, book.id)
        fresh.price = Decimal("99.00")
        session.add(fresh)
        session.commit()

        items = order_service.get_order_items(session, order.id)
        assert items[0].unit_price == Decimal("10.00")
        assert order_service.get_order(session, order.id).total_amount == Decimal("10.00")

    def test_order_prices_from_current_row_not_cached_object(self, session, user, make_book):
        book = make_book(price="10.00", stock=5)
        cart_service.add(session, user.id, book.id, 1)
        assert book.price == Decimal("10.00")

        with Session(engine) as other:
            fresh = other.get(Book, book.id)
            fresh.price = Decimal("12.00")
            other.add(fresh)
            other.commit()

        order = order_service.create_order(session, user.id, "1 Main St")

        assert order.total_amount == Decimal("12.00")
        assert order_service.get_order_items(session, order.id)[0].unit_price == Decimal("12.00")

    def test_creation_is_logged_on_timeline(self, session, user, make_book):
        cart_service.add(session, user.id, make_book().id)

        order = order_service.create_order(session, user.id, "1 Main St")

        events = list_order_events(session, order.id)
        assert [e.event_type for e in events] == ["order_created"]


@pytest.fixture
def placed_order(session, user, make_book):
    a = make_book(stock=5)
    b = make_book(stock=3)
    cart_service.add(session, user.id, a.id, 2)
    cart_service.add(session, user.id, b.id, 3)
    order = order_service.create_order(session, user.id, "1 Main St")
    return order, a, b


class TestCancelOrder:
    def test_cancel_restores_stock(self, session, placed_order):
        order, a, b = placed_order
        assert inventory_service.get_stock(session, a.id) == 3
        assert inventory_service.get_stock(session, b.id) == 0

        cancelled = order_service.cancel_order(session, order.id)

        assert cancelled.status == OrderStatus.cancelled.value
        assert inventory_service.get_stock(session, a.id) == 5
        assert inventory_service.get_stock(session, b.id) == 3

    def test_cancel_shipped_then_cancel_again(self, session, placed_order):
        order, a, b = placed_order
        order_service.update_status(session, order.id, "processing")
        order_service.update_status(session, order.id, "shipped")

        cancelled = order_service.cancel_order(session, order.id)
        assert cancelled.status == "cancelled"
        assert inventory_service.get_stock(session, a.id) == 5

        with pytest.raises(InvalidTransitionError):
            order_service.cancel_order(session, order.id)

        # no double restock
        assert inventory_service.get_stock(session, a.id) == 5
        assert inventory_service.get_stock(session, b.id) == 3

    def test_cannot_cancel_delivered(self, session, placed_order):
        order, a, _ = placed_order
        for status in ("processing", "shipped", "delivered"):
            order_service.update_status(session, order.id, status)

        with pytest.raises(InvalidTransitionError) as exc_info:
            order_service.cancel_order(session, order.id)

        assert exc_info.value.current == "delivered"
        assert inventory_service.get_stock(session, a.id) == 3

    def test_cancel_by_other_user_is_not_found(self, session, placed_order, make_user):
        order, _, _ = placed_order
        stranger = make_user("stranger")

        with pytest.raises(OrderNotFoundError):
            order_service.cancel_order(session, order.id, user_id=stranger.id)

    def test_cancel_failure_keeps_status(self, session, placed_order, monkeypatch):
        order, a, _ = placed_order

        def boom(*args, **kwargs):
            raise RuntimeError("lost connection")

        monkeypatch.setattr(order_service, "log_order_event", boom)

        with pytest.raises(RuntimeError):
            order_service.cancel_order(session, order.id)

        assert order_service.get_order(session, order.id).status == "pending"
        assert inventory_service.get_stock(session, a.id) == 3


class TestUpdateStatus:
    def test_happy_path(self, session, placed_order):
        order, _, _ = placed_order

        for status in ("processing", "shipped", "delivered"):
            order = order_service.update_status(session, order.id, status)
            assert order.status == status

        events = [e.event_type for e in list_order_events(session, order.id)]
        assert events == [
            "order_created",
            "status_processing",
            "status_shipped",
            "status_delivered",
        ]

    @pytest.mark.parametrize("target", ["shipped", "delivered", "pending"])
    def test_illegal_edges_from_pending(self, session, placed_order, target):
        order, _, _ = placed_order

        with pytest.raises(InvalidTransitionError):
            order_service.update_status(session, order.id, target)

    def test_unknown_status_rejected(self, session, placed_order):
        order, _, _ = placed_order

        with pytest.raises(InvalidTransitionError):
            order_service.update_status(session, order.id, "lost")

    def test_cancelled_via_update_restores_stock(self, session, placed_order):
        order, a, _ = placed_order

        order = order_service.update_status(session, order.id, OrderStatus.cancelled)

        assert order.status == "cancelled"
        assert inventory_service.get_stock(session, a.id) == 5

    def test_terminal_states_stay_terminal(self, session, placed_order):
        order, _, _ = placed_order
        order_service.cancel_order(session, order.id)

        with pytest.raises(InvalidTransitionError):
            order_service.update_status(session, order.id, "processing")

    def test_missing_order(self, session):
        with pytest.raises(OrderNotFoundError):
            order_service.update_status(session, 404, "processing")


class TestQueries:
    def test_user_orders_newest_first(self, session, user, make_book):
        book = make_book(stock=10)
        ids = []
        for _ in range(3):
            cart_service.add(session, user.id, book.id)
            ids.append(order_service.create_order(session, user.id, "x").id)

        assert [o.id for o in order_service.list_user_orders(session, user.id)] == ids[::-1]

    def test_admin_listing_filters_by_status(self, session, user, make_book):
        book = make_book(stock=10)
        for _ in range(3):
            cart_service.add(session, user.id, book.id)
            order_service.create_order(session, user.id, "x")
        first = order_service.list_user_orders(session, user.id)[-1]
        order_service.cancel_order(session, first.id)

        data = order_service.list_orders(session, status="pending", page=1, limit=10)

        assert data["total_items"] == 2
        assert all(o.status == "pending" for o in data["results"])

    def test_order_to_read_shape(self, session, placed_order):
        order, a, b = placed_order

        read = order_service.order_to_read(session, order)

        assert read.id == order.id
        assert [(i.book_id, i.quantity) for i in read.items] == [(a.id, 2), (b.id, 3)]
        assert all(i.line_total == i.unit_price * i.quantity for i in read.items)
        assert read.total_amount == sum(i.line_total for i in read.items)
