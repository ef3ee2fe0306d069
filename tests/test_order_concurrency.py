"""Concurrent checkouts and cart writes must never oversell or lose updates."""

import threading

from sqlmodel import Session, select

from bookstore.database import engine
from bookstore.errors import ConflictError, EmptyCartError, InsufficientStockError
from bookstore.models.order import Order
from bookstore.services import cart_service, inventory_service, order_service


def _run_all(calls, expected=(InsufficientStockError, ConflictError)):
    """Run ``fn(session, *args)`` for every call at once, one session per thread.

    Returns one ``(outcome, value)`` per call, in call order. Unexpected
    exceptions are recorded by class name so the test can see them.
    """
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, fn, args):
        with Session(engine) as session:
            barrier.wait()
            try:
                outcomes[index] = ("ok", fn(session, *args))
            except expected as e:
                outcomes[index] = (e.__class__.__name__, None)
            except Exception as e:
                outcomes[index] = (f"unexpected {e.__class__.__name__}", None)

    threads = [
        threading.Thread(target=worker, args=(i, fn, args))
        for i, (fn, args) in enumerate(calls)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    return outcomes


def _checkout(session, user_id):
    return order_service.create_order(session, user_id, f"Street {user_id}").id


def test_concurrent_checkouts_never_exceed_stock(session, make_user, make_book):
    stock = 3
    book = make_book(stock=stock)
    buyers = [make_user(f"buyer{i}") for i in range(8)]
    for buyer in buyers:
        cart_service.add(session, buyer.id, book.id, 1)
    buyer_ids = [b.id for b in buyers]

    outcomes = _run_all([(_checkout, (uid,)) for uid in buyer_ids])

    assert all(status in ("ok", "InsufficientStockError", "ConflictError") for status, _ in outcomes)
    succeeded = [uid for uid, (status, _) in zip(buyer_ids, outcomes) if status == "ok"]
    assert 1 <= len(succeeded) <= stock

    remaining = inventory_service.get_stock(session, book.id)
    assert remaining == stock - len(succeeded)
    assert remaining >= 0

    orders = session.exec(select(Order)).all()
    assert sorted(o.user_id for o in orders) == sorted(succeeded)

    # losers keep their carts untouched
    for uid, (status, _) in zip(buyer_ids, outcomes):
        expected = 0 if status == "ok" else 1
        assert len(cart_service.list_items(session, uid)) == expected


def test_concurrent_checkouts_with_larger_quantities(session, make_user, make_book):
    book = make_book(stock=5)
    buyers = [make_user(f"bulk{i}") for i in range(4)]
    for buyer in buyers:
        cart_service.add(session, buyer.id, book.id, 2)

    outcomes = _run_all([(_checkout, (b.id,)) for b in buyers])

    succeeded = [status for status, _ in outcomes if status == "ok"]
    reserved = 2 * len(succeeded)
    assert reserved <= 5
    assert inventory_service.get_stock(session, book.id) == 5 - reserved


def test_same_cart_checked_out_concurrently_yields_one_order(session, user, make_book):
    book = make_book(stock=100)
    cart_service.add(session, user.id, book.id, 3)

    outcomes = _run_all(
        [(_checkout, (user.id,))] * 6,
        expected=(EmptyCartError, ConflictError),
    )

    statuses = [status for status, _ in outcomes]
    assert statuses.count("ok") == 1
    assert set(statuses) <= {"ok", "EmptyCartError", "ConflictError"}

    orders = session.exec(select(Order)).all()
    assert len(orders) == 1
    assert inventory_service.get_stock(session, book.id) == 97
    assert cart_service.list_items(session, user.id) == []


def test_concurrent_adds_of_same_book_all_count(session, user, make_book):
    book = make_book()

    outcomes = _run_all(
        [(cart_service.add, (user.id, book.id, 1))] * 6,
        expected=(ConflictError,),
    )

    statuses = [status for status, _ in outcomes]
    assert set(statuses) <= {"ok", "ConflictError"}
    assert statuses.count("ok") >= 1

    items = cart_service.list_items(session, user.id)
    assert len(items) == 1
    assert items[0].quantity == statuses.count("ok")
