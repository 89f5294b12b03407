from decimal import Decimal
from unittest.mock import MagicMock
import logging
import pytest

from backend.catalog import repository as catalog_repository
from backend.checkout import pricing
from backend.checkout.schemas import CartItemIn
from backend.utils.errors import PersistenceError, ValidationError

ADDRESS = {"name": "Asha", "phone": "9876543210", "line1": "12 MG Road", "pincode": "560001"}


def _items(*rows):
    return [CartItemIn.model_validate(r) for r in rows]


def _lookup(prices):
    calls = []

    def _fn(ids):
        calls.append(list(ids))
        return {i: prices[i] for i in ids if i in prices}
    _fn.calls = calls
    return _fn


def test_catalog_price_overrides_claimed_price():
    # Arrange: le client annonce 1 roupie, le catalogue dit 2500
    lookup = _lookup({"p1": "2500.00"})
    items = _items({"id": "p1", "name": "Ring", "price": 1, "qty": 2})

    # Act
    order = pricing.price_cart(items, ADDRESS, price_lookup=lookup)

    # Assert
    assert order.items[0].price == Decimal("2500.00")
    assert order.subtotal == Decimal("5000.00")
    assert order.delivery_charge == Decimal("0.00")
    assert order.total == Decimal("5000.00")


def test_below_threshold_adds_flat_delivery():
    order = pricing.price_cart(_items({"id": "p1", "qty": 1}), ADDRESS, price_lookup=_lookup({"p1": 500}))
    assert order.subtotal == Decimal("500.00")
    assert order.delivery_charge == Decimal("99.00")
    assert order.total == Decimal("599.00")


def test_delivery_boundary_at_threshold():
    assert pricing.delivery_charge_for(Decimal("999.00")) == Decimal("0.00")
    assert pricing.delivery_charge_for(Decimal("998.99")) == Decimal("99.00")


def test_single_batched_lookup_with_distinct_ids():
    lookup = _lookup({"a": 10, "b": 20})
    pricing.price_cart(_items({"id": "a"}, {"id": "b"}, {"id": "a", "qty": 3}), ADDRESS, price_lookup=lookup)
    assert lookup.calls == [["a", "b"]]


def test_missing_product_uses_claimed_price_and_warns(caplog):
    caplog.set_level(logging.WARNING, logger="backend.checkout.pricing")
    order = pricing.price_cart(_items({"id": "ghost", "price": "1200", "qty": 1}), ADDRESS, price_lookup=_lookup({}))

    assert order.subtotal == Decimal("1200.00")
    assert order.delivery_charge == Decimal("0.00")
    assert any("ghost" in rec.getMessage() for rec in caplog.records)


def test_missing_product_without_usable_price_is_rejected():
    with pytest.raises(ValidationError) as exc:
        pricing.price_cart(_items({"id": "ghost", "price": "abc"}), ADDRESS, price_lookup=_lookup({}))
    assert "ghost" in exc.value.message


def test_unreadable_catalog_never_trusts_claimed_prices():
    def _down(ids):
        raise RuntimeError("connection reset")

    for lookup in (_down, lambda ids: None):
        with pytest.raises(PersistenceError):
            pricing.price_cart(_items({"id": "p1", "price": 1, "qty": 2}), ADDRESS, price_lookup=lookup)


def test_non_uuid_product_id_fails_whole_cart(monkeypatch):
    # PostgREST rejette tout le filtre in_() si un id n'est pas un UUID
    db = MagicMock()
    db.table.return_value.select.return_value.in_.return_value.execute.side_effect = Exception(
        "22P02 invalid input syntax for type uuid"
    )
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: db)

    assert catalog_repository.get_prices_by_ids(["8d0c3a52-1111-4c1e-9a57-0f6c2a0d9b11", "not-a-uuid"]) is None
    with pytest.raises(PersistenceError):
        pricing.price_cart(
            _items(
                {"id": "8d0c3a52-1111-4c1e-9a57-0f6c2a0d9b11", "price": 1, "qty": 1},
                {"id": "not-a-uuid", "price": 1, "qty": 1},
            ),
            ADDRESS,
        )


def test_empty_cart_rejected_before_lookup():
    lookup = _lookup({})
    with pytest.raises(ValidationError) as exc:
        pricing.price_cart([], ADDRESS, price_lookup=lookup)
    assert exc.value.message == "Panier vide"
    assert lookup.calls == []


@pytest.mark.parametrize("missing", ["name", "phone", "line1", "pincode"])
def test_incomplete_address_rejected(missing):
    address = {**ADDRESS, missing: "  "}
    lookup = _lookup({"p1": 10})
    with pytest.raises(ValidationError) as exc:
        pricing.price_cart(_items({"id": "p1"}), address, price_lookup=lookup)
    assert exc.value.message == "Adresse incomplète"
    assert lookup.calls == []


@pytest.mark.parametrize("raw,expected", [
    (None, 1), ("abc", 1), (0, 1), (-4, 1), ("2.7", 2), (3, 3), (True, 1),
])
def test_coerce_quantity(raw, expected):
    assert pricing.coerce_quantity(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("10", Decimal("10.00")),
    (19.999, Decimal("20.00")),
    ("0.005", Decimal("0.01")),
    ("-1", None),
    ("NaN", None),
    ("Infinity", None),
    ("", None),
    (None, None),
])
def test_to_money(raw, expected):
    assert pricing.to_money(raw) == expected


def test_quantity_alias_and_bad_qty_in_schema():
    item = CartItemIn.model_validate({"id": "p1", "quantity": "0", "thumb": "x.jpg", "extra": 1})
    assert item.qty == 1
    item = CartItemIn.model_validate({"id": "p1", "qty": "4"})
    assert item.qty == 4


def test_validated_order_is_frozen():
    order = pricing.price_cart(_items({"id": "p1"}), ADDRESS, price_lookup=_lookup({"p1": 10}))
    with pytest.raises(Exception):
        order.total = Decimal("0")
    dumped = order.model_dump(mode="json")
    assert dumped["total"] == "109.00"
    assert "thumb" not in dumped["items"][0]


@pytest.mark.parametrize("product,price,qty,subtotal,delivery,total", [
    ("p1", 500, 2, "1000.00", "0.00", "1000.00"),
    ("p2", 300, 1, "300.00", "99.00", "399.00"),
])
def test_reference_carts(product, price, qty, subtotal, delivery, total):
    order = pricing.price_cart(_items({"id": product, "qty": qty}), ADDRESS, price_lookup=_lookup({product: price}))
    assert (order.subtotal, order.delivery_charge, order.total) == (Decimal(subtotal), Decimal(delivery), Decimal(total))
