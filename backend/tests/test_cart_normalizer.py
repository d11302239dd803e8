import pytest

from party_cart.schemas.cart_schema import RawCartItem
from party_cart.services.cart_normalizer import coerce_number, coerce_quantity, normalize, normalize_bulk


def test_single_add_always_has_quantity_one():
    item = normalize({"id": "sku1", "title": "IPA 6-pack", "price": "12.99", "quantity": 7})
    assert item is not None
    assert item.quantity == 1
    assert item.price == 12.99
    assert item.product_id == "sku1"


def test_id_falls_back_to_product_id():
    item = normalize({"productId": "gid-42", "name": "Lime", "price": 1})
    assert item.id == "gid-42"


def test_title_and_name_backfill_each_other():
    a = normalize({"id": "a", "title": "Tequila", "price": 30})
    b = normalize({"id": "b", "name": "Ice bag", "price": 4})
    assert (a.title, a.name) == ("Tequila", "Tequila")
    assert (b.title, b.name) == ("Ice bag", "Ice bag")


@pytest.mark.parametrize(
    "raw",
    [
        {"id": "", "price": 10},
        {"price": 10},
        {"id": "sku2", "price": 0},
        {"id": "sku2", "price": -5},
        {"id": "sku2", "price": "free"},
        {"id": "sku2"},
    ],
)
def test_invalid_items_are_rejected(raw):
    assert normalize(raw) is None


def test_malformed_input_is_rejected_not_raised():
    assert normalize({"id": "sku1", "price": 3, "title": {"nested": True}}) is None


def test_accepts_raw_model_and_keeps_metadata():
    raw = RawCartItem(id=101, price=9.5, variant="750ml", eventName="Bach party", category="spirits", image="x.png")
    item = normalize(raw)
    assert item.id == "101"
    assert item.variant == "750ml"
    assert item.event_name == "Bach party"
    assert item.to_storage()["eventName"] == "Bach party"


def test_empty_variant_means_no_variant():
    assert normalize({"id": "a", "price": 1, "variant": ""}).variant is None


def test_numeric_variant_and_labels_are_stringified():
    item = normalize({"id": "a", "price": 1, "variant": 750, "title": 1800, "category": 42})
    assert item is not None
    assert item.variant == "750"
    assert (item.title, item.name) == ("1800", "1800")
    assert item.category == "42"
    assert item.key == ("a", "750")


def test_number_coercion():
    assert coerce_number("3.5") == 3.5
    assert coerce_number(None) == 0
    assert coerce_number("abc") == 0
    assert coerce_number(float("nan")) == 0
    assert coerce_quantity(2.9) == 2
    assert coerce_quantity(-4) == 0
    assert coerce_quantity("x") == 0


def test_bulk_keeps_quantities_and_defaults_to_one():
    items = normalize_bulk(
        [
            {"id": "a", "price": 5, "quantity": 3},
            {"id": "b", "price": 2},
            {"id": "c", "price": 2, "quantity": "lots"},
        ]
    )
    assert [(i.id, i.quantity) for i in items] == [("a", 3), ("b", 1), ("c", 1)]


def test_bulk_drops_invalid_and_folds_duplicates():
    items = normalize_bulk(
        [
            {"id": "a", "price": 5, "quantity": 1},
            {"id": "", "price": 5},
            {"id": "z", "price": 5, "quantity": 0},
            {"id": "a", "price": 5, "quantity": 2},
            {"id": "a", "price": 5, "variant": "large"},
        ]
    )
    assert [(i.id, i.variant, i.quantity) for i in items] == [("a", None, 3), ("a", "large", 1)]
