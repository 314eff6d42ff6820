from datetime import datetime, timezone

from src.storefront_core.models import OrderStatus, RawRecord
from src.storefront_core.normalizers import (
    normalize_order,
    normalize_product,
    settle_order,
    to_number,
    to_timestamp,
)


# --- helpers -----------------------------------------------------------------


def make_raw_product(**overrides):
    raw = {
        "_id": "p-1",
        "name": "NextTech X1 Pro Smartphone",
        "price": 29999,
        "originalPrice": 34999,
        "rating": 4.5,
        "numReviews": 1243,
        "stock": 25,
        "brand": "NextTech",
        "images": [{"url": "/img/x1.png"}],
        "features": ["5G", "Dual SIM"],
        "specifications": {"RAM": "8GB", "Weight": "180g"},
    }
    raw.update(overrides)
    return raw


# --- normalize_product --------------------------------------------------------


def test_product_with_only_id_gets_safe_defaults():
    product = normalize_product({"_id": "bare"})

    assert product.id == "bare"
    assert product.name == "Unnamed Product"
    assert product.price == 0
    assert product.original_price is None
    assert product.rating is None
    assert product.num_reviews == 0
    assert product.stock_count == 0
    assert product.in_stock is False
    assert product.brand is None
    assert product.features == []
    assert product.specifications == {}


def test_product_never_raises_on_garbage_input():
    """Wrong types everywhere, and even a non-mapping payload, still normalize."""
    product = normalize_product({
        "_id": 42,
        "name": ["not", "a", "string"],
        "price": "abc",
        "originalPrice": {"nested": True},
        "rating": "excellent",
        "numReviews": None,
        "stock": "lots",
        "features": "5G",
        "specifications": "RAM: 8GB",
    })

    assert product.id == "42"
    assert product.name == "Unnamed Product"
    assert product.price == 0
    assert product.original_price is None
    assert product.rating is None
    assert product.num_reviews == 0
    assert product.features == ["5G"]
    assert product.specifications == {}

    assert normalize_product(None).price == 0
    assert normalize_product(["x"]).features == []


def test_product_maps_all_fields_from_real_shape():
    product = normalize_product(make_raw_product())

    assert product.id == "p-1"
    assert product.price == 29999
    assert product.original_price == 34999
    assert product.rating == 4.5
    assert product.num_reviews == 1243
    assert product.stock_count == 25
    assert product.in_stock is True
    assert product.brand == "NextTech"
    assert product.images == ["/img/x1.png"]
    assert product.features == ["5G", "Dual SIM"]
    assert list(product.specifications) == ["RAM", "Weight"]


def test_product_resolves_legacy_aliases():
    product = normalize_product({
        "productId": "sku-9",
        "title": "Desk Lamp",
        "salePrice": "1,299.50",
        "vendor": "Lumo",
        "countInStock": "3",
        "reviewCount": 7,
        "specs": [{"label": "Wattage", "value": 9}, {"name": "Dimmable", "value": True}],
    })

    assert product.id == "sku-9"
    assert product.name == "Desk Lamp"
    assert product.price == 1299.5
    assert product.brand == "Lumo"
    assert product.stock_count == 3
    assert product.num_reviews == 7
    assert product.specifications == {"Wattage": 9, "Dimmable": True}


def test_in_stock_prefers_explicit_flag_over_count():
    assert normalize_product({"_id": "a", "inStock": False, "stock": 10}).in_stock is False
    assert normalize_product({"_id": "b", "inStock": True, "stock": 0}).in_stock is True


def test_in_stock_uses_first_non_null_count_field():
    # countInStock is present (0), so stock is never consulted
    product = normalize_product({"_id": "a", "countInStock": 0, "stock": 5})
    assert product.stock_count == 0
    assert product.in_stock is False

    assert normalize_product({"_id": "b", "countInStock": None, "stock": 5}).in_stock is True


def test_negative_prices_and_out_of_range_rating_are_coerced():
    product = normalize_product({"_id": "a", "price": -10, "originalPrice": -5, "rating": 7})

    assert product.price == 0
    assert product.original_price is None
    assert product.rating == 5


def test_features_are_deduplicated_in_order():
    product = normalize_product({"_id": "a", "features": ["NFC", "5G", "NFC", "", None, "OLED"]})
    assert product.features == ["NFC", "5G", "OLED"]


def test_falsy_spec_values_are_kept_verbatim():
    product = normalize_product({
        "_id": "a",
        "specifications": {"Waterproof": False, "Ports": 0, "Notes": ""},
    })
    assert product.specifications == {"Waterproof": False, "Ports": 0, "Notes": ""}


def test_default_id_used_when_payload_has_none():
    assert normalize_product({"name": "x"}, default_id="looked-up").id == "looked-up"
    assert normalize_product({"_id": "own"}, default_id="looked-up").id == "own"


def test_normalize_product_is_idempotent():
    raw = make_raw_product()
    assert normalize_product(raw) == normalize_product(raw)
    assert normalize_product(raw).model_dump() == normalize_product(raw).model_dump()


def test_discount_helpers():
    product = normalize_product({"_id": "a", "price": 8000, "originalPrice": 10000})
    assert product.has_discount is True
    assert product.discount_fraction == 0.2
    assert product.discount_percent == 20

    no_discount = normalize_product({"_id": "b", "price": 100, "originalPrice": 80})
    assert no_discount.has_discount is False


# --- normalize_order ----------------------------------------------------------


def test_order_from_api_shape():
    order = normalize_order({
        "_id": "ord-1",
        "createdAt": "2024-05-01T10:00:00.000Z",
        "totalPrice": "260.20",
        "status": "Shipped",
        "orderItems": [
            {"product": {"name": "Mouse", "images": [{"url": "/m.png"}]}, "quantity": 2, "price": 100},
            {"product": "64f0c0ffee", "name": "Pad", "quantity": "1", "price": 50},
        ],
        "shippingAddress": {"street": "1 Main St", "city": "Pune", "zipCode": "411001"},
        "paymentMethod": "upi",
        "isPaid": True,
        "paidAt": "2024-05-01T10:05:00Z",
    })

    assert order.id == "ord-1"
    assert order.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert order.total_price == 260.2
    assert order.status is OrderStatus.SHIPPED
    assert [item.name for item in order.items] == ["Mouse", "Pad"]
    assert order.items[0].image == "/m.png"
    assert order.items[1].image is None
    assert order.items[1].quantity == 1
    assert order.payment_method == "upi"
    assert order.is_paid is True
    assert order.paid_at is not None
    assert order.delivered_at is None


def test_order_missing_everything_gets_defaults():
    order = normalize_order({}, default_id="ord-x")

    assert order.id == "ord-x"
    assert order.created_at.tzinfo is not None
    assert order.total_price == 0
    assert order.status is OrderStatus.PENDING
    assert order.items == []
    assert order.shipping_address.model_dump() == {
        "street": "", "city": "", "state": "", "zip_code": "", "country": "",
    }
    assert order.payment_method == "card"
    assert order.is_paid is False
    assert order.paid_at is None


def test_address_fields_default_independently():
    order = normalize_order({"_id": "o", "shipping_address": {"city": "Delhi", "postalCode": 110001}})

    address = order.shipping_address
    assert address.city == "Delhi"
    assert address.zip_code == "110001"
    assert address.street == ""
    assert address.state == ""
    assert address.country == ""


def test_item_name_and_price_fall_back_to_item_then_product():
    order = normalize_order({
        "_id": "o",
        "items": [
            {"product": {"price": 75}, "name": "Cable", "quantity": 2},
            {"product": None},
            "not-an-item",
        ],
    })

    assert len(order.items) == 2
    assert order.items[0].name == "Cable"
    assert order.items[0].price == 75
    assert order.items[1].name == "Item"
    assert order.items[1].price == 0
    assert order.items[1].quantity == 1


def test_unknown_status_becomes_pending():
    assert normalize_order({"_id": "o", "status": "teleported"}).status is OrderStatus.PENDING
    assert normalize_order({"_id": "o", "status": "canceled"}).status is OrderStatus.CANCELLED


def test_settle_order_marks_paid_at_creation():
    order = normalize_order({
        "_id": "o",
        "createdAt": "2024-01-02T03:04:05Z",
        "deliveredAt": "2024-01-05T00:00:00Z",
    })
    settled = settle_order(order)

    assert settled.is_paid is True
    assert settled.paid_at == order.created_at
    assert settled.delivered_at is None
    # original snapshot untouched
    assert order.is_paid is False


# --- coercion helpers ---------------------------------------------------------


def test_to_number_rejects_bools_and_non_finite():
    assert to_number(True) is None
    assert to_number(float("nan")) is None
    assert to_number(" 12 ") == 12
    assert to_number("") is None


def test_to_timestamp_accepts_epoch_millis_and_rejects_junk():
    assert to_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert to_timestamp("yesterday") is None
    assert to_timestamp(None) is None


def test_raw_record_wrapper_is_unwrapped():
    wrapped = RawRecord(data={"_id": "w", "price": "10"})

    assert normalize_product(wrapped).price == 10
    assert normalize_order(RawRecord(data={"_id": "o"})).id == "o"
