import json

import pytest

from src.integrations.contracts.store import (
    Cart,
    ConsumeItemRequest,
    OrderInfo,
    PaymentTokenRequest,
    StoreItem,
    VirtualItemsResponse,
)
from src.integrations.policy.codec import (
    DeserializeError,
    SchemaMismatchError,
    decode_model,
    encode_model,
    parse_json_object,
)


def test_invalid_json_raises_deserialize_error():
    with pytest.raises(DeserializeError) as exc_info:
        decode_model("{not json", Cart)
    assert exc_info.value.payload == "{not json"


def test_non_object_json_raises_deserialize_error():
    with pytest.raises(DeserializeError):
        parse_json_object("[1, 2, 3]")


def test_missing_required_field_raises_schema_mismatch():
    with pytest.raises(SchemaMismatchError) as exc_info:
        decode_model('{"groups": []}', VirtualItemsResponse)
    assert exc_info.value.payload == {"groups": []}


def test_wrong_field_type_raises_schema_mismatch():
    with pytest.raises(SchemaMismatchError):
        decode_model('{"order_id": "seven", "status": "new"}', OrderInfo)


def test_numbers_are_read_as_integers_and_prices_as_strings():
    order = decode_model('{"order_id": "7", "status": "paid"}', OrderInfo)
    item = decode_model(
        json.dumps({"sku": "sku-1", "price": {"amount": 1.5, "amount_without_discount": 2, "currency": "USD"}}),
        StoreItem,
    )

    assert order.order_id == 7
    assert item.price.amount == "1.5"
    assert item.price.amount_without_discount == "2"


def test_unknown_fields_are_ignored():
    cart = decode_model('{"cart_id": 42, "items": [], "promo": {"x": 1}}', Cart)

    assert cart.cart_id == 42


def test_payment_token_request_omits_empty_optional_fields():
    body = PaymentTokenRequest(currency="", country="  ", locale="en", sandbox=False)

    assert json.loads(encode_model(body)) == {"locale": "en", "sandbox": False}


def test_consume_request_encodes_zero_and_empty_as_null():
    body = ConsumeItemRequest(sku="sku-2", quantity=0, instance_id="")

    assert encode_model(body, exclude_none=False) == '{"sku":"sku-2","quantity":null,"instance_id":null}'


def test_consume_request_keeps_real_values():
    body = ConsumeItemRequest(sku="sku-2", quantity=3, instance_id="inst-9")

    assert json.loads(encode_model(body, exclude_none=False)) == {"sku": "sku-2", "quantity": 3, "instance_id": "inst-9"}
