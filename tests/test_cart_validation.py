"""cart.py 테스트"""

import pytest

from farmbiz.core.exceptions import ValidationError
from farmbiz.domain.cart import (
    CartErrorCode,
    CartValidator,
    summarize_cart,
    validate_cart_items,
)
from farmbiz.domain.models import CartItem, DeliveryMethod


def make_item(**overrides) -> CartItem:
    values = dict(
        product_id="p1",
        quantity=10,
        unit_price=1000,
        moq=5,
        stock_quantity=100,
        shipping_fee=100,
        wholesaler_id="w1",
        product_name="양파 1kg",
    )
    values.update(overrides)
    return CartItem(**values)


class TestCartValidator:
    """CartValidator 테스트"""

    def test_empty_cart(self):
        """선택된 상품 없음"""
        result = validate_cart_items([])

        assert result.is_valid is False
        assert len(result.errors) == 1
        assert result.errors[0].code == CartErrorCode.NO_ITEMS_SELECTED

    def test_valid_cart(self):
        assert validate_cart_items([make_item()]).is_valid

    def test_moq_not_met(self):
        """최소 주문 수량 미달"""
        result = validate_cart_items([make_item(quantity=3)])

        assert result.codes_for("p1") == [CartErrorCode.MOQ_NOT_MET]
        assert "5개" in result.errors[0].message

    def test_out_of_stock(self):
        result = validate_cart_items([make_item(quantity=10, stock_quantity=4)])
        assert result.codes_for("p1") == [CartErrorCode.OUT_OF_STOCK]

    def test_collects_all_errors(self):
        """중단하지 않고 모든 에러를 모음"""
        items = [
            make_item(product_id="a", quantity=1, moq=5, stock_quantity=0),
            make_item(product_id="b"),
            make_item(product_id="c", quantity=200),
        ]
        result = validate_cart_items(items)

        assert result.codes_for("a") == [CartErrorCode.MOQ_NOT_MET, CartErrorCode.OUT_OF_STOCK]
        assert result.codes_for("b") == []
        assert result.codes_for("c") == [CartErrorCode.OUT_OF_STOCK]

    def test_deadline_checker(self):
        """도매상 마감 시간"""
        validator = CartValidator(deadline_checker=lambda wholesaler_id: wholesaler_id == "w-closed")
        result = validator.validate([
            make_item(product_id="open", wholesaler_id="w1"),
            make_item(product_id="closed", wholesaler_id="w-closed"),
        ])

        assert result.codes_for("open") == []
        assert result.codes_for("closed") == [CartErrorCode.DEADLINE_PASSED]

    def test_to_dict(self):
        d = validate_cart_items([make_item(quantity=1)]).to_dict()
        assert d["isValid"] is False
        assert d["errors"][0]["code"] == "MOQ_NOT_MET"
        assert d["errors"][0]["product_name"] == "양파 1kg"


class TestSummarizeCart:
    """summarize_cart 테스트"""

    def test_summary(self):
        """배송비는 개당 배송비 × 수량"""
        summary = summarize_cart([
            make_item(quantity=10, unit_price=1000, shipping_fee=100),
            make_item(product_id="p2", quantity=2, unit_price=5000, shipping_fee=0),
        ])

        assert summary.total_product_price == 20000
        assert summary.total_shipping_fee == 1000
        assert summary.total_price == 21000
        assert summary.to_dict()["itemCount"] == 2

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            summarize_cart([make_item(quantity=0)])


class TestCartItem:
    """CartItem.from_dict 테스트"""

    def test_from_dict(self):
        item = CartItem.from_dict({
            "product_id": "p1",
            "quantity": "3",
            "unit_price": 1500,
            "delivery_method": "dawn",
        })
        assert item.quantity == 3
        assert item.moq == 1
        assert item.delivery_method == DeliveryMethod.DAWN

    def test_missing_product_id(self):
        with pytest.raises(KeyError):
            CartItem.from_dict({"quantity": 1})
