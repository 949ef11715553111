"""Shared BDD fixtures and step definitions for the order lifecycle."""

import pytest
from pytest_bdd import given, parsers, then
from protean import current_domain

from backoffice.catalogue.product import Product
from backoffice.order.manager import OrderTransactionManager
from backoffice.order.order import Order


@pytest.fixture()
def error():
    """Container for captured business errors."""
    return {"exc": None}


@pytest.fixture()
def orders():
    """Order ids by scenario alias."""
    return {}


@pytest.fixture()
def bdd_manager():
    return OrderTransactionManager()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a store "{store_id}" with product "{product_id}" priced {price:d} with {stock:d} units in stock'),
    target_fixture="store",
)
def store_with_product(store_id, product_id, price, stock):
    product = Product.register(name=product_id, stock=stock, price=float(price), product_id=product_id)
    current_domain.repository_for(Product).add(product)
    return {"store_id": store_id, "price": float(price)}


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('product "{product_id}" has {stock:d} units in stock'))
def product_has_stock(product_id, stock):
    assert current_domain.repository_for(Product).get(product_id).stock == stock


@then(parsers.cfparse('order "{alias}" is "{status}"'))
def order_has_status(orders, alias, status):
    assert current_domain.repository_for(Order).get(orders[alias]).status == status


@then(parsers.cfparse('order "{alias}" is paid'))
def order_is_paid(orders, alias):
    assert current_domain.repository_for(Order).get(orders[alias]).is_paid is True


@then(parsers.cfparse('order "{alias}" is unpaid'))
def order_is_unpaid(orders, alias):
    assert current_domain.repository_for(Order).get(orders[alias]).is_paid is False
