import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def _backoffice_domain(request):
    """Initialize the back office domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from backoffice.domain import backoffice

    backoffice.init()
    return backoffice


@pytest.fixture(autouse=True)
def run_around_tests(_backoffice_domain):
    """Push domain context before each test, cleanup after."""
    from backoffice.carrier import reset_carrier
    from backoffice.messaging import reset_messenger
    from backoffice.wiring import reset_services

    ctx = _backoffice_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()

    reset_carrier()
    reset_messenger()
    reset_services()


STORE_ID = "store-001"


@pytest.fixture()
def store_id():
    return STORE_ID


@pytest.fixture()
def add_product():
    """Persist a product and return it."""
    from protean import current_domain

    from backoffice.catalogue.product import Product

    def _add(stock=10, price=100.0, cost_price=40.0, product_id=None, name="Caftan"):
        product = Product.register(
            name=name,
            stock=stock,
            price=price,
            cost_price=cost_price,
            product_id=product_id,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _add


@pytest.fixture()
def stock_of():
    """Read a product's current stock from the repository."""
    from protean import current_domain

    from backoffice.catalogue.product import Product

    def _stock(product_id):
        return current_domain.repository_for(Product).get(product_id).stock

    return _stock


@pytest.fixture()
def load_order():
    from protean import current_domain

    from backoffice.order.order import Order

    def _load(order_id):
        return current_domain.repository_for(Order).get(order_id)

    return _load


@pytest.fixture()
def manager():
    from backoffice.order.manager import OrderTransactionManager

    return OrderTransactionManager()
