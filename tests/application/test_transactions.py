"""Tests for the explicit transaction layer: conflicts, retries and exhaustion."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError

from backoffice.catalogue.product import Product
from backoffice.order.order import Order
from backoffice.order.transaction import Transaction, run_in_transaction
from backoffice.shared.errors import OutOfStock, TransactionConflict, TransactionFailed


class TestTransaction:
    def test_commit_writes_queued_aggregates_and_bumps_revision(self, add_product, stock_of):
        product = add_product(stock=10)

        txn = Transaction()
        loaded = txn.get(Product, product.id)
        loaded.adjust_stock(-1)
        txn.set(loaded)
        txn.commit()

        stored = current_domain.repository_for(Product).get(product.id)
        assert stored.stock == 9
        assert stored.revision == 1
        assert txn.committed

    def test_nothing_is_written_before_commit(self, add_product, stock_of):
        product = add_product(stock=10)

        txn = Transaction()
        loaded = txn.get(Product, product.id)
        loaded.adjust_stock(-4)
        txn.set(loaded)

        assert stock_of(product.id) == 10

    def test_reads_after_writes_are_refused(self, add_product):
        first = add_product(stock=1)
        second = add_product(stock=1)

        txn = Transaction()
        txn.set(txn.get(Product, first.id))
        with pytest.raises(InvalidOperationError):
            txn.get(Product, second.id)

    def test_commit_detects_a_concurrent_change(self, add_product, stock_of):
        product = add_product(stock=10)

        txn = Transaction()
        loaded = txn.get(Product, product.id)

        other = Transaction()
        concurrent = other.get(Product, product.id)
        concurrent.adjust_stock(-2)
        other.set(concurrent)
        other.commit()

        loaded.adjust_stock(-3)
        txn.set(loaded)
        with pytest.raises(TransactionConflict):
            txn.commit()

        assert stock_of(product.id) == 8


class TestRunInTransaction:
    def test_returns_work_result(self, add_product):
        product = add_product(stock=3)

        def work(txn):
            loaded = txn.get(Product, product.id)
            return loaded.stock

        assert run_in_transaction(work) == 3

    def test_interleaved_write_forces_retry_with_fresh_stock(self, manager, store_id, add_product, stock_of):
        product = add_product(stock=10)
        seen_stock = []

        def work(txn):
            loaded = txn.get(Product, product.id)
            seen_stock.append(loaded.stock)
            if len(seen_stock) == 1:
                # Another order lands between this read and the commit
                manager.create(store_id, {"article_id": product.id, "quantity": 4})
            loaded.adjust_stock(-3)
            txn.set(loaded)
            return loaded

        run_in_transaction(work)

        assert seen_stock == [10, 6]
        assert stock_of(product.id) == 3

    def test_retry_sees_stock_that_is_now_too_low(self, manager, store_id, add_product, stock_of):
        product = add_product(stock=5)
        attempts = []

        def work(txn):
            loaded = txn.get(Product, product.id)
            attempts.append(loaded.stock)
            if len(attempts) == 1:
                manager.create(store_id, {"article_id": product.id, "quantity": 4})
            loaded.adjust_stock(-3)
            txn.set(loaded)

        with pytest.raises(OutOfStock):
            run_in_transaction(work)

        assert attempts == [5, 1]
        assert stock_of(product.id) == 1

    def test_exhausted_budget_raises_transaction_failed(self, monkeypatch, manager, store_id, add_product, stock_of):
        product = add_product(stock=10)

        def always_conflict(self):
            raise TransactionConflict("Product", product.id)

        monkeypatch.setattr(Transaction, "commit", always_conflict)

        with pytest.raises(TransactionFailed) as exc:
            manager.create(store_id, {"article_id": product.id, "quantity": 2})

        assert exc.value.attempts == 5
        assert stock_of(product.id) == 10
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_attempt_budget_is_configurable(self, monkeypatch):
        calls = []

        def work(txn):
            calls.append(1)

        def always_conflict(self):
            raise TransactionConflict("Order", "ord-1")

        monkeypatch.setattr(Transaction, "commit", always_conflict)

        with pytest.raises(TransactionFailed):
            run_in_transaction(work, max_attempts=2)
        assert len(calls) == 2
