"""Tests for the PostgreSQL AppointmentStore write path.

The AsyncSession is an AsyncMock; each ``execute`` call is recorded so the
lock / overlap scan / stock move order can be asserted without a database.
"""
from __future__ import annotations

import asyncio
import datetime as _dt
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from salonbook.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StockError,
)
from salonbook.infra.database.repositories.appointment import AppointmentRepository
from salonbook.infra.database.repositories.product import ProductRepository
from salonbook.scheduling.types import (
    AppointmentPayload,
    AppointmentStatus,
    CatalogProduct,
    PricedProductLine,
    PricedServiceLine,
)

UTC = _dt.timezone.utc
START = _dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC)
END = _dt.datetime(2024, 6, 10, 17, 30, tzinfo=UTC)


def _run(coro):
    return asyncio.run(coro)


def _result(ids=(), rowcount=1):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(ids)
    result.rowcount = rowcount
    return result


def _payload(products=(), professional_id=7) -> AppointmentPayload:
    return AppointmentPayload(
        company_id=1,
        customer_id=3,
        professional_id=professional_id,
        start_time=START,
        end_time=END,
        status=AppointmentStatus.SCHEDULED,
        total_amount=Decimal("50.00"),
        discount_percent=Decimal("0"),
        services=[PricedServiceLine(1, 1, Decimal("50.00"), 30)],
        products=[PricedProductLine(pid, qty, Decimal("10.00")) for pid, qty in products],
    )


class _RepositoryCase(unittest.TestCase):
    """Wires a repository whose session and product repository log every call."""

    def setUp(self):
        self.events = []
        self.overlap_ids = ()
        self.rowcount = 1

        self.session = MagicMock()
        self.session.execute = AsyncMock(side_effect=self._execute)
        self.session.flush = AsyncMock()

        self.products = MagicMock()
        self.products.decrement = AsyncMock(side_effect=self._decrement)
        self.products.increment = AsyncMock(side_effect=self._increment)
        self.products.get = AsyncMock(return_value=CatalogProduct(id=10, name="Gel", price=5, stock=0))
        self.short = set()

        self.repo = AppointmentRepository(self.session, products=self.products)
        self.repo.insert = AsyncMock(side_effect=self._insert)
        self.repo._reload = AsyncMock(return_value="reloaded")

    async def _execute(self, stmt, params=None):
        if params is not None and "namespace" in params:
            self.events.append(("lock", params["namespace"], params["key"]))
            return _result()
        self.events.append(("query", str(stmt)))
        return _result(self.overlap_ids, self.rowcount)

    async def _decrement(self, product_id, quantity, *, company_id):
        self.events.append(("decrement", product_id, quantity, company_id))
        return product_id not in self.short

    async def _increment(self, product_id, quantity, *, company_id):
        self.events.append(("increment", product_id, quantity, company_id))

    async def _insert(self, data):
        self.events.append(("insert",))
        return SimpleNamespace(id=42)

    def kinds(self):
        return [event[0] for event in self.events]


# ─── create ──────────────────────────────────────────────────────────────────

class TestCreate(_RepositoryCase):
    def test_lock_then_rescan_then_stock_then_insert(self):
        saved = _run(self.repo.create(_payload(products=[(10, 2), (11, 1), (10, 1)])))

        self.assertEqual(saved, "reloaded")
        self.assertEqual(self.kinds(), ["lock", "query", "decrement", "decrement", "insert"])
        self.assertEqual(self.events[0], ("lock", 4201, 7))
        # Split lines for product 10 are taken as one decrement.
        self.assertEqual(self.events[2], ("decrement", 10, 3, 1))
        self.assertEqual(self.events[3], ("decrement", 11, 1, 1))
        self.repo._reload.assert_awaited_once_with(42)

    def test_overlap_scan_is_scoped_and_skips_cancelled(self):
        _run(self.repo.create(_payload()))
        sql = self.events[1][1]
        self.assertIn("appointments.company_id", sql)
        self.assertIn("appointments.professional_id", sql)
        self.assertIn("appointments.status !=", sql)

    def test_overlap_under_lock_is_a_conflict(self):
        self.overlap_ids = (4,)
        with self.assertRaises(ConflictError) as ctx:
            _run(self.repo.create(_payload(products=[(10, 1)])))
        self.assertEqual(ctx.exception.details["conflicting_ids"], [4])
        self.assertEqual(self.kinds(), ["lock", "query"])
        self.repo.insert.assert_not_awaited()

    def test_failed_decrement_raises_stock_error(self):
        self.short = {10}
        with self.assertRaises(StockError) as ctx:
            _run(self.repo.create(_payload(products=[(10, 5)])))
        self.assertEqual(ctx.exception.message, "Estoque insuficiente para o produto Gel")
        self.assertEqual(ctx.exception.details["product_id"], 10)
        self.products.get.assert_awaited_once_with(10, company_id=1)
        self.repo.insert.assert_not_awaited()


# ─── update ──────────────────────────────────────────────────────────────────

def _stored(status="SCHEDULED", professional_id=9, products=((10, 3), (11, 1))):
    return SimpleNamespace(
        id=5,
        professional_id=professional_id,
        status=status,
        products=[SimpleNamespace(product_id=pid, quantity=qty) for pid, qty in products],
    )


class TestUpdate(_RepositoryCase):
    def test_moves_only_stock_deltas(self):
        self.repo._fetch = AsyncMock(return_value=_stored())

        _run(self.repo.update(5, _payload(products=[(10, 1), (12, 2)], professional_id=7)))

        self.repo._fetch.assert_awaited_once_with(5, company_id=1, for_update=True)
        moves = [event for event in self.events if event[0] in ("decrement", "increment")]
        self.assertEqual(
            moves,
            [
                ("increment", 10, 2, 1),
                ("increment", 11, 1, 1),
                ("decrement", 12, 2, 1),
            ],
        )
        self.session.flush.assert_awaited_once()

    def test_locks_both_professionals_in_ascending_order(self):
        self.repo._fetch = AsyncMock(return_value=_stored(professional_id=9))

        _run(self.repo.update(5, _payload(professional_id=7)))

        locks = [event for event in self.events if event[0] == "lock"]
        self.assertEqual(locks, [("lock", 4201, 7), ("lock", 4201, 9)])
        self.assertEqual(self.kinds()[2], "query")

    def test_unchanged_products_touch_no_stock(self):
        self.repo._fetch = AsyncMock(return_value=_stored(products=[(10, 2)]))
        _run(self.repo.update(5, _payload(products=[(10, 2)])))
        self.products.decrement.assert_not_awaited()
        self.products.increment.assert_not_awaited()

    def test_started_appointment_is_not_edited(self):
        self.repo._fetch = AsyncMock(return_value=_stored(status="IN_PROGRESS"))
        with self.assertRaises(InvalidTransitionError):
            _run(self.repo.update(5, _payload()))
        self.assertEqual(self.events, [])
        self.session.flush.assert_not_awaited()

    def test_conflict_on_new_window(self):
        self.repo._fetch = AsyncMock(return_value=_stored())
        self.overlap_ids = (8,)
        with self.assertRaises(ConflictError):
            _run(self.repo.update(5, _payload()))
        self.products.decrement.assert_not_awaited()
        self.products.increment.assert_not_awaited()

    def test_missing_appointment(self):
        self.repo._fetch = AsyncMock(return_value=None)
        with self.assertRaises(NotFoundError):
            _run(self.repo.update(5, _payload()))


# ─── set_status ──────────────────────────────────────────────────────────────

class TestSetStatus(_RepositoryCase):
    def test_lost_race_returns_none(self):
        self.rowcount = 0
        result = _run(
            self.repo.set_status(5, AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
        )
        self.assertIsNone(result)
        self.repo._reload.assert_not_awaited()

    def test_matching_status_is_updated(self):
        result = _run(
            self.repo.set_status(5, AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
        )
        self.assertEqual(result, "reloaded")
        self.repo._reload.assert_awaited_once_with(5)
        self.assertIn("appointments.status = ", self.events[0][1])


# ─── company scope ───────────────────────────────────────────────────────────

class TestCompanyScope(_RepositoryCase):
    def test_busy_intervals_filter_by_company(self):
        self.session.execute = AsyncMock(return_value=MagicMock(all=MagicMock(return_value=[])))
        _run(self.repo.busy_intervals(7, START, END, company_id=2))
        sql = str(self.session.execute.await_args.args[0])
        self.assertIn("appointments.company_id", sql)

    def test_check_stock_filters_by_company(self):
        result = MagicMock()
        result.scalar_one_or_none.return_value = 4
        session = MagicMock()
        session.execute = AsyncMock(return_value=result)

        self.assertTrue(_run(ProductRepository(session).check_stock(10, 3, company_id=2)))
        sql = str(session.execute.await_args.args[0])
        self.assertIn("products.company_id", sql)

    def test_product_of_another_company_is_hidden(self):
        session = MagicMock()
        session.get = AsyncMock(
            return_value=SimpleNamespace(id=10, company_id=2, name="Gel", price=5, stock=1, unit="UN")
        )
        products = ProductRepository(session)
        self.assertIsNone(_run(products.get(10, company_id=1)))
        self.assertEqual(_run(products.get(10, company_id=2)).name, "Gel")


if __name__ == "__main__":
    unittest.main()
