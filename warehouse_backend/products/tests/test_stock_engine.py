# products/tests/test_stock_engine.py

from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase

from permissions.tests.helpers import make_user
from products.models import LedgerEntry, StockBatch
from products.services.stock_fifo import (
    InsufficientStockError,
    StockError,
    StockLine,
    StockRestorationError,
    _to_int_qty,
    available_quantity,
    deduct_stock_fifo,
    ensure_available,
    restore_stock_lifo,
)
from products.tests.helpers import add_batch, make_product, make_warehouse

MT = LedgerEntry.MovementType


class FifoDeductionTests(TestCase):
    """
    FIFO deduction.

    GUARANTEES:
    - Oldest batch is consumed first
    - qty_available never goes negative; empty batches become exhausted
    - Exactly one OUT ledger row per call, carrying the reference
    - Shortage raises before anything is mutated
    """

    def setUp(self):
        self.user = make_user()
        self.wh = make_warehouse("WH1")
        self.product = make_product()
        self.old = add_batch(self.product, self.wh, 5, age_minutes=30)
        self.new = add_batch(self.product, self.wh, 10, age_minutes=10)
        self.ledger_before = LedgerEntry.objects.count()

    def test_consumes_oldest_batch_first(self):
        entry = deduct_stock_fifo(
            product=self.product,
            warehouse=self.wh,
            quantity=7,
            movement_type=MT.DISPATCH,
            reference="DISPATCH_1_AWB1",
            user=self.user,
        )

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.qty_available, 0)
        self.assertEqual(self.old.status, StockBatch.Status.EXHAUSTED)
        self.assertEqual(self.new.qty_available, 8)
        self.assertEqual(self.new.status, StockBatch.Status.ACTIVE)

        self.assertEqual(entry.direction, LedgerEntry.Direction.OUT)
        self.assertEqual(entry.qty, 7)
        self.assertEqual(entry.reference, "DISPATCH_1_AWB1")
        self.assertEqual(entry.location_code, "WH1")
        self.assertEqual(entry.performed_by, self.user)
        self.assertEqual(LedgerEntry.objects.count(), self.ledger_before + 1)

    def test_exact_total_exhausts_every_batch(self):
        deduct_stock_fifo(
            product=self.product,
            warehouse=self.wh,
            quantity=15,
            movement_type=MT.DAMAGE,
            reference="damage#1",
        )
        self.assertEqual(available_quantity(product=self.product, warehouse=self.wh), 0)
        self.assertFalse(
            StockBatch.objects.filter(product=self.product, status=StockBatch.Status.ACTIVE).exists()
        )

    def test_insufficient_stock_mutates_nothing(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            deduct_stock_fifo(
                product=self.product,
                warehouse=self.wh,
                quantity=16,
                movement_type=MT.DISPATCH,
                reference="DISPATCH_2_NO_AWB",
            )

        self.assertIn("Requested: 16, Available: 15", str(ctx.exception))
        self.assertEqual(ctx.exception.shortages[0]["available"], 15)
        self.assertEqual(available_quantity(product=self.product, warehouse=self.wh), 15)
        self.assertEqual(LedgerEntry.objects.count(), self.ledger_before)

    def test_other_warehouse_stock_is_not_used(self):
        other = make_warehouse("WH2")
        add_batch(self.product, other, 100)

        with self.assertRaises(InsufficientStockError):
            deduct_stock_fifo(
                product=self.product,
                warehouse=self.wh,
                quantity=20,
                movement_type=MT.DISPATCH,
                reference="DISPATCH_3_NO_AWB",
            )

    def test_ledger_failure_rolls_back_batch_updates(self):
        with mock.patch.object(LedgerEntry.objects, "create", side_effect=DatabaseError("boom")):
            with self.assertRaises(DatabaseError):
                deduct_stock_fifo(
                    product=self.product,
                    warehouse=self.wh,
                    quantity=7,
                    movement_type=MT.DISPATCH,
                    reference="DISPATCH_4_NO_AWB",
                )

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.old.qty_available, 5)
        self.assertEqual(self.old.status, StockBatch.Status.ACTIVE)
        self.assertEqual(self.new.qty_available, 10)
        self.assertEqual(LedgerEntry.objects.count(), self.ledger_before)

    def test_rejects_non_positive_and_fractional_quantities(self):
        for bad in (0, -3, 2.5, "abc", True):
            with self.assertRaises(StockError):
                deduct_stock_fifo(
                    product=self.product,
                    warehouse=self.wh,
                    quantity=bad,
                    movement_type=MT.DISPATCH,
                    reference="DISPATCH_5_NO_AWB",
                )
        self.assertEqual(available_quantity(product=self.product, warehouse=self.wh), 15)


class LifoRestoreTests(TestCase):
    """
    LIFO restoration (reversals).

    GUARANTEES:
    - Newest batch is refilled first, never above qty_initial
    - Exhausted batches come back to active
    - Any remainder opens a new DISPATCH_REVERSAL batch
    - One IN ledger row per call
    """

    def setUp(self):
        self.wh = make_warehouse("WH1")
        self.product = make_product()
        self.old = add_batch(self.product, self.wh, 5, age_minutes=30)
        self.new = add_batch(self.product, self.wh, 4, age_minutes=10)

    def test_refills_newest_first_and_reactivates(self):
        deduct_stock_fifo(
            product=self.product, warehouse=self.wh, quantity=9,
            movement_type=MT.DISPATCH, reference="DISPATCH_1_A",
        )

        entry = restore_stock_lifo(
            product=self.product, warehouse=self.wh, quantity=6,
            movement_type=MT.DISPATCH_REVERSAL, reference="DISPATCH_DELETE_1",
        )

        self.old.refresh_from_db()
        self.new.refresh_from_db()
        self.assertEqual(self.new.qty_available, 4)
        self.assertEqual(self.old.qty_available, 2)
        self.assertEqual(self.old.status, StockBatch.Status.ACTIVE)
        self.assertEqual(entry.direction, LedgerEntry.Direction.IN)
        self.assertEqual(entry.qty, 6)
        self.assertEqual(StockBatch.objects.filter(product=self.product).count(), 2)

    def test_remainder_opens_reversal_batch(self):
        deduct_stock_fifo(
            product=self.product, warehouse=self.wh, quantity=2,
            movement_type=MT.DISPATCH, reference="DISPATCH_2_A",
        )

        restore_stock_lifo(
            product=self.product, warehouse=self.wh, quantity=5,
            movement_type=MT.DISPATCH_REVERSAL, reference="DISPATCH_DELETE_2",
        )

        extra = StockBatch.objects.get(source_type=StockBatch.SourceType.DISPATCH_REVERSAL)
        self.assertEqual(extra.qty_initial, 3)
        self.assertEqual(extra.source_ref, "DISPATCH_DELETE_2")
        self.assertEqual(available_quantity(product=self.product, warehouse=self.wh), 12)

    def test_rejects_zero_quantity(self):
        with self.assertRaises(StockRestorationError):
            restore_stock_lifo(
                product=self.product, warehouse=self.wh, quantity=0,
                movement_type=MT.DISPATCH_REVERSAL, reference="DISPATCH_DELETE_3",
            )


class AvailabilityTests(TestCase):
    def setUp(self):
        self.wh = make_warehouse("WH1")
        self.a = make_product("A1", "Alpha")
        self.b = make_product("B1", "Beta")
        add_batch(self.a, self.wh, 5)
        add_batch(self.b, self.wh, 1)

    def test_lines_for_same_product_are_summed(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            ensure_available(
                [
                    StockLine(self.a, self.wh, 3),
                    StockLine(self.a, self.wh, 3),
                    StockLine(self.b, self.wh, 1),
                ]
            )
        shortages = ctx.exception.shortages
        self.assertEqual(len(shortages), 1)
        self.assertEqual(shortages[0]["barcode"], "A1")
        self.assertEqual(shortages[0]["requested"], 6)

    def test_sufficient_lines_pass(self):
        ensure_available([StockLine(self.a, self.wh, 5), StockLine(self.b, self.wh, 1)])

    def test_quantity_normalizer(self):
        self.assertEqual(_to_int_qty("7"), 7)
        self.assertEqual(_to_int_qty(3.0), 3)
        self.assertEqual(_to_int_qty(None), 0)


class LedgerImmutabilityTests(TestCase):
    def setUp(self):
        self.wh = make_warehouse("WH1")
        self.product = make_product()
        add_batch(self.product, self.wh, 5)
        self.entry = LedgerEntry.objects.get()

    def test_entries_cannot_be_updated(self):
        self.entry.qty = 50
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_entries_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.entry.delete()

    def test_direction_must_match_movement_type(self):
        with self.assertRaises(ValidationError):
            LedgerEntry.objects.create(
                movement_type=MT.DISPATCH,
                direction=LedgerEntry.Direction.IN,
                product=self.product,
                warehouse=self.wh,
                qty=1,
                reference="DISPATCH_9_A",
            )

    def test_batch_qty_initial_is_immutable(self):
        batch = StockBatch.objects.get()
        batch.qty_initial = 99
        with self.assertRaises(ValidationError):
            batch.save()
