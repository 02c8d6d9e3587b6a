# products/services/references.py

"""
LEDGER REFERENCE FORMATS

Every ledger row carries a reference string pointing back at the event that
caused it. Timelines and dispatch histories search by these strings, so the
formats are fixed here and nowhere else.
"""

from __future__ import annotations

import time


def epoch_millis() -> int:
    return int(time.time() * 1000)


def _clean(value) -> str:
    return str(value or "").strip().replace(" ", "_")


def stock_entry_reference(source_type: str, barcode: str, millis: int | None = None) -> str:
    return f"{source_type}_{_clean(barcode)}_{millis if millis is not None else epoch_millis()}"


def dispatch_reference(dispatch_id, awb) -> str:
    return f"DISPATCH_{dispatch_id}_{_clean(awb) or 'NO_AWB'}"


def dispatch_delete_reference(dispatch_id) -> str:
    return f"DISPATCH_DELETE_{dispatch_id}"


def dispatch_damage_reference(log_id) -> str:
    return f"dispatch_damage#{log_id}"


def damage_reference(log_id) -> str:
    return f"damage#{log_id}"


def recover_reference(log_id) -> str:
    return f"recover#{log_id}"


def return_reference(return_id, awb) -> str:
    return f"RETURN_{return_id}_{_clean(awb) or 'NO_AWB'}"


def self_transfer_reference(order_ref, millis: int | None = None) -> str:
    return f"SELF_TRANSFER_{_clean(order_ref)}_{millis if millis is not None else epoch_millis()}"
