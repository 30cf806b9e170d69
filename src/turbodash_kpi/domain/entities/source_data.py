# src/turbodash_kpi/domain/entities/source_data.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Raw source rows consumed by base-metric aggregations.

Purpose:
    Represent contract rows, ledger entries, and the contract-status
    classification table. The engine reads these; it never writes them.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

__all__ = [
    "ContractRecord",
    "ContractStatusMapping",
    "LedgerEntry",
    "normalize_status",
]


def normalize_status(status: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of a contract status."""
    return status.strip().lower()


@dataclass(frozen=True, slots=True)
class ContractRecord:
    """Customer contract.

    Attributes:
        contract_id: Stable identifier of the contract.
        client_id: Identifier of the contracting client, if known.
        status: Current lifecycle status (e.g. ``ativo``, ``encerrado``).
        recurring_value: Monthly recurring value (MRR contribution).
        one_time_value: One-time (non-recurring) value billed at start.
        start_date: Date the contract became effective.
        end_date: Date the contract ended, or None while running.
    """

    contract_id: str
    client_id: str | None
    status: str
    recurring_value: Decimal
    one_time_value: Decimal
    start_date: date | None
    end_date: date | None = None


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Financial ledger entry; ``category`` names the base metric it feeds."""

    entry_id: str
    entry_date: date
    category: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class ContractStatusMapping:
    """Classification of a contract status as active or not."""

    id: UUID
    status: str
    is_active: bool

    def __post_init__(self) -> None:
        """Reject blank statuses."""
        if not self.status.strip():
            raise ValueError("status must be non-empty")
