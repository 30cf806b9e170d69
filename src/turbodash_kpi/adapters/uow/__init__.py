# src/turbodash_kpi/adapters/uow/__init__.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""
Unit of Work implementations (Adapters Layer)

Purpose:
    Provide concrete UnitOfWork implementations backed by SQLAlchemy
    AsyncSession. Application-layer code must depend only on the
    `UnitOfWork` protocol from `turbodash_kpi.application.uow`.

Exports:
    - SqlAlchemyUnitOfWork: SQLAlchemy-backed UnitOfWork used by the FastAPI
      dependencies and the CLI.
"""

from __future__ import annotations

from .sqlalchemy_uow import SqlAlchemyUnitOfWork

__all__ = ["SqlAlchemyUnitOfWork"]
