"""
BaseService -- common base for the kernel's write-side services.

Invariants enforced:
    Services flush inside the caller's transaction and never commit it;
    the CLI, request handler or test owns commit and rollback.  A service
    may roll back a SAVEPOINT it opened itself (the KPI cache does this
    when a write fails).
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from shiftpay_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Holds the caller's Session.

    Non-goals:
        - Read-only lookups live in ``shiftpay_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
