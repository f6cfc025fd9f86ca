"""
Module: shiftpay_kernel.selectors.base
Responsibility: Base class for read-only selectors over the shiftpay store.
Architecture position: Kernel > Selectors.  Imports db/, models/ and
    domain/ only; never services/ or the engines.

Invariants enforced:
    - Selectors only run SELECTs: no add, delete, flush or commit.
    - They hand out frozen DTOs from shiftpay_kernel.domain.dtos, never ORM
      instances, so engines cannot lazy-load or mutate rows.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from shiftpay_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Runs queries on a Session owned by the caller."""

    def __init__(self, session: Session):
        self.session = session
