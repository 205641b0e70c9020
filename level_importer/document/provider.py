"""
Document Provider Module

Interface the level importer needs from the host document, plus context
managers for its transaction primitives.

The importer never looks a document up by itself: every operation receives
the provider explicitly.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, List
import logging

from ..config.models import Level


logger = logging.getLogger(__name__)


class DocumentProvider(ABC):
    """
    Abstract host document holding levels and views.

    Recoverable, per-element failures are reported by raising
    DocumentOperationError (ReadOnlyParameterError for locked parameters).
    Any other exception is treated as a document-level failure.
    """

    # Levels

    @abstractmethod
    def levels(self) -> List[Level]:
        """Snapshot of every level in the document."""

    @abstractmethod
    def create_level(self, elevation: float) -> Level:
        """Create a level at the elevation (canonical units) with a default name."""

    @abstractmethod
    def rename_level(self, level: Level, name: str):
        """Rename a level."""

    @abstractmethod
    def set_level_elevation(self, level: Level, elevation: float):
        """Move a level to a new elevation (canonical units)."""

    # Views

    @abstractmethod
    def view_names(self) -> List[str]:
        """Names of every view in the document."""

    @abstractmethod
    def has_plan_view_type(self) -> bool:
        """Whether the document can create floor plan views."""

    @abstractmethod
    def create_plan_view(self, level: Level) -> Any:
        """Create a floor plan view for a level and return its handle."""

    @abstractmethod
    def rename_view(self, view: Any, name: str):
        """Rename a view."""

    @abstractmethod
    def set_view_scale(self, view: Any, scale: int):
        """Set the view scale (1:scale)."""

    @abstractmethod
    def set_view_crop(self, view: Any, active: bool, visible: bool):
        """Set the crop region flags of a view."""

    # Transactions

    @abstractmethod
    def begin_transaction(self, name: str):
        """Open an inner transaction."""

    @abstractmethod
    def commit_transaction(self):
        """Commit the open inner transaction."""

    @abstractmethod
    def rollback_transaction(self):
        """Discard every change made in the open inner transaction."""

    @abstractmethod
    def begin_group(self, name: str):
        """Open an outer transaction group."""

    @abstractmethod
    def assimilate_group(self):
        """Finalize the open group, merging its transactions into one."""

    @abstractmethod
    def rollback_group(self):
        """Discard every transaction committed inside the open group."""


@contextmanager
def transaction(document: DocumentProvider, name: str) -> Iterator[DocumentProvider]:
    """
    Run a block inside an inner transaction.

    Commits when the block completes, rolls back and re-raises otherwise.
    """
    document.begin_transaction(name)
    logger.debug(f"Transaction '{name}' started")
    try:
        yield document
    except Exception:
        logger.debug(f"Transaction '{name}' rolled back")
        document.rollback_transaction()
        raise
    document.commit_transaction()
    logger.debug(f"Transaction '{name}' committed")


class TransactionGroup:
    """
    Outer all-or-nothing boundary around inner transactions.

    Usage:
        with TransactionGroup(document, "Import levels") as group:
            with transaction(document, "Create levels"):
                ...
            group.assimilate()

    Leaving the block without calling assimilate(), or through an exception,
    rolls the whole group back.
    """

    def __init__(self, document: DocumentProvider, name: str):
        self.document = document
        self.name = name
        self.assimilated = False
        self.rolled_back = False

    def __enter__(self) -> 'TransactionGroup':
        self.document.begin_group(self.name)
        logger.debug(f"Transaction group '{self.name}' started")
        return self

    def assimilate(self):
        """Finalize the group."""
        self.document.assimilate_group()
        self.assimilated = True
        logger.debug(f"Transaction group '{self.name}' assimilated")

    def rollback(self):
        """Discard the group."""
        if self.assimilated or self.rolled_back:
            return
        self.document.rollback_group()
        self.rolled_back = True
        logger.info(f"Transaction group '{self.name}' rolled back")

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if not self.assimilated:
            self.rollback()
        return False
