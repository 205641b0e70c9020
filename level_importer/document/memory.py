"""
In-Memory Document

DocumentProvider kept entirely in memory.

Transactions and groups work on snapshots of the document state, so a
rollback restores exactly what was there before. Failures can be injected
per element or per operation to exercise the importer's recovery paths.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set
import logging

from .provider import DocumentProvider
from ..config.models import Level
from ..engine.errors import DocumentOperationError, ReadOnlyParameterError


logger = logging.getLogger(__name__)

# Characters the host refuses in element names
INVALID_NAME_CHARS = set('{}[]|;<>?`~\\:')


@dataclass
class LevelRecord:
    """Stored level."""
    id: int
    name: str
    elevation: float
    read_only: bool = False


@dataclass
class ViewRecord:
    """Stored floor plan view."""
    id: int
    name: str
    level_id: Optional[int] = None
    scale: int = 100
    crop_active: bool = False
    crop_visible: bool = True


@dataclass
class DocumentState:
    """Everything a rollback has to restore."""
    levels: Dict[int, LevelRecord] = field(default_factory=dict)
    views: Dict[int, ViewRecord] = field(default_factory=dict)
    next_id: int = 1


class InMemoryDocument(DocumentProvider):
    """
    Document held in memory.

    Failure injection:
        fail_rename:   level names whose rename is refused (DocumentOperationError)
        fail_view_for: level names whose plan view cannot be created
        fail_on:       operation name -> exception raised on every call
                       (e.g. {"create_plan_view": RuntimeError("crash")})
    Levels created with read_only=True refuse elevation changes.
    """

    def __init__(
        self,
        levels: Iterable = (),
        views: Iterable[str] = (),
        has_plan_view_type: bool = True,
        fail_rename: Iterable[str] = (),
        fail_view_for: Iterable[str] = (),
        fail_on: Optional[Dict[str, Exception]] = None
    ):
        """
        Args:
            levels: Initial levels as (name, elevation) or (name, elevation, read_only)
            views: Names of initial views not tied to any level
            has_plan_view_type: Whether floor plan views can be created
        """
        self.state = DocumentState()
        self.plan_view_type = has_plan_view_type
        self.fail_rename: Set[str] = set(fail_rename)
        self.fail_view_for: Set[str] = set(fail_view_for)
        self.fail_on: Dict[str, Exception] = dict(fail_on or {})

        self._group_snapshot: Optional[DocumentState] = None
        self._transaction_snapshot: Optional[DocumentState] = None
        self.group_open = False
        self.transaction_open = False
        self.history: List[str] = []

        for item in levels:
            name, elevation, *rest = item
            record = LevelRecord(self._new_id(), name, float(elevation), bool(rest and rest[0]))
            self.state.levels[record.id] = record
        for name in views:
            record = ViewRecord(self._new_id(), name)
            self.state.views[record.id] = record

    # Helpers

    def _new_id(self) -> int:
        element_id = self.state.next_id
        self.state.next_id += 1
        return element_id

    def _check(self, operation: str):
        """Raise injected failures and refuse edits outside a transaction."""
        if operation in self.fail_on:
            raise self.fail_on[operation]
        if not self.transaction_open:
            raise RuntimeError(f"{operation}: document modified outside of a transaction")

    def _level_record(self, level: Level) -> LevelRecord:
        try:
            return self.state.levels[level.identity]
        except KeyError:
            raise DocumentOperationError(f"Level '{level.name}' is not in the document") from None

    def _view_record(self, view: int) -> ViewRecord:
        try:
            return self.state.views[view]
        except KeyError:
            raise DocumentOperationError(f"View {view} is not in the document") from None

    @staticmethod
    def _check_name(name: str):
        if not name or not name.strip():
            raise DocumentOperationError("Name cannot be empty")
        bad = sorted(set(name) & INVALID_NAME_CHARS)
        if bad:
            raise DocumentOperationError(f"Name '{name}' contains prohibited characters: {''.join(bad)}")

    # Levels

    def levels(self) -> List[Level]:
        return [Level(r.name, r.elevation, r.id) for r in self.state.levels.values()]

    def create_level(self, elevation: float) -> Level:
        self._check("create_level")
        record = LevelRecord(self._new_id(), "", float(elevation))
        record.name = f"Level {record.id}"
        self.state.levels[record.id] = record
        self.history.append(f"create_level {record.id}")
        return Level(record.name, record.elevation, record.id)

    def rename_level(self, level: Level, name: str):
        self._check("rename_level")
        record = self._level_record(level)
        self._check_name(name)
        if name in self.fail_rename:
            raise DocumentOperationError(f"Level cannot be renamed to '{name}'")
        for other in self.state.levels.values():
            if other.id != record.id and other.name.casefold() == name.casefold():
                raise DocumentOperationError(f"Name '{name}' is already in use by another level")
        record.name = name
        level.name = name
        self.history.append(f"rename_level {record.id}")

    def set_level_elevation(self, level: Level, elevation: float):
        self._check("set_level_elevation")
        record = self._level_record(level)
        if record.read_only:
            raise ReadOnlyParameterError(f"Elevation of level '{record.name}' is read-only")
        record.elevation = float(elevation)
        level.elevation = record.elevation
        self.history.append(f"set_level_elevation {record.id}")

    def get_level(self, name: str) -> Optional[Level]:
        """Level with the given name (case-insensitive), or None."""
        for record in self.state.levels.values():
            if record.name.casefold() == name.casefold():
                return Level(record.name, record.elevation, record.id)
        return None

    # Views

    def view_names(self) -> List[str]:
        return [v.name for v in self.state.views.values()]

    def views(self) -> List[ViewRecord]:
        """Copies of all stored views."""
        return [copy.copy(v) for v in self.state.views.values()]

    def has_plan_view_type(self) -> bool:
        return self.plan_view_type

    def create_plan_view(self, level: Level) -> int:
        self._check("create_plan_view")
        record = self._level_record(level)
        if not self.plan_view_type:
            raise DocumentOperationError("No floor plan view type available")
        if record.name in self.fail_view_for:
            raise DocumentOperationError(f"Cannot create a floor plan for level '{record.name}'")
        view = ViewRecord(self._new_id(), "", level_id=record.id)
        view.name = f"Floor Plan {view.id}"
        self.state.views[view.id] = view
        self.history.append(f"create_plan_view {view.id}")
        return view.id

    def rename_view(self, view: int, name: str):
        self._check("rename_view")
        record = self._view_record(view)
        self._check_name(name)
        for other in self.state.views.values():
            if other.id != record.id and other.name.casefold() == name.casefold():
                raise DocumentOperationError(f"Name '{name}' is already in use by another view")
        record.name = name

    def set_view_scale(self, view: int, scale: int):
        self._check("set_view_scale")
        if scale <= 0:
            raise DocumentOperationError(f"Invalid view scale {scale}")
        self._view_record(view).scale = int(scale)

    def set_view_crop(self, view: int, active: bool, visible: bool):
        self._check("set_view_crop")
        record = self._view_record(view)
        record.crop_active = bool(active)
        record.crop_visible = bool(visible)

    # Transactions

    def begin_transaction(self, name: str):
        if self.transaction_open:
            raise RuntimeError("A transaction is already open")
        self._transaction_snapshot = copy.deepcopy(self.state)
        self.transaction_open = True
        self.history.append(f"begin_transaction {name}")

    def commit_transaction(self):
        if not self.transaction_open:
            raise RuntimeError("No open transaction to commit")
        self._transaction_snapshot = None
        self.transaction_open = False
        self.history.append("commit_transaction")

    def rollback_transaction(self):
        if not self.transaction_open:
            raise RuntimeError("No open transaction to roll back")
        self.state = self._transaction_snapshot
        self._transaction_snapshot = None
        self.transaction_open = False
        self.history.append("rollback_transaction")

    def begin_group(self, name: str):
        if self.group_open:
            raise RuntimeError("A transaction group is already open")
        self._group_snapshot = copy.deepcopy(self.state)
        self.group_open = True
        self.history.append(f"begin_group {name}")

    def assimilate_group(self):
        if not self.group_open:
            raise RuntimeError("No open transaction group to assimilate")
        if self.transaction_open:
            raise RuntimeError("Cannot assimilate a group while a transaction is open")
        self._group_snapshot = None
        self.group_open = False
        self.history.append("assimilate_group")

    def rollback_group(self):
        if not self.group_open:
            raise RuntimeError("No open transaction group to roll back")
        if self.transaction_open:
            self.rollback_transaction()
        self.state = self._group_snapshot
        self._group_snapshot = None
        self.group_open = False
        self.history.append("rollback_group")
