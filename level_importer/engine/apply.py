"""
Apply Engine Module

Executes matcher classifications against the document.

All changes of a run happen inside one transaction group:

    group "Import levels"
        transaction "Create or update levels"   (CREATE / UPDATE)
        transaction "Create floor plans"        (ViewDeriver)
    assimilate

Per-element problems (rename refused, locked elevation, view failure) are
warnings. Any other exception rolls the whole group back and is raised as
ApplyError.
"""
from typing import List, Optional, Tuple
import logging

from .errors import ApplyError, DocumentOperationError, ReadOnlyParameterError
from .naming import LevelNameResolver
from .views import ViewDeriver
from ..config.models import (
    Classification, ClassificationKind, ApplyResult, DerivedView, Level
)
from ..config.settings import ImportConfig, get_settings
from ..document.provider import DocumentProvider, TransactionGroup, transaction


logger = logging.getLogger(__name__)


class ApplyEngine:
    """Applies classifications to a document under an all-or-nothing group."""

    def __init__(
        self,
        document: DocumentProvider,
        view_deriver: Optional[ViewDeriver] = None,
        config: Optional[ImportConfig] = None
    ):
        """
        Args:
            document: Document to modify
            view_deriver: Creates views for new levels; defaults to a ViewDeriver on the same document
            config: Import settings; defaults to the global settings
        """
        self.document = document
        self.view_deriver = view_deriver or ViewDeriver(document)
        self.config = config or get_settings().importing

    def apply(self, classifications: List[Classification]) -> Tuple[ApplyResult, List[DerivedView]]:
        """
        Apply classifications and derive views for created levels.

        Args:
            classifications: Matcher output in processing order

        Returns:
            Tuple of (ApplyResult, derived views)

        Raises:
            ApplyError: A document-level failure occurred; nothing was kept
        """
        group = TransactionGroup(self.document, self.config.group_name)
        try:
            with group:
                with transaction(self.document, self.config.levels_transaction_name):
                    result = self.apply_levels(classifications)
                views = self.view_deriver.derive(result.created, result.warnings)
                group.assimilate()
        except Exception as e:
            logger.error(f"Import rolled back: {e}")
            raise ApplyError(str(e)) from e

        logger.info(
            f"Applied: {len(result.created)} created, {len(result.updated)} updated, "
            f"{len(result.unchanged)} unchanged, {len(views)} views"
        )
        return result, views

    def apply_levels(self, classifications: List[Classification]) -> ApplyResult:
        """
        Create and update levels. Must run inside an open transaction.

        Args:
            classifications: Matcher output in processing order

        Returns:
            ApplyResult with created, updated and unchanged levels
        """
        result = ApplyResult()
        names = LevelNameResolver(level.name for level in self.document.levels())

        for classification in classifications:
            kind = classification.kind

            if kind == ClassificationKind.CREATE:
                level = self._create(classification, names, result)
                if level is not None:
                    result.created.append(level)

            elif kind == ClassificationKind.UPDATE:
                self._update(classification, result)

            elif kind == ClassificationKind.SKIP:
                result.unchanged.append(classification.entity)

        return result

    def _create(
        self,
        classification: Classification,
        names: LevelNameResolver,
        result: ApplyResult
    ) -> Optional[Level]:
        row = classification.row
        try:
            level = self.document.create_level(row.elevation)
        except DocumentOperationError as e:
            self._warn(result, f"Row {row.source_line}: level '{row.name}' could not be created. {e}")
            return None

        default_name = level.name
        if row.name.casefold() == default_name.casefold():
            # The document already gave the level the requested name
            names.register(default_name)
            return level

        final_name = names.resolve(row.name)
        try:
            self.document.rename_level(level, final_name)
        except DocumentOperationError as e:
            names.registry.discard(final_name)
            names.register(default_name)
            self._warn(
                result,
                f"Level created from row {row.source_line}: could not assign the name "
                f"'{final_name}', kept '{level.name}'. {e}"
            )
            return level

        level.name = final_name
        return level

    def _update(self, classification: Classification, result: ApplyResult):
        level = classification.entity
        try:
            self.document.set_level_elevation(level, classification.new_elevation)
        except ReadOnlyParameterError:
            self._warn(result, f"Level '{level.name}': elevation could not be updated (parameter locked).")
            result.unchanged.append(level)
            return
        except DocumentOperationError as e:
            self._warn(result, f"Level '{level.name}': elevation could not be updated. {e}")
            result.unchanged.append(level)
            return

        level.elevation = classification.new_elevation
        result.updated.append(level)

    @staticmethod
    def _warn(result: ApplyResult, message: str):
        result.add_warning(message)
        logger.warning(message)
