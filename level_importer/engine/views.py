"""
View Deriver Module

Creates one floor plan view for every level created by an import run.

Levels that were updated or left unchanged are assumed to have their views
already. Per-view failures are recorded as warnings and the remaining
views are still created.
"""
from datetime import datetime
from typing import Callable, List, Optional
import logging

from .errors import DocumentOperationError
from .naming import ViewNameResolver
from ..config.models import Level, DerivedView
from ..config.settings import ViewConfig, get_settings
from ..document.provider import DocumentProvider, transaction


logger = logging.getLogger(__name__)


class ViewDeriver:
    """Derives floor plan views for newly created levels."""

    def __init__(
        self,
        document: DocumentProvider,
        config: Optional[ViewConfig] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            document: Document to create views in
            config: View settings; defaults to the global settings
            clock: Time source for collision suffixes; defaults to datetime.now
        """
        self.document = document
        self.config = config or get_settings().views
        self.clock = clock

    def derive(self, levels: List[Level], warnings: List[str]) -> List[DerivedView]:
        """
        Create, name and configure a floor plan for each level.

        Must run inside the import's transaction group; opens its own inner
        transaction. Document-level exceptions propagate to the caller.

        Args:
            levels: Levels created in this run
            warnings: List that receives per-view warnings

        Returns:
            DerivedView for every view that was created and named
        """
        if not levels:
            return []

        if not self.document.has_plan_view_type():
            warnings.append("No floor plan view type was found. No views will be created.")
            logger.warning(warnings[-1])
            return []

        resolver = ViewNameResolver(
            self.document.view_names(),
            template=self.config.name_template,
            timestamp_format=self.config.timestamp_format,
            clock=self.clock
        )

        views = []
        with transaction(self.document, self.config.transaction_name):
            for level in levels:
                view = self._derive_one(level, resolver, warnings)
                if view is not None:
                    views.append(view)

        logger.info(f"Created {len(views)} floor plans for {len(levels)} new levels")
        return views

    def _derive_one(
        self,
        level: Level,
        resolver: ViewNameResolver,
        warnings: List[str]
    ) -> Optional[DerivedView]:
        try:
            handle = self.document.create_plan_view(level)
        except DocumentOperationError as e:
            self._warn(warnings, f"Could not create the view for level '{level.name}'. {e}")
            return None

        name = resolver.propose(level.name)
        try:
            self.document.rename_view(handle, name)
        except DocumentOperationError as e:
            self._warn(warnings, f"View for level '{level.name}' could not be named '{name}'. {e}")
            return None
        resolver.register(name)

        try:
            self.document.set_view_scale(handle, self.config.scale)
            # Crop region is switched on, then hidden
            self.document.set_view_crop(handle, active=self.config.crop_active, visible=self.config.crop_visible)
        except DocumentOperationError as e:
            self._warn(warnings, f"View '{name}': scale or crop region could not be set. {e}")

        return DerivedView(
            owner_name=level.name,
            final_view_name=name,
            scale=self.config.scale,
            crop_active=self.config.crop_active,
            crop_visible=self.config.crop_visible,
            identity=handle
        )

    @staticmethod
    def _warn(warnings: List[str], message: str):
        warnings.append(message)
        logger.warning(message)
