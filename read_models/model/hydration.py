"""Row hydration: turns a decoded row into an entity's visible attributes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from read_models.core.markers import filter_generated_keys

if TYPE_CHECKING:
    from read_models.manager import Manager


class Hydrator:
    """Strips generated marker columns then applies the type's casts."""

    def hydrate(
        self,
        manager: Manager,
        casts: Mapping[str, Any],
        raw: Mapping[str, Any],
    ) -> dict[str, Any]:
        attributes = filter_generated_keys(raw)
        if casts:
            attributes = manager.caster.cast(attributes, casts)
        return attributes
