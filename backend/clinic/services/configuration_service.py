"""
Configuration service: the controlled vocabularies edited on the settings page.

The service only swaps its reference to an immutable Configuration; readers
holding an older value keep a consistent catalog. Removing a value never
touches records that already use it.
"""

import logging
from typing import List, Optional, Sequence

from clinic.core.exceptions import ValidationError
from clinic.core.validation import require_choice, require_text
from clinic.domain.defaults import default_configuration
from clinic.domain.entities import Actor, Configuration, Muscle, MuscleSide
from clinic.services.base_service import require_admin

logger = logging.getLogger(__name__)


class ConfigurationService:
    def __init__(self, initial: Optional[Configuration] = None):
        self._current = initial or default_configuration()

    @property
    def current(self) -> Configuration:
        return self._current

    def _publish(self, actor: Actor, configuration: Configuration, change: str) -> Configuration:
        self._current = configuration
        logger.info(
            "Configuration updated",
            extra={
                "context": {
                    "change": change,
                    "version": configuration.version,
                    "actor_id": actor.id,
                }
            },
        )
        return configuration

    @staticmethod
    def _check_kind(kind: str) -> str:
        return require_choice(kind, Configuration.VOCABULARIES, "kind")

    def update(self, actor: Actor, **lists: Sequence[str]) -> Configuration:
        """Replace whole vocabularies at once."""
        require_admin(actor)
        for kind in lists:
            self._check_kind(kind)
        return self._publish(actor, self._current.evolve(**lists), "update")

    def add_value(self, actor: Actor, kind: str, value: str) -> Configuration:
        require_admin(actor)
        kind = self._check_kind(kind)
        value = require_text(value, kind)
        values: List[str] = list(getattr(self._current, kind))
        if value in values:
            return self._current
        return self._publish(
            actor, self._current.evolve(**{kind: values + [value]}), f"add {kind}"
        )

    def remove_value(self, actor: Actor, kind: str, value: str) -> Configuration:
        require_admin(actor)
        kind = self._check_kind(kind)
        values = [v for v in getattr(self._current, kind) if v != value]
        return self._publish(
            actor, self._current.evolve(**{kind: values}), f"remove {kind}"
        )

    def add_muscle(
        self, actor: Actor, name: str, region: str, side: str = MuscleSide.BOTH.value
    ) -> Configuration:
        require_admin(actor)
        name = require_text(name, "name")
        region = require_text(region, "region")
        if any(m.name == name and m.region == region for m in self._current.muscles):
            raise ValidationError("muscle already exists in this region", "name")
        numeric_ids = [int(m.id) for m in self._current.muscles if m.id.isdigit()]
        muscle = Muscle(
            id=str(max(numeric_ids, default=0) + 1), name=name, region=region, side=side
        )
        muscles = self._current.muscles + (muscle,)
        return self._publish(actor, self._current.evolve(muscles=muscles), "add muscle")

    def remove_muscle(self, actor: Actor, muscle_id: str) -> Configuration:
        require_admin(actor)
        muscles = tuple(m for m in self._current.muscles if m.id != muscle_id)
        return self._publish(actor, self._current.evolve(muscles=muscles), "remove muscle")
