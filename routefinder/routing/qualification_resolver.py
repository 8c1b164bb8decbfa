"""
Qualification Resolver - Declared Equivalences Between Credential Labels

Some credentials are recorded under more than one label (e.g. the South
African family medicine fellowship appears as both "FCFP(SA)" and "FCFP").
Each declared group forms an equivalence class: membership is reflexive,
symmetric and transitive regardless of which label a route or a user
supplies. Labels that were never declared are only equivalent to themselves.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import AbstractSet, Dict, FrozenSet, Iterable, List

import yaml

from ..config import get_settings
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class QualificationResolver:
    """
    Resolves qualification labels to their equivalence classes.

    Classes are merged eagerly when groups are declared, so lookups are
    plain dictionary reads and never mutate state.
    """

    def __init__(self, equivalences: Iterable[Iterable[str]] = ()):
        self._classes: Dict[str, FrozenSet[str]] = {}
        for group in equivalences:
            self.declare(*group)

    @classmethod
    def from_yaml(cls, path: Path) -> QualificationResolver:
        """Load equivalence groups from a YAML file with an ``equivalences`` list."""
        if not path.exists():
            logger.warning(f"Synonyms file not found: {path}; exact matching only")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing {path}: {e}") from e

        groups = data.get("equivalences") or []
        if not isinstance(groups, list):
            raise ConfigurationError(f"'equivalences' in {path} must be a list of label groups")
        for group in groups:
            if not isinstance(group, list) or not all(isinstance(label, str) for label in group):
                raise ConfigurationError(f"Invalid equivalence group in {path}: {group!r}")

        resolver = cls(groups)
        logger.info(f"Loaded {len(resolver.groups())} qualification equivalence group(s)")
        return resolver

    def declare(self, *labels: str) -> None:
        """Declare the given labels (and everything already equivalent to them) interchangeable."""
        merged = set(labels)
        for label in labels:
            merged |= self._classes.get(label, frozenset())
        members = frozenset(merged)
        for label in members:
            self._classes[label] = members

    def equivalents(self, label: str) -> FrozenSet[str]:
        """All labels interchangeable with ``label``, including itself."""
        return self._classes.get(label, frozenset((label,)))

    def are_equivalent(self, first: str, second: str) -> bool:
        return first == second or second in self._classes.get(first, frozenset())

    def is_satisfied(self, required: str, held: AbstractSet[str]) -> bool:
        """Check whether any held credential satisfies the required one."""
        if required in held:
            return True
        return any(label in held for label in self.equivalents(required))

    def groups(self) -> List[List[str]]:
        """Declared equivalence classes, each sorted, in sorted order."""
        unique = {members for members in self._classes.values()}
        return sorted(sorted(members) for members in unique)


@lru_cache
def get_qualification_resolver() -> QualificationResolver:
    return QualificationResolver.from_yaml(get_settings().synonyms_file)
