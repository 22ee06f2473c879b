"""
Spell fragments - collectible (matrix, operation, pattern) units.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from crawler_engine.algebra import Matrix, Operation
from crawler_framework.spells.pattern import PatternMode, TargetPattern


@dataclass(frozen=True)
class SpellFragment:
    """
    Immutable catalog entry for one spell fragment.

    Attributes:
        id: Catalog id
        name: Display name (data only; the core never formats it)
        matrix: Contributed matrix
        operation: Contributed operation
        pattern: Explicit target pattern, or None to derive from matrix
        pattern_mode: UNION adds to the spell's pattern, OVERRIDE replaces it
        weight: Base cost weight
        rarity: Relative drop/placement weight
    """
    id: str
    name: str = ""
    matrix: Matrix = Matrix.identity()
    operation: Operation = Operation.ADD
    pattern: Optional[TargetPattern] = None
    pattern_mode: PatternMode = PatternMode.UNION
    weight: int = 1
    rarity: float = 1.0

    @property
    def target_pattern(self) -> TargetPattern:
        """Effective pattern: explicit if given, else derived from the matrix."""
        if self.pattern is not None:
            return self.pattern
        return TargetPattern.from_matrix(self.matrix)

    def scaled(self, factor: int) -> SpellFragment:
        """
        Copy with the matrix scaled by an integer factor.

        The pattern is frozen at the unscaled one so that scaling power
        does not also widen the area.
        """
        if factor == 1:
            return self
        return replace(
            self,
            matrix=self.matrix.scaled(factor),
            pattern=self.target_pattern,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'matrix': self.matrix.to_list(),
            'operation': self.operation.value,
            'pattern': self.pattern.to_dict() if self.pattern is not None else None,
            'pattern_mode': self.pattern_mode.value,
            'weight': self.weight,
            'rarity': self.rarity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpellFragment:
        pattern_data = data.get('pattern')
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            matrix=Matrix.from_cells(data['matrix']),
            operation=Operation(data['operation']),
            pattern=TargetPattern.from_dict(pattern_data) if pattern_data is not None else None,
            pattern_mode=PatternMode(data.get('pattern_mode', PatternMode.UNION.value)),
            weight=int(data.get('weight', 1)),
            rarity=float(data.get('rarity', 1.0)),
        )
