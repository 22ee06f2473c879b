"""
Dungeon themes - depth-weighted visual and population sets.

Each theme carries a weight curve over depth. At generation time every
curve is evaluated, a primary theme is drawn by weight and an optional
secondary theme is blended in.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from crawler_engine.core.rng import weighted_choice


MAX_BLEND = 0.5


@dataclass(frozen=True)
class WeightCurve:
    """
    Piecewise linear weight over depth, clamped at both ends.

    Attributes:
        points: (depth, weight) control points, depths strictly increasing
    """
    points: tuple[tuple[int, float], ...]

    def __post_init__(self) -> None:
        if not self.points:
            raise ValueError("Weight curve needs at least one control point")
        previous = None
        for depth, weight in self.points:
            if weight < 0:
                raise ValueError(f"Negative weight {weight} at depth {depth}")
            if previous is not None and depth <= previous:
                raise ValueError("Control point depths must be strictly increasing")
            previous = depth

    @classmethod
    def from_list(cls, raw: Iterable[Sequence[float]]) -> WeightCurve:
        points = []
        for point in raw:
            if len(point) != 2:
                raise ValueError(f"Control point {point!r} is not a (depth, weight) pair")
            points.append((int(point[0]), float(point[1])))
        return cls(tuple(points))

    def at(self, depth: int) -> float:
        first_depth, first_weight = self.points[0]
        if depth <= first_depth:
            return first_weight

        for (d0, w0), (d1, w1) in zip(self.points, self.points[1:]):
            if depth <= d1:
                t = (depth - d0) / (d1 - d0)
                return w0 + (w1 - w0) * t

        return self.points[-1][1]

    def to_list(self) -> list[list[float]]:
        return [[d, w] for d, w in self.points]


@dataclass(frozen=True)
class ThemeDescriptor:
    """
    Catalog entry for a theme.

    Attributes:
        id: Catalog id
        name: Display name
        weight: Selection weight over depth
        difficulty: Multiplier applied to enemy health at depths it dominates
        enemy_pool: Enemy type ids this theme spawns
        fragment_pool: Fragment ids this theme places as items
        appearance: Tag per cell kind value (e.g. {"#": "crypt.wall"})
    """
    id: str
    name: str
    weight: WeightCurve
    difficulty: float = 1.0
    enemy_pool: tuple[str, ...] = ()
    fragment_pool: tuple[str, ...] = ()
    appearance: dict[str, str] = field(default_factory=dict)

    def weight_at(self, depth: int) -> float:
        return self.weight.at(depth)

    def tag_for(self, kind_value: str) -> str:
        """Appearance tag for a cell kind; falls back to '<theme>.<kind>'."""
        return self.appearance.get(kind_value, f"{self.id}.{kind_value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'weight_curve': self.weight.to_list(),
            'difficulty': self.difficulty,
            'enemy_pool': list(self.enemy_pool),
            'fragment_pool': list(self.fragment_pool),
            'appearance': dict(self.appearance),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ThemeDescriptor:
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            weight=WeightCurve.from_list(data['weight_curve']),
            difficulty=float(data.get('difficulty', 1.0)),
            enemy_pool=tuple(data.get('enemy_pool', [])),
            fragment_pool=tuple(data.get('fragment_pool', [])),
            appearance=dict(data.get('appearance', {})),
        )


@dataclass(frozen=True)
class ThemeBlend:
    """Themes chosen for one depth."""
    primary: str
    secondary: Optional[str] = None
    blend: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {'primary': self.primary, 'secondary': self.secondary, 'blend': self.blend}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ThemeBlend:
        return cls(
            primary=data['primary'],
            secondary=data.get('secondary'),
            blend=float(data.get('blend', 0.0)),
        )


def select_themes(
    themes: Sequence[ThemeDescriptor],
    depth: int,
    rng: random.Random,
) -> ThemeBlend:
    """
    Draw the primary and optional secondary theme for a depth.

    When no theme has positive weight at this depth, the first theme is
    used on its own.
    """
    if not themes:
        raise ValueError("At least one theme is required")

    weights = [t.weight_at(depth) for t in themes]
    primary = weighted_choice(rng, themes, weights)
    if primary is None:
        return ThemeBlend(primary=themes[0].id)

    rest = [t for t in themes if t.id != primary.id]
    rest_weights = [t.weight_at(depth) for t in rest]
    secondary = weighted_choice(rng, rest, rest_weights)
    if secondary is None:
        return ThemeBlend(primary=primary.id)

    w1 = primary.weight_at(depth)
    w2 = secondary.weight_at(depth)
    blend = min(MAX_BLEND, w2 / (w1 + w2))
    return ThemeBlend(primary=primary.id, secondary=secondary.id, blend=blend)


def blended_difficulty(themes: Sequence[ThemeDescriptor], depth: int) -> float:
    """Weight-averaged difficulty multiplier of all themes at a depth."""
    weights = [t.weight_at(depth) for t in themes]
    total = sum(weights)
    if total <= 0:
        return 1.0
    return sum(t.difficulty * w for t, w in zip(themes, weights)) / total


def difficulty_at(themes: Sequence[ThemeDescriptor], depth: int) -> float:
    """
    Running maximum of the blended difficulty over depths 0..depth.

    Keeps enemy strength from dipping when a gentler theme takes over.
    """
    return max(blended_difficulty(themes, d) for d in range(depth + 1))
