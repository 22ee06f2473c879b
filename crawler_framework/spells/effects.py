"""
Spell effect application.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from crawler_engine.algebra import Matrix, apply
from crawler_framework.config import RulesConfig
from crawler_framework.spells.logic import BattleContext, reached_leaves
from crawler_framework.spells.spell import Spell


@dataclass(frozen=True)
class EffectTrace:
    """Step-by-step record of one application, for renderers and replays."""
    before: Matrix
    after: Matrix
    steps: tuple[tuple[str, Matrix], ...] = field(default_factory=tuple)


def trace_effect(
    target_matrix: Matrix,
    spell: Spell,
    context: BattleContext,
    config: Optional[RulesConfig] = None,
) -> EffectTrace:
    """
    Apply a spell and record every fold step.

    Each reached leaf is folded as apply(op, target, fragment.matrix) and
    the result is clamped into [health_floor, health_ceiling] straight
    away, before the next leaf sees it.
    """
    config = config or RulesConfig()
    current = target_matrix
    steps: list[tuple[str, Matrix]] = []

    for leaf in reached_leaves(spell.logic, context):
        frag = spell.fragment(leaf.fragment_id)
        current = apply(frag.operation, current, frag.matrix).clamp(
            config.health_floor, config.health_ceiling
        )
        steps.append((frag.id, current))

    return EffectTrace(before=target_matrix, after=current, steps=tuple(steps))


def apply_effect(
    target_matrix: Matrix,
    spell: Spell,
    context: BattleContext,
    config: Optional[RulesConfig] = None,
) -> Matrix:
    """Apply a spell to a health matrix and return the new matrix."""
    return trace_effect(target_matrix, spell, context, config).after
