"""
Spell composition and cost.

Composition is a separate phase from casting: a Spell is built once from
fragments and a logic tree, validated, priced, and then cast any number
of times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Iterable, Optional

from crawler_engine.algebra import Matrix, apply
from crawler_framework.config import RulesConfig
from crawler_framework.spells.fragment import SpellFragment
from crawler_framework.spells.logic import (
    ConditionalNode,
    If,
    Leaf,
    Sequence,
    child_nodes,
    iter_leaves,
    node_from_dict,
    node_to_dict,
    sequence_of,
)
from crawler_framework.spells.pattern import PatternMode, TargetPattern

if TYPE_CHECKING:
    from crawler_framework.catalog import GameCatalog
    from crawler_framework.components import FragmentInventory

logger = logging.getLogger(__name__)


class CompositionErrorKind(Enum):
    UNKNOWN_FRAGMENT = auto()
    TREE_TOO_LARGE = auto()
    EMPTY = auto()
    CYCLIC = auto()
    MALFORMED = auto()


@dataclass(frozen=True)
class CompositionError:
    """
    Why a spell could not be composed.

    Returned, never raised. Nothing is mutated when composition fails.
    """
    kind: CompositionErrorKind
    message: str = ""
    fragment_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Spell:
    """
    A composed spell.

    Attributes:
        name: Player-chosen label
        fragments: Fragments available to the logic tree, in supplied order
        logic: Conditional logic tree
        pattern: Final target pattern
        cost: Gauge cost per cast
        preview: Identity folded through every leaf in tree order
        magnitude: Sum of leaf fragment magnitudes
    """
    name: str
    fragments: tuple[SpellFragment, ...]
    logic: ConditionalNode
    pattern: TargetPattern
    cost: int
    preview: Matrix
    magnitude: int

    @property
    def ok(self) -> bool:
        return True

    def fragment(self, fragment_id: str) -> SpellFragment:
        for frag in self.fragments:
            if frag.id == fragment_id:
                return frag
        raise KeyError(fragment_id)

    @property
    def leaf_fragments(self) -> list[SpellFragment]:
        """Fragment of every leaf, in tree order (ignoring predicates)."""
        return [self.fragment(leaf.fragment_id) for leaf in iter_leaves(self.logic)]

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'fragments': [f.to_dict() for f in self.fragments],
            'logic': node_to_dict(self.logic),
            'pattern': self.pattern.to_dict(),
            'cost': self.cost,
            'preview': self.preview.to_list(),
            'magnitude': self.magnitude,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Spell:
        return cls(
            name=data['name'],
            fragments=tuple(SpellFragment.from_dict(f) for f in data['fragments']),
            logic=node_from_dict(data['logic']),
            pattern=TargetPattern.from_dict(data['pattern']),
            cost=int(data['cost']),
            preview=Matrix.from_cells(data['preview']),
            magnitude=int(data['magnitude']),
        )


def _check_tree(
    logic: Any,
    config: RulesConfig,
) -> Optional[CompositionError]:
    """Validate size, depth and shape of the tree."""
    count = 0

    def visit(node: Any, depth: int, path: tuple[int, ...]) -> Optional[CompositionError]:
        nonlocal count
        if not isinstance(node, (Leaf, If, Sequence)):
            return CompositionError(
                CompositionErrorKind.MALFORMED,
                f"Not a logic node: {type(node).__name__}",
            )
        if id(node) in path:
            return CompositionError(
                CompositionErrorKind.CYCLIC,
                "Logic tree refers back to one of its own ancestors",
            )

        count += 1
        if count > config.max_tree_nodes:
            return CompositionError(
                CompositionErrorKind.TREE_TOO_LARGE,
                f"Logic tree has more than {config.max_tree_nodes} nodes",
            )
        if depth > config.max_tree_depth:
            return CompositionError(
                CompositionErrorKind.TREE_TOO_LARGE,
                f"Logic tree is deeper than {config.max_tree_depth}",
            )

        for child in child_nodes(node):
            error = visit(child, depth + 1, path + (id(node),))
            if error is not None:
                return error
        return None

    return visit(logic, 1, ())


def _fold_pattern(leaves: Iterable[SpellFragment]) -> TargetPattern:
    pattern = TargetPattern.self_target()
    for frag in leaves:
        if frag.pattern_mode is PatternMode.OVERRIDE:
            pattern = frag.target_pattern
        else:
            pattern = pattern.union(frag.target_pattern)
    return pattern


def cast_cost(spell: Spell, config: Optional[RulesConfig] = None) -> int:
    """
    Gauge cost of a spell.

        cost = base
             + sum(op_weight[op] * fragment.weight for every leaf)
             + pattern.size * area_factor
             + magnitude * magnitude_factor

    Every term is non-negative, so cost is monotonic in operation
    weight, area and magnitude.
    """
    config = config or RulesConfig()
    leaves = spell.leaf_fragments
    op_term = sum(config.operation_weight(f.operation) * f.weight for f in leaves)
    return (
        config.base_cost
        + op_term
        + spell.pattern.size * config.area_cost_factor
        + spell.magnitude * config.magnitude_cost_factor
    )


def compose_spell(
    fragments: Iterable[SpellFragment],
    logic: Optional[ConditionalNode] = None,
    *,
    name: str = "",
    config: Optional[RulesConfig] = None,
) -> Spell | CompositionError:
    """
    Compose a spell.

    Args:
        fragments: Ordered fragments the logic may reference
        logic: Logic tree; defaults to a flat sequence over the fragments
        name: Spell label
        config: Rules (tree limits, cost constants)

    Returns:
        The Spell, or a CompositionError describing the first problem found
    """
    config = config or RulesConfig()
    fragment_list = list(fragments)
    if not fragment_list:
        return CompositionError(CompositionErrorKind.EMPTY, "No fragments supplied")

    if logic is None:
        logic = sequence_of(*(f.id for f in fragment_list))

    error = _check_tree(logic, config)
    if error is not None:
        return error

    by_id: dict[str, SpellFragment] = {}
    for frag in fragment_list:
        by_id.setdefault(frag.id, frag)

    leaves = list(iter_leaves(logic))
    for leaf in leaves:
        if leaf.fragment_id not in by_id:
            return CompositionError(
                CompositionErrorKind.UNKNOWN_FRAGMENT,
                f"Logic references fragment '{leaf.fragment_id}' which was not supplied",
                fragment_id=leaf.fragment_id,
            )

    if not leaves:
        return CompositionError(CompositionErrorKind.EMPTY, "Logic tree has no leaves")

    leaf_frags = [by_id[leaf.fragment_id] for leaf in leaves]

    preview = Matrix.identity()
    for frag in leaf_frags:
        preview = apply(frag.operation, preview, frag.matrix)

    spell = Spell(
        name=name or "+".join(f.id for f in leaf_frags),
        fragments=tuple(by_id.values()),
        logic=logic,
        pattern=_fold_pattern(leaf_frags),
        cost=0,
        preview=preview,
        magnitude=sum(f.matrix.magnitude for f in leaf_frags),
    )
    spell = replace(spell, cost=cast_cost(spell, config))
    logger.debug(f"Composed spell {spell.name!r} (cost {spell.cost})")
    return spell


def compose_from_inventory(
    catalog: GameCatalog,
    inventory: FragmentInventory,
    fragment_ids: Iterable[str],
    logic: Optional[ConditionalNode] = None,
    *,
    name: str = "",
    config: Optional[RulesConfig] = None,
) -> Spell | CompositionError:
    """
    Compose from fragment ids the player owns.

    Ids missing from the catalog or the inventory are UNKNOWN_FRAGMENT.
    """
    fragments = []
    for fragment_id in fragment_ids:
        fragment = catalog.fragments.get(fragment_id)
        if fragment is None or not inventory.has(fragment_id):
            return CompositionError(
                CompositionErrorKind.UNKNOWN_FRAGMENT,
                f"Fragment '{fragment_id}' is not in the inventory",
                fragment_id=fragment_id,
            )
        fragments.append(fragment)
    return compose_spell(fragments, logic, name=name, config=config)
