"""
Conditional spell logic - a finite tree of tagged nodes.

A spell's logic is a tree of:
- Leaf(fragment_id): apply one fragment
- If(predicate, then, otherwise): branch on the battle context
- Sequence(children): apply children left to right

Predicates read a BattleContext snapshot and never mutate anything.

Usage:
    logic = If(
        Compare(Subject.TARGET, Quantity.CELL_A, Comparator.GT, 0),
        then=Leaf("strike_a"),
        otherwise=Leaf("strike_d"),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Union

from crawler_engine.algebra import Matrix


@dataclass(frozen=True)
class CombatantSnapshot:
    """Read-only view of one combatant at evaluation time."""
    health: Matrix = Matrix.zero()
    gauge: int = 0
    gauge_max: int = 0


@dataclass(frozen=True)
class BattleContext:
    """
    Read-only battle snapshot used to evaluate spell predicates.

    Attributes:
        caster: The combatant casting the spell
        target: The combatant being affected
        turn: Current battle round (starts at 1)
    """
    caster: CombatantSnapshot = field(default_factory=CombatantSnapshot)
    target: CombatantSnapshot = field(default_factory=CombatantSnapshot)
    turn: int = 1


class Subject(Enum):
    SELF = "self"
    TARGET = "target"


class Quantity(Enum):
    """Values a predicate can read."""
    CELL_A = "cell_a"
    CELL_B = "cell_b"
    CELL_C = "cell_c"
    CELL_D = "cell_d"
    MAGNITUDE = "magnitude"
    ZERO_CELLS = "zero_cells"
    GAUGE = "gauge"
    TURN = "turn"


class Comparator(Enum):
    LT = "<"
    LE = "<="
    EQ = "=="
    NE = "!="
    GE = ">="
    GT = ">"

    def test(self, left: int, right: int) -> bool:
        if self is Comparator.LT:
            return left < right
        if self is Comparator.LE:
            return left <= right
        if self is Comparator.EQ:
            return left == right
        if self is Comparator.NE:
            return left != right
        if self is Comparator.GE:
            return left >= right
        return left > right


def _read(context: BattleContext, subject: Subject, quantity: Quantity) -> int:
    if quantity is Quantity.TURN:
        return context.turn

    snap = context.caster if subject is Subject.SELF else context.target
    if quantity is Quantity.CELL_A:
        return snap.health.a
    if quantity is Quantity.CELL_B:
        return snap.health.b
    if quantity is Quantity.CELL_C:
        return snap.health.c
    if quantity is Quantity.CELL_D:
        return snap.health.d
    if quantity is Quantity.MAGNITUDE:
        return snap.health.magnitude
    if quantity is Quantity.ZERO_CELLS:
        return snap.health.zero_cells
    return snap.gauge


# Predicates

@dataclass(frozen=True)
class Compare:
    """subject.quantity <comparator> value"""
    subject: Subject
    quantity: Quantity
    comparator: Comparator
    value: int

    def evaluate(self, context: BattleContext) -> bool:
        return self.comparator.test(_read(context, self.subject, self.quantity), self.value)


@dataclass(frozen=True)
class AllOf:
    predicates: tuple[Predicate, ...]

    def evaluate(self, context: BattleContext) -> bool:
        return all(p.evaluate(context) for p in self.predicates)


@dataclass(frozen=True)
class AnyOf:
    predicates: tuple[Predicate, ...]

    def evaluate(self, context: BattleContext) -> bool:
        return any(p.evaluate(context) for p in self.predicates)


@dataclass(frozen=True)
class Not:
    predicate: Predicate

    def evaluate(self, context: BattleContext) -> bool:
        return not self.predicate.evaluate(context)


Predicate = Union[Compare, AllOf, AnyOf, Not]


# Nodes

@dataclass(frozen=True)
class Leaf:
    """Apply one fragment."""
    fragment_id: str


@dataclass(frozen=True)
class If:
    """Branch on a predicate. A missing otherwise-branch does nothing."""
    predicate: Predicate
    then: ConditionalNode
    otherwise: Optional[ConditionalNode] = None


@dataclass(frozen=True)
class Sequence:
    """Apply children in order."""
    children: tuple[ConditionalNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'children', tuple(self.children))


ConditionalNode = Union[Leaf, If, Sequence]


def child_nodes(node: ConditionalNode) -> tuple[ConditionalNode, ...]:
    """Direct children of a node, in evaluation order."""
    if isinstance(node, Sequence):
        return node.children
    if isinstance(node, If):
        if node.otherwise is None:
            return (node.then,)
        return (node.then, node.otherwise)
    return ()


def iter_leaves(node: ConditionalNode) -> Iterator[Leaf]:
    """Every leaf in tree order, ignoring predicates."""
    if isinstance(node, Leaf):
        yield node
        return
    for child in child_nodes(node):
        yield from iter_leaves(child)


def reached_leaves(node: ConditionalNode, context: BattleContext) -> Iterator[Leaf]:
    """Leaves reached when the tree is evaluated against a context."""
    if isinstance(node, Leaf):
        yield node
    elif isinstance(node, Sequence):
        for child in node.children:
            yield from reached_leaves(child, context)
    elif isinstance(node, If):
        branch = node.then if node.predicate.evaluate(context) else node.otherwise
        if branch is not None:
            yield from reached_leaves(branch, context)


def sequence_of(*fragment_ids: str) -> Sequence:
    """Shorthand for a flat sequence of leaves."""
    return Sequence(tuple(Leaf(fid) for fid in fragment_ids))


# Serialization

def predicate_to_dict(pred: Predicate) -> dict[str, Any]:
    if isinstance(pred, Compare):
        return {
            'kind': 'compare',
            'subject': pred.subject.value,
            'quantity': pred.quantity.value,
            'comparator': pred.comparator.value,
            'value': pred.value,
        }
    if isinstance(pred, AllOf):
        return {'kind': 'all', 'of': [predicate_to_dict(p) for p in pred.predicates]}
    if isinstance(pred, AnyOf):
        return {'kind': 'any', 'of': [predicate_to_dict(p) for p in pred.predicates]}
    if isinstance(pred, Not):
        return {'kind': 'not', 'predicate': predicate_to_dict(pred.predicate)}
    raise TypeError(f"Not a predicate: {pred!r}")


def predicate_from_dict(data: dict[str, Any]) -> Predicate:
    kind = data['kind']
    if kind == 'compare':
        return Compare(
            Subject(data['subject']),
            Quantity(data['quantity']),
            Comparator(data['comparator']),
            int(data['value']),
        )
    if kind == 'all':
        return AllOf(tuple(predicate_from_dict(p) for p in data['of']))
    if kind == 'any':
        return AnyOf(tuple(predicate_from_dict(p) for p in data['of']))
    if kind == 'not':
        return Not(predicate_from_dict(data['predicate']))
    raise ValueError(f"Unknown predicate kind: {kind}")


def node_to_dict(node: ConditionalNode) -> dict[str, Any]:
    if isinstance(node, Leaf):
        return {'kind': 'leaf', 'fragment': node.fragment_id}
    if isinstance(node, If):
        return {
            'kind': 'if',
            'predicate': predicate_to_dict(node.predicate),
            'then': node_to_dict(node.then),
            'otherwise': node_to_dict(node.otherwise) if node.otherwise is not None else None,
        }
    if isinstance(node, Sequence):
        return {'kind': 'sequence', 'children': [node_to_dict(c) for c in node.children]}
    raise TypeError(f"Not a logic node: {node!r}")


def node_from_dict(data: dict[str, Any]) -> ConditionalNode:
    kind = data['kind']
    if kind == 'leaf':
        return Leaf(data['fragment'])
    if kind == 'if':
        otherwise = data.get('otherwise')
        return If(
            predicate_from_dict(data['predicate']),
            node_from_dict(data['then']),
            node_from_dict(otherwise) if otherwise is not None else None,
        )
    if kind == 'sequence':
        return Sequence(tuple(node_from_dict(c) for c in data['children']))
    raise ValueError(f"Unknown node kind: {kind}")
