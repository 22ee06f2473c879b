from crawler_framework.spells import (
    AllOf,
    AnyOf,
    BattleContext,
    Compare,
    Comparator,
    If,
    Leaf,
    Not,
    Quantity,
    Sequence,
    Subject,
    iter_leaves,
    reached_leaves,
    sequence_of,
)
from crawler_framework.spells.logic import (
    node_from_dict,
    node_to_dict,
    predicate_from_dict,
    predicate_to_dict,
)


def test_sequence_of():
    assert sequence_of("a", "b") == Sequence((Leaf("a"), Leaf("b")))


def test_sequence_children_become_tuple():
    node = Sequence([Leaf("a")])
    assert node.children == (Leaf("a"),)


def test_iter_leaves_ignores_predicates():
    never = Compare(Subject.SELF, Quantity.TURN, Comparator.LT, 0)
    tree = Sequence((Leaf("a"), If(never, Leaf("b"), Leaf("c")), Leaf("d")))
    assert [leaf.fragment_id for leaf in iter_leaves(tree)] == ["a", "b", "c", "d"]


def test_reached_leaves_follows_branches():
    first_turn = Compare(Subject.SELF, Quantity.TURN, Comparator.EQ, 1)
    tree = Sequence((If(first_turn, Leaf("opener"), Leaf("follow")), Leaf("always")))

    turn_one = [leaf.fragment_id for leaf in reached_leaves(tree, BattleContext(turn=1))]
    turn_two = [leaf.fragment_id for leaf in reached_leaves(tree, BattleContext(turn=2))]

    assert turn_one == ["opener", "always"]
    assert turn_two == ["follow", "always"]


def test_comparators():
    assert Comparator.LT.test(1, 2)
    assert Comparator.LE.test(2, 2)
    assert Comparator.EQ.test(3, 3)
    assert Comparator.NE.test(3, 4)
    assert Comparator.GE.test(4, 4)
    assert Comparator.GT.test(5, 4)
    assert not Comparator.GT.test(4, 4)


def test_predicate_dict_round_trip():
    pred = AllOf((
        Compare(Subject.TARGET, Quantity.CELL_B, Comparator.GT, 1),
        AnyOf((
            Not(Compare(Subject.SELF, Quantity.GAUGE, Comparator.LT, 3)),
            Compare(Subject.TARGET, Quantity.ZERO_CELLS, Comparator.GE, 2),
        )),
    ))
    assert predicate_from_dict(predicate_to_dict(pred)) == pred


def test_node_dict_round_trip():
    check = Compare(Subject.TARGET, Quantity.MAGNITUDE, Comparator.LE, 4)
    tree = Sequence((Leaf("a"), If(check, Leaf("b")), If(check, Leaf("c"), sequence_of("d", "e"))))
    assert node_from_dict(node_to_dict(tree)) == tree
