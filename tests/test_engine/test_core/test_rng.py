import random

from crawler_engine.core.rng import derive_seed, make_rng, weighted_choice


def test_derive_seed_is_stable():
    assert derive_seed(42, 3) == derive_seed(42, 3)


def test_derive_seed_separates_keys():
    seeds = {derive_seed(42, depth) for depth in range(20)}
    assert len(seeds) == 20
    assert derive_seed(42, 1) != derive_seed(43, 1)


def test_make_rng_reproducible():
    a = make_rng(7, "battle", 1)
    b = make_rng(7, "battle", 1)
    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]


def test_weighted_choice_skips_zero_weights():
    rng = random.Random(0)
    picks = {weighted_choice(rng, ["a", "b", "c"], [0, 1, 0]) for _ in range(50)}
    assert picks == {"b"}


def test_weighted_choice_none_without_positive_weight():
    assert weighted_choice(random.Random(0), ["a", "b"], [0, 0]) is None
    assert weighted_choice(random.Random(0), [], []) is None
