import math

import pytest

from src.recipe_ranker.embeddings.vectors import (
    calculate_average_embedding,
    cosine_similarity,
    dominant_length,
    is_valid_embedding,
    normalize_embedding,
)


def test_average_then_normalize_two_orthogonal_ingredients():
    """돼지고기 + 두부 -> mean [0.5, 0.5, 0, 0, 0] -> unit vector."""
    avg = calculate_average_embedding([[1, 0, 0, 0, 0], [0, 1, 0, 0, 0]])
    assert avg == [0.5, 0.5, 0.0, 0.0, 0.0]

    unit = normalize_embedding(avg)
    assert unit == pytest.approx([0.7071, 0.7071, 0.0, 0.0, 0.0], abs=1e-4)


def test_mismatched_lengths_keep_first_seen_on_tie():
    # One vector of each length: the first length seen (3) wins, [1, 2] is dropped
    assert calculate_average_embedding([[1, 2, 3], [1, 2]]) == [1.0, 2.0, 3.0]


def test_mismatched_lengths_majority_wins():
    avg = calculate_average_embedding([[1, 2, 3], [1, 2], [3, 4]])
    assert avg == [2.0, 3.0]


def test_dominant_length():
    assert dominant_length([[1], [1, 2], [3, 4], [5]]) == 1
    assert dominant_length([[1, 2], [1], [3, 4]]) == 2


def test_average_of_nothing_is_none():
    assert calculate_average_embedding([]) is None
    assert calculate_average_embedding([[], [float("nan")], ["a"]]) is None


def test_average_ignores_invalid_vectors():
    assert calculate_average_embedding([[2, 4], [float("inf"), 0], [4, 8]]) == [3.0, 6.0]


def test_average_component_wise_mean_and_deterministic():
    vecs = [[1.0, -2.0, 3.5], [3.0, 2.0, 0.5], [2.0, 6.0, -1.0]]
    first = calculate_average_embedding(vecs)
    second = calculate_average_embedding(vecs)
    assert first == second
    assert len(first) == 3
    assert first == pytest.approx([2.0, 2.0, 1.0])


def test_normalize_zero_vector_returned_unchanged():
    assert normalize_embedding([0, 0, 0]) == [0, 0, 0]


@pytest.mark.parametrize(
    "vec",
    [[3, 4], [0.1, -0.2, 0.3, 0.9], [1e-3, 5.0, 7.25], [1, 0, 0]],
)
def test_normalize_is_idempotent(vec):
    once = normalize_embedding(vec)
    twice = normalize_embedding(once)
    assert twice == pytest.approx(once)
    assert math.sqrt(sum(v * v for v in once)) == pytest.approx(1.0)


def test_is_valid_embedding():
    assert is_valid_embedding([0.1, 2, -3])
    assert not is_valid_embedding([])
    assert not is_valid_embedding("[1, 2]")
    assert not is_valid_embedding([1, None])
    assert not is_valid_embedding([True, 1.0])
    assert not is_valid_embedding([1.0, float("nan")])


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 2], [1, 2, 3]) == 0.0
    assert cosine_similarity([0, 0], [1, 1]) == 0.0
