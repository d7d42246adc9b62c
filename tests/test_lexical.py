import pytest

from src.recipe_ranker.matching.lexical import (
    calculate_lexical_score_for_recipe,
    rank_recipes_lexically,
    recommend_recipes_by_lexical_matching,
    score_recipe,
)
from src.recipe_ranker.schema import RecipeRow


def _recipe(rid, *ingredients):
    return RecipeRow(id=rid, title=rid, ingredients=list(ingredients))


def test_score_kimchi_stew_for_pork_and_tofu():
    recipe = _recipe("r1", "돼지고기", "김치", "두부", "설탕")

    score = score_recipe(recipe, ["돼지고기", "두부"])

    assert score.match_count == 2
    assert score.match_ratio == 1.0
    assert score.recipe_ingredient_coverage == 0.5
    assert score.weighted_score == pytest.approx(0.40 + 0.35 + 0.25 * 0.5)


def test_containment_is_symmetric_and_ignores_whitespace():
    recipe = _recipe("r", "돼지고기", "대파")

    assert score_recipe(recipe, ["고기"]).match_count == 1
    assert score_recipe(recipe, ["돼지고기 앞다리살"]).match_count == 1
    assert score_recipe(recipe, ["돼지 고기", " 대 파 "]).match_count == 2
    assert score_recipe(recipe, ["두부"]).match_count == 0


def test_match_count_counts_distinct_user_ingredients():
    recipe = _recipe("r", "두부", "연두부")

    score = score_recipe(recipe, ["두부", "두부"])

    assert score.match_count == 1
    assert score.match_ratio == 1.0


def test_coverage_rounded_to_two_decimals():
    recipe = _recipe("r", "두부", "간장", "설탕")
    assert score_recipe(recipe, ["두부"]).recipe_ingredient_coverage == 0.33


def test_rank_excludes_recipes_without_any_match():
    recipes = [
        _recipe("a", "두부", "간장"),
        _recipe("b", "계란", "우유"),
        _recipe("c", "김치"),
    ]

    ranked = rank_recipes_lexically(["두부", "김치"], recipes)

    assert [s.recipe.id for s in ranked] == ["c", "a"]
    assert all(s.score.match_count > 0 for s in ranked)


def test_scores_stay_within_unit_interval():
    recipes = [
        _recipe("a", "두부"),
        _recipe("b", "두부", "김치", "돼지고기", "대파", "마늘", "고춧가루"),
        _recipe("c", "김치", "김치볶음밥용김치"),
        _recipe("d", "대파"),
    ]
    users = [["두부"], ["두부", "김치", "대파", "마늘", "소금"], ["김치"], ["대", "파"]]

    for user in users:
        for s in rank_recipes_lexically(user, recipes):
            assert 0.0 <= s.score.match_ratio <= 1.0
            assert 0.0 <= s.score.recipe_ingredient_coverage <= 1.0
            assert 0.0 <= s.score.weighted_score <= 1.0


def test_rank_orders_by_match_count_then_weighted_score():
    recipes = [
        _recipe("one_match_small", "두부"),
        _recipe("two_matches_big", "두부", "김치", "a", "b", "c", "d", "e", "f"),
        _recipe("two_matches_small", "두부", "김치", "a"),
    ]

    ranked = rank_recipes_lexically(["두부", "김치", "돼지고기", "대파"], recipes)

    assert [s.recipe.id for s in ranked] == ["two_matches_small", "two_matches_big", "one_match_small"]


def test_rank_caps_results():
    recipes = [_recipe(f"r{i}", "두부", *[f"x{j}" for j in range(i)]) for i in range(30)]

    ranked = rank_recipes_lexically(["두부"], recipes)

    assert len(ranked) == 20
    assert ranked[0].recipe.id == "r0"


def test_rank_with_no_user_ingredients():
    assert rank_recipes_lexically(["", " "], [_recipe("a", "두부")]) == []


def test_single_recipe_score_zero_when_nothing_matches():
    assert calculate_lexical_score_for_recipe(_recipe("a", "계란"), ["두부"]) == 0.0
    assert calculate_lexical_score_for_recipe(_recipe("a", "두부"), ["두부"]) == pytest.approx(1.0)


def test_lexical_matching_against_store(korean_db):
    ranked = recommend_recipes_by_lexical_matching(korean_db, korean_db, ["돼지고기", "두부"])

    ids = [s.recipe.id for s in ranked]
    assert ids[:2] == ["r5", "r1"]
    assert set(ids[2:]) == {"r2", "r3"}
    assert "r4" not in ids
    assert ranked[0].score.weighted_score == pytest.approx(1.0)


def test_lexical_matching_unknown_ingredient_yields_nothing(korean_db):
    assert recommend_recipes_by_lexical_matching(korean_db, korean_db, ["초콜릿"]) == []
    assert korean_db.count("find_recipes_by_ingredient_ids") == 0
    assert korean_db.count("get_recipes_by_ids") == 0


def test_lexical_matching_empty_input_makes_no_calls(korean_db):
    assert recommend_recipes_by_lexical_matching(korean_db, korean_db, []) == []
    assert korean_db.calls == []


def test_lexical_matching_ingredient_without_recipes(korean_db):
    korean_db.add_ingredient(99, "버터")
    assert recommend_recipes_by_lexical_matching(korean_db, korean_db, ["버터"]) == []
    assert korean_db.count("get_recipes_by_ids") == 0


def test_recipe_coverage_counts_each_recipe_ingredient_once():
    recipe = _recipe("r", "돼지고기")

    score = score_recipe(recipe, ["돼지고기", "고기"])

    assert score.match_count == 2
    assert score.recipe_ingredient_coverage == 1.0
    assert score.weighted_score == pytest.approx(1.0)
    assert score_recipe(_recipe("d", "대파"), ["대", "파"]).recipe_ingredient_coverage == 1.0


def test_candidate_cap_keeps_recipes_linked_to_more_ingredients(db):
    db.add_ingredient(1, "설탕")
    db.add_ingredient(2, "두부")
    for i in range(130):
        db.add_recipe(f"s{i}", f"설탕요리 {i}", [1, 2] if i == 125 else [1])

    ranked = recommend_recipes_by_lexical_matching(db, db, ["설탕", "두부"])

    assert ranked[0].recipe.id == "s125"
    assert ranked[0].score.match_count == 2


def test_candidate_lookup_sends_spaced_and_compact_names(korean_db):
    korean_db.add_ingredient(20, "돼지 고기")
    korean_db.add_recipe("r20", "수육", [20])

    seen = []
    find = korean_db.find_ingredients_matching

    def spy(names):
        seen.append(list(names))
        return find(names)

    korean_db.find_ingredients_matching = spy

    ranked = recommend_recipes_by_lexical_matching(korean_db, korean_db, ["돼지 고기"])

    assert seen == [["돼지 고기", "돼지고기"]]
    assert "r20" in [s.recipe.id for s in ranked]
