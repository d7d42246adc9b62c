"""
In-memory stand-ins for the Supabase tables and pgvector RPCs.

FakeRecipeDB implements IngredientStore, RecipeStore and
VectorSimilarityService, counts every storage call, and can be told to fail
specific calls.
"""
import json

import pytest

from src.recipe_ranker.embeddings.vectors import cosine_similarity
from src.recipe_ranker.schema import RecipeRow


class StorageDown(RuntimeError):
    pass


class FakeRecipeDB:
    def __init__(self):
        self.ingredients = {}  # id -> {"id", "name", "embedding"}
        self.recipes = {}  # id -> RecipeRow
        self.recipe_embeddings = {}  # recipe id -> list[float]
        self.links = []  # (recipe_id, ingredient_id)
        self.calls = []
        self.fail = set()
        self.match_override = None  # callable(threshold) -> rows

    # -- setup helpers -------------------------------------------------
    def add_ingredient(self, ing_id, name, embedding=None):
        self.ingredients[ing_id] = {"id": ing_id, "name": name, "embedding": embedding}

    def add_recipe(self, recipe_id, title, ingredient_ids, embedding=None, **kw):
        names = [self.ingredients[i]["name"] for i in ingredient_ids]
        self.recipes[recipe_id] = RecipeRow(
            id=recipe_id,
            title=title,
            short_title=kw.get("short_title", title),
            raw_ingredients=kw.get("raw_ingredients", ", ".join(names)),
            ingredients=names,
            image_url=kw.get("image_url", f"https://img.example/{recipe_id}.jpg"),
        )
        for i in ingredient_ids:
            self.links.append((recipe_id, i))
        if embedding is not None:
            self.recipe_embeddings[recipe_id] = embedding

    def _record(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise StorageDown(f"{name} unavailable")

    def count(self, name):
        return self.calls.count(name)

    # -- IngredientStore -----------------------------------------------
    def lookup_ingredients_by_name(self, names):
        self._record("lookup_ingredients_by_name")
        wanted = {n.lower() for n in names}
        return [
            {"name": row["name"], "embedding": row["embedding"]}
            for row in self.ingredients.values()
            if row["name"].lower() in wanted
        ]

    def find_ingredients_matching(self, names):
        self._record("find_ingredients_matching")
        out = []
        for row in self.ingredients.values():
            if any(n.lower() in row["name"].lower() for n in names):
                out.append({"id": row["id"], "name": row["name"]})
        return out

    def list_ingredients_with_counts(self, search="", limit=100, offset=0):
        self._record("list_ingredients_with_counts")
        rows = []
        for row in self.ingredients.values():
            if search and search.lower() not in row["name"].lower():
                continue
            count = sum(1 for _, i in self.links if i == row["id"])
            if count:
                rows.append({"name": row["name"], "count": count})
        rows.sort(key=lambda r: (-r["count"], r["name"]))
        return rows[offset : offset + limit]

    # -- RecipeStore ---------------------------------------------------
    def find_recipes_by_ingredient_ids(self, ingredient_ids):
        self._record("find_recipes_by_ingredient_ids")
        ids = set(ingredient_ids)
        return [{"recipe_id": r, "ingredient_id": i} for r, i in self.links if i in ids]

    def get_recipes_by_ids(self, recipe_ids, limit=None):
        self._record("get_recipes_by_ids")
        out = [self.recipes[r] for r in recipe_ids if r in self.recipes]
        return out if limit is None else out[:limit]

    def get_recipe_by_id(self, recipe_id):
        self._record("get_recipe_by_id")
        return self.recipes.get(recipe_id)

    def list_recipes(self, *, material_category=None, kind=None, limit=10, offset=0):
        self._record("list_recipes")
        rows = list(self.recipes.values())
        if kind:
            rows = [r for r in rows if r.kind == kind]
        return rows[offset : offset + limit]

    # -- VectorSimilarityService ---------------------------------------
    def match_recipes_by_embedding(self, query_embedding, threshold, limit):
        self._record("match_recipes_by_embedding")
        if self.match_override is not None:
            return self.match_override(threshold)
        scored = []
        for rid, emb in self.recipe_embeddings.items():
            sim = cosine_similarity(query_embedding, emb)
            if sim >= threshold:
                r = self.recipes[rid]
                scored.append(
                    {
                        "id": rid,
                        "title": r.title,
                        "short_title": r.short_title,
                        "raw_ingredients": r.raw_ingredients,
                        "image_url": r.image_url,
                        "similarity": sim,
                    }
                )
        scored.sort(key=lambda row: row["similarity"], reverse=True)
        return scored[:limit]

    def calculate_recipe_similarity(self, recipe_id, query_embedding):
        self._record("calculate_recipe_similarity")
        emb = self.recipe_embeddings.get(recipe_id)
        if emb is None:
            return 0.0
        return cosine_similarity(query_embedding, emb)


@pytest.fixture
def db():
    return FakeRecipeDB()


@pytest.fixture
def korean_db():
    """
    Small Korean home-cooking corpus with 5-dim embeddings.

    Axes: 0 pork, 1 tofu, 2 kimchi, 3 egg, 4 sugar/sweet
    """
    d = FakeRecipeDB()
    d.add_ingredient(1, "돼지고기", "[1, 0, 0, 0, 0]")
    d.add_ingredient(2, "두부", [0, 1, 0, 0, 0])
    d.add_ingredient(3, "김치", json.dumps([0, 0, 1, 0, 0]))
    d.add_ingredient(4, "설탕", [0, 0, 0, 0, 1])
    d.add_ingredient(5, "계란", [0, 0, 0, 1, 0])
    d.add_ingredient(6, "대파", None)

    d.add_recipe("r1", "김치찌개", [1, 3, 2, 4], embedding=[0.7, 0.5, 0.5, 0, 0.1])
    d.add_recipe("r2", "두부조림", [2, 4, 6], embedding=[0, 0.9, 0, 0, 0.4])
    d.add_recipe("r3", "제육볶음", [1, 4, 6], embedding=[0.9, 0, 0, 0, 0.4])
    d.add_recipe("r4", "계란말이", [5, 6], embedding=[0, 0, 0, 1, 0])
    d.add_recipe("r5", "마파두부", [1, 2], embedding=[0.6, 0.8, 0, 0, 0])
    return d
