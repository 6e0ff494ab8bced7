"""Tests for the persistence store."""

import sqlite3

import pytest

from chefgenius.models.meal_plan import DayOfWeek
from chefgenius.models.profile import DEFAULT_PANTRY_STAPLES, UserProfile
from chefgenius.services.persistence import (
    MEAL_PLAN_KEY,
    PROFILE_KEY,
    SAVED_RECIPES_KEY,
    KeyValueStore,
    PersistenceStore,
)
from chefgenius.utils.exceptions import NotFoundError, StorageError, ValidationError
from conftest import make_recipe


def test_fresh_store_has_defaults(store):
    assert store.profile == UserProfile()
    assert store.profile.pantryStaples == DEFAULT_PANTRY_STAPLES
    assert store.saved_recipes == []
    assert store.recently_viewed == []
    assert all(store.meal_plan.meals_for(day) == [] for day in DayOfWeek)


def test_state_survives_reopen(tmp_path):
    path = tmp_path / "state.db"
    store = PersistenceStore.open(path)
    store.update_profile(UserProfile(allergies=["Peanuts"]))
    saved = store.save_recipe(make_recipe(), category="Dinner")
    store.add_to_meal_plan(DayOfWeek.MONDAY, saved.id)
    store.record_view(saved)

    reopened = PersistenceStore.open(path)
    assert reopened.profile.allergies == ["Peanuts"]
    assert [r.id for r in reopened.saved_recipes] == [saved.id]
    assert [r.id for r in reopened.meal_plan.Monday] == [saved.id]
    assert [r.id for r in reopened.recently_viewed] == [saved.id]


def test_corrupt_record_falls_back_to_default(tmp_path):
    path = tmp_path / "state.db"
    backend = KeyValueStore(path)
    backend.put(PROFILE_KEY, "{not json")
    backend.put(SAVED_RECIPES_KEY, '[{"title": "missing everything"}]')
    backend.put(MEAL_PLAN_KEY, '{"Monday": "oops"}')

    store = PersistenceStore.open(path)
    assert store.profile == UserProfile()
    assert store.saved_recipes == []
    assert store.meal_plan.Monday == []


def test_save_prepends_newest_first(store):
    first = store.save_recipe(make_recipe("A"), category="Lunch")
    second = store.save_recipe(make_recipe("B"), category="Dinner")
    assert [r.title for r in store.saved_recipes] == ["B", "A"]
    assert int(second.id) > int(first.id)
    assert second.rating == 0


def test_save_uses_custom_category_and_source_override(store):
    saved = store.save_recipe(
        make_recipe(sourceUrl="https://old.example.com"),
        category="Other",
        custom_category="  Brunch ",
        source_url="https://new.example.com/frittata",
        image_url="data:image/png;base64,eA==",
    )
    assert saved.category == "Brunch"
    assert saved.sourceUrl == "https://new.example.com/frittata"
    assert saved.imageUrl == "data:image/png;base64,eA=="


def test_save_rejects_unknown_category(store):
    with pytest.raises(ValidationError):
        store.save_recipe(make_recipe(), category="Snacks")
    assert store.saved_recipes == []


def test_meal_plan_add_is_idempotent_per_day(store):
    saved = store.save_recipe(make_recipe(), category="Dinner")
    store.add_to_meal_plan(DayOfWeek.TUESDAY, saved.id)
    store.add_to_meal_plan(DayOfWeek.TUESDAY, saved.id)
    store.add_to_meal_plan(DayOfWeek.FRIDAY, saved.id)
    assert len(store.meal_plan.Tuesday) == 1
    assert len(store.meal_plan.Friday) == 1

    store.remove_from_meal_plan(DayOfWeek.TUESDAY, saved.id)
    assert store.meal_plan.Tuesday == []
    assert len(store.meal_plan.Friday) == 1


def test_recently_viewed_promotes_and_caps(store):
    recipes = [store.save_recipe(make_recipe(f"R{i}"), category="Dinner") for i in range(6)]
    a, b = recipes[0], recipes[1]

    store.record_view(a)
    store.record_view(b)
    store.record_view(a)
    assert [r.id for r in store.recently_viewed] == [a.id, b.id]

    for recipe in recipes[2:]:
        store.record_view(recipe)
    assert len(store.recently_viewed) == 5
    assert store.recently_viewed[0].id == recipes[5].id

    store.record_view(recipes[0])
    store.record_view(recipes[1])
    # R2 was the oldest distinct view left and has been evicted
    assert recipes[2].id not in [r.id for r in store.recently_viewed]


def test_delete_fans_out_to_every_day(store):
    keep = store.save_recipe(make_recipe("Keep"), category="Dinner")
    gone = store.save_recipe(make_recipe("Gone"), category="Dinner")
    for day in (DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.SUNDAY):
        store.add_to_meal_plan(day, gone.id)
        store.add_to_meal_plan(day, keep.id)

    store.delete_recipe(gone.id)

    assert [r.id for r in store.saved_recipes] == [keep.id]
    for day in DayOfWeek:
        assert gone.id not in [r.id for r in store.meal_plan.meals_for(day)]
    assert [r.id for r in store.meal_plan.Monday] == [keep.id]


def test_delete_unknown_recipe(store):
    with pytest.raises(NotFoundError):
        store.delete_recipe("12345")


def test_rate_recipe(store):
    saved = store.save_recipe(make_recipe(), category="Dinner")
    assert store.rate_recipe(saved.id, 4).rating == 4
    with pytest.raises(ValidationError):
        store.rate_recipe(saved.id, 6)
    assert store.get_saved_recipe(saved.id).rating == 4


def test_profile_list_helpers(store):
    store.add_custom_ingredient("  garlic ")
    store.add_custom_ingredient("garlic")
    store.add_custom_ingredient("   ")
    assert store.profile.customIngredients == ["garlic"]

    store.remove_pantry_staple(0)
    assert "Salt" not in store.profile.pantryStaples
    store.add_pantry_staple("Salt")
    assert store.profile.pantryStaples[-1] == "Salt"

    with pytest.raises(ValidationError):
        store.remove_custom_ingredient(5)


class FailingBackend(KeyValueStore):
    def __init__(self, path, fail_keys):
        super().__init__(path)
        self.fail_keys = fail_keys

    def put(self, key, value):
        if key in self.fail_keys:
            raise StorageError(f"quota exceeded writing {key}")
        super().put(key, value)


def test_failed_write_surfaces_and_leaves_only_that_key_stale(tmp_path):
    path = tmp_path / "state.db"
    store = PersistenceStore(FailingBackend(path, {MEAL_PLAN_KEY}))
    store.load()
    saved = store.save_recipe(make_recipe(), category="Dinner")
    with pytest.raises(StorageError):
        store.add_to_meal_plan(DayOfWeek.MONDAY, saved.id)

    reopened = PersistenceStore.open(path)
    assert [r.id for r in reopened.saved_recipes] == [saved.id]
    assert reopened.meal_plan.Monday == []


def test_sqlite_error_becomes_storage_error(tmp_path):
    backend = KeyValueStore(tmp_path / "state.db")
    with sqlite3.connect(backend.path) as conn:
        conn.execute("DROP TABLE records")
    with pytest.raises(StorageError):
        backend.put(PROFILE_KEY, "{}")
