"""Tests for task catalog lookups and point resolution."""

import random

from task_catalog import DEFAULT_TASK_TEMPLATES, TaskCatalog, default_difficulty_levels


def test_default_catalog_contents():
    catalog = TaskCatalog()

    assert len(catalog) == 27
    assert len(catalog.categories()) == 9
    assert [lvl["id"] for lvl in catalog.difficulty_levels()] == ["beginner", "intermediate", "advanced", "expert"]
    assert {t.category for t in catalog.all()} == set(catalog.category_ids())


def test_by_category_and_difficulty():
    catalog = TaskCatalog()

    recycling = catalog.by_category("recycling")
    assert [t.id for t in recycling] == ["recycling-1", "recycling-2", "recycling-3"]
    assert all(t.difficulty == "beginner" for t in catalog.by_difficulty("beginner"))
    assert catalog.by_category("astronomy") == []


def test_by_id_resolves_points_from_difficulty():
    catalog = TaskCatalog()
    task = catalog.by_id("recycling-1")

    assert task is not None
    expected = {lvl["id"]: lvl["points"] for lvl in default_difficulty_levels()}[task.difficulty]
    assert task.points == expected


def test_by_id_unknown_returns_none():
    assert TaskCatalog().by_id("does-not-exist") is None


def test_points_track_difficulty_table_changes():
    levels = default_difficulty_levels()
    catalog = TaskCatalog(difficulty_levels=levels)
    task_id = "recycling-1"
    difficulty = catalog.by_id(task_id).difficulty

    next(lvl for lvl in levels if lvl["id"] == difficulty)["points"] = 999

    assert catalog.by_id(task_id).points == 999


def test_unknown_difficulty_resolves_to_zero():
    template = DEFAULT_TASK_TEMPLATES[0].model_copy(update={"difficulty": "legendary"})
    catalog = TaskCatalog(templates=[template])

    assert catalog.by_id(template.id).points == 0


def test_random_samples_without_replacement():
    catalog = TaskCatalog(rng=random.Random(7))

    picked = catalog.random(5)
    assert len(picked) == 5
    assert len({t.id for t in picked}) == 5


def test_random_is_capped_at_catalog_size():
    catalog = TaskCatalog()
    assert len(catalog.random(100)) == 27


def test_random_non_positive_count_is_empty():
    catalog = TaskCatalog()
    assert catalog.random(0) == []
    assert catalog.random(-3) == []


def test_templates_carry_no_points():
    assert all("points" not in t.model_dump() for t in DEFAULT_TASK_TEMPLATES)
