"""Atomic recipe writer tests."""

import pytest
from fastapi import HTTPException

from src.models.recipe import Ingredient, Instruction, Recipe, RecipeIngredient
from src.schemas.recipe import RecipePayload
from src.services.auth import create_user
from src.services.recipe_writer import RecipeWriter


@pytest.fixture
def owner(db):
    return create_user(db, "writer@example.com", "testpass123", "Cocinera")


def make_payload(title="Lentejas Guisadas", **overrides) -> RecipePayload:
    data = {
        "title": title,
        "ingredients": [
            {"name": "Lentejas", "quantity": "300", "unit": "g"},
            {"name": "Zanahoria", "quantity": "2"},
        ],
        "instructions": ["Remojar las lentejas", "Cocer con la verdura"],
    }
    data.update(overrides)
    return RecipePayload(**data)


def test_create_writes_all_rows(db, owner):
    recipe_id = RecipeWriter(db).create_recipe_atomic(owner.id, make_payload())

    recipe = db.get(Recipe, recipe_id)
    assert recipe.slug == "lentejas-guisadas"
    assert recipe.difficulty == "medium"
    assert recipe.servings == 4
    assert [link.name for link in recipe.ingredient_links] == ["lentejas", "zanahoria"]
    assert [step.step_number for step in recipe.instructions] == [1, 2]


def test_saved_recipe_reads_back_in_order(db, owner):
    recipe_id = RecipeWriter(db).create_recipe_atomic(
        owner.id,
        make_payload(
            "Pan Rapido",
            ingredients=[
                {"name": "Harina", "quantity": "2", "unit": "taza"},
                {"name": "Sal", "quantity": "1", "unit": "pizca"},
            ],
            instructions=["Mezclar", "Hornear"],
        ),
    )
    db.expire_all()

    recipe = db.get(Recipe, recipe_id)
    links = sorted(recipe.ingredient_links, key=lambda link: link.order_index)
    assert [(li.name, li.quantity, li.unit, li.order_index) for li in links] == [
        ("harina", "2", "taza", 0),
        ("sal", "1", "pizca", 1),
    ]
    steps = sorted(recipe.instructions, key=lambda step: step.step_number)
    assert [(s.step_number, s.content) for s in steps] == [(1, "Mezclar"), (2, "Hornear")]


def test_ingredient_catalog_is_shared(db, owner):
    writer = RecipeWriter(db)
    writer.create_recipe_atomic(owner.id, make_payload("Lentejas Guisadas"))
    writer.create_recipe_atomic(
        owner.id,
        make_payload("Crema de Lentejas", ingredients=[{"name": "  LENTEJAS  "}]),
    )

    assert db.query(Ingredient).filter(Ingredient.name == "lentejas").count() == 1
    assert db.query(RecipeIngredient).count() == 3


def test_title_without_letters_gets_fallback_slug(db, owner):
    recipe_id = RecipeWriter(db).create_recipe_atomic(owner.id, make_payload("¡¡¡!!!"))
    assert db.get(Recipe, recipe_id).slug == "receta"


def test_create_rolls_back_on_unknown_tag(db, owner):
    with pytest.raises(HTTPException) as exc_info:
        RecipeWriter(db).create_recipe_atomic(owner.id, make_payload(tag_ids=[424242]))

    assert exc_info.value.status_code == 422
    assert db.query(Recipe).count() == 0
    assert db.query(Instruction).count() == 0
    assert db.query(Ingredient).count() == 0


def test_update_renumbers_steps(db, owner):
    writer = RecipeWriter(db)
    recipe_id = writer.create_recipe_atomic(owner.id, make_payload())

    writer.update_recipe_atomic(
        recipe_id,
        owner.id,
        make_payload(
            instructions=["Sofreir la verdura", "Agregar las lentejas", "Cocer 40 minutos"],
            ingredients=[{"name": "Zanahoria"}, {"name": "Lentejas"}],
        ),
    )

    db.expire_all()
    recipe = db.get(Recipe, recipe_id)
    assert [(s.step_number, s.content) for s in recipe.instructions] == [
        (1, "Sofreir la verdura"),
        (2, "Agregar las lentejas"),
        (3, "Cocer 40 minutos"),
    ]
    assert [link.name for link in recipe.ingredient_links] == ["zanahoria", "lentejas"]


def test_update_by_non_owner_changes_nothing(db, owner):
    intruder = create_user(db, "intruder@example.com", "testpass123")
    writer = RecipeWriter(db)
    recipe_id = writer.create_recipe_atomic(owner.id, make_payload())

    with pytest.raises(HTTPException) as exc_info:
        writer.update_recipe_atomic(recipe_id, intruder.id, make_payload("Otra Cosa"))

    assert exc_info.value.status_code == 403
    db.expire_all()
    assert db.get(Recipe, recipe_id).title == "Lentejas Guisadas"


def test_update_missing_recipe(db, owner):
    with pytest.raises(HTTPException) as exc_info:
        RecipeWriter(db).update_recipe_atomic(999, owner.id, make_payload())
    assert exc_info.value.status_code == 404


def test_delete_requires_owner(db, owner):
    intruder = create_user(db, "intruder@example.com", "testpass123")
    writer = RecipeWriter(db)
    recipe_id = writer.create_recipe_atomic(owner.id, make_payload())

    with pytest.raises(HTTPException):
        writer.delete_recipe(recipe_id, intruder.id)
    assert db.get(Recipe, recipe_id) is not None

    writer.delete_recipe(recipe_id, owner.id)
    assert db.get(Recipe, recipe_id) is None
    assert db.query(Instruction).count() == 0
