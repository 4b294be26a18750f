"""Screen endpoint tests."""

from unittest.mock import AsyncMock, patch

from src.models.recipe import Ingredient
from src.models.user import User
from src.services.auth import create_password_reset_token
from src.services.errors import ERROR_MESSAGES
from src.services.recipe_queries import RecipeQueries
from src.services.results import Err, ErrorCode

SESSION_COOKIE = "recetas_session"


def sign_in(client, headers):
    """Use the bearer token of ``headers`` as the browser session."""
    client.cookies.clear()
    client.cookies.set(SESSION_COOKIE, headers["Authorization"].removeprefix("Bearer "))


def test_home_page(client, auth_headers, categories, create_recipe):
    recipe_id = create_recipe(auth_headers)
    create_recipe(auth_headers, "Receta Privada", is_public=False)

    response = client.get("/")
    assert response.status_code == 200
    page = response.json()
    assert page["page"] == "home"
    assert [r["id"] for r in page["data"]["featured"]] == [recipe_id]
    assert len(page["data"]["categories"]) == 10
    assert page["errors"] == {"featured": None, "categories": None}
    assert page["toasts"] == []


def test_failed_loader_keeps_rest_of_page(client, auth_headers, create_recipe):
    recipe_id = create_recipe(auth_headers)
    failing = AsyncMock(return_value=Err("Internal Server Error", ErrorCode.SERVER_ERROR, 500))

    with patch.object(RecipeQueries, "categories", failing):
        response = client.get("/")

    assert response.status_code == 200
    page = response.json()
    assert [r["id"] for r in page["data"]["featured"]] == [recipe_id]
    assert page["data"]["categories"] == []
    assert page["errors"]["categories"] == {
        "message": "Internal Server Error",
        "code": "SERVER_ERROR",
        "status": 500,
    }
    assert page["toasts"] == [
        {"level": "error", "message": ERROR_MESSAGES[ErrorCode.SERVER_ERROR]}
    ]


def test_recipes_page_default_on_failure(client):
    failing = AsyncMock(side_effect=RuntimeError("db down"))
    with patch.object(RecipeQueries, "recipes_page", failing):
        page = client.get("/recipes", params={"page": 2}).json()

    assert page["data"]["recipes"]["recipes"] == []
    assert page["data"]["recipes"]["total_count"] == 0
    assert page["errors"]["recipes"]["code"] == "UNKNOWN"
    assert len(page["toasts"]) == 1


def test_search_page(client, auth_headers, categories, tag, create_recipe):
    match = create_recipe(auth_headers, "Tortilla de Patatas")
    create_recipe(auth_headers, "Ensalada Verde")

    page = client.get("/search", params={"q": "tortilla", "difficulty": "all"}).json()
    assert [r["id"] for r in page["data"]["results"]["recipes"]] == [match]
    assert [t["slug"] for t in page["data"]["tags"]] == ["vegano"]
    assert {d["value"] for d in page["data"]["difficulties"]} == {"easy", "medium", "hard"}


def test_categories_page(client, auth_headers, categories, create_recipe):
    create_recipe(auth_headers, "Flan Casero", category_ids=[categories["postres"].id])

    page = client.get("/categories").json()
    assert page["data"]["counts"] == {str(categories["postres"].id): 1}


def test_recipe_page(client, auth_headers, other_headers, create_recipe):
    recipe_id = create_recipe(auth_headers)
    client.post(f"/api/v1/recipes/{recipe_id}/like", headers=other_headers)
    client.post(
        f"/api/v1/recipes/{recipe_id}/notes",
        headers=other_headers,
        json={"content": "Muy buena", "is_private": False},
    )
    sign_in(client, other_headers)

    page = client.get(f"/recipes/{recipe_id}").json()
    assert page["data"]["recipe"]["id"] == recipe_id
    assert page["data"]["likes"]["likes_count"] == 1
    assert page["data"]["viewer"] == {"liked": True, "bookmarked": False}
    assert [n["content"] for n in page["data"]["notes"]] == ["Muy buena"]


def test_recipe_page_not_found(client):
    assert client.get("/recipes/99999").status_code == 404


def test_recipe_page_scaled(client, auth_headers, create_recipe):
    recipe_id = create_recipe(auth_headers)

    page = client.get(f"/recipes/{recipe_id}", params={"servings": 12}).json()
    recipe = page["data"]["recipe"]
    assert recipe["scaled_servings"] == 12
    assert [i["quantity"] for i in recipe["ingredients"]] == ["1000", "600", "20"]


def test_private_recipe_page_hidden_from_others(client, auth_headers, create_recipe):
    recipe_id = create_recipe(auth_headers, is_public=False)
    assert client.get(f"/recipes/{recipe_id}").status_code == 404


def test_edit_page_only_for_owner(client, auth_headers, other_headers, create_recipe):
    recipe_id = create_recipe(auth_headers)

    sign_in(client, other_headers)
    assert client.get(f"/recipes/{recipe_id}/edit").status_code == 404

    sign_in(client, auth_headers)
    page = client.get(f"/recipes/{recipe_id}/edit").json()
    assert page["data"]["recipe"]["title"] == "Pan Casero"


def test_edit_page_with_unfit_stored_rows(client, db, auth_headers, create_recipe):
    recipe_id = create_recipe(auth_headers)
    # Written before names were length-checked.
    db.query(Ingredient).filter(Ingredient.name == "sal").update({"name": "s"})
    db.commit()
    sign_in(client, auth_headers)

    response = client.get(f"/recipes/{recipe_id}/edit")

    assert response.status_code == 200
    page = response.json()
    assert page["data"]["recipe"] is None
    assert page["errors"]["recipe"]["code"] == "UNKNOWN"
    assert len(page["toasts"]) == 1

    api = client.get(f"/api/v1/recipes/{recipe_id}/form", headers=auth_headers)
    assert api.status_code == 500


def test_profile_page(client, auth_headers, create_recipe):
    create_recipe(auth_headers)
    sign_in(client, auth_headers)

    page = client.get("/profile").json()
    assert page["data"]["profile"]["email"] == auth_headers.email
    assert page["data"]["stats"] == {"recipes": 1, "bookmarks": 0, "likes": 0}


def test_my_recipes_and_bookmarks_pages(client, auth_headers, create_recipe):
    recipe_id = create_recipe(auth_headers, is_public=False)
    client.post(f"/api/v1/recipes/{recipe_id}/bookmark", headers=auth_headers)
    sign_in(client, auth_headers)

    assert [r["id"] for r in client.get("/my-recipes").json()["data"]["recipes"]] == [recipe_id]
    assert [r["id"] for r in client.get("/bookmarks").json()["data"]["recipes"]] == [recipe_id]


def test_login_page_redirect_target(client):
    assert client.get("/login", params={"redirect": "/profile"}).json()["data"] == {
        "redirect": "/profile"
    }
    assert client.get("/login", params={"redirect": "//evil.example"}).json()["data"] == {
        "redirect": "/"
    }
    assert client.get("/login").json()["data"] == {"redirect": "/"}


def test_reset_password_page(client, db, auth_headers):
    user = db.get(User, auth_headers.user_id)
    token = create_password_reset_token(user)

    page = client.get("/reset-password", params={"token": token}).json()
    assert page["page"] == "reset_password"
    assert page["data"]["token_valid"] is True

    invalid = client.get("/reset-password", params={"token": "nope"}).json()
    assert invalid["data"]["token_valid"] is False
    assert client.get("/reset-password").json()["data"]["token_valid"] is False
    assert client.get("/forgot-password").json()["page"] == "forgot_password"
