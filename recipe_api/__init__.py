import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from flask import Flask, jsonify, render_template, request
from werkzeug.exceptions import HTTPException

from .fields import build_new_recipe, build_recipe_update
from .gcp_storage import FirestoreRecipeStorage
from .models import Recipe, is_valid_recipe_id
from .storage import RecipeRepository, StorageUnavailableError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
WELCOME_MESSAGE = "👋 Welcome to the Recipe Book API!"
TEXT_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}

StorageFactory = Callable[[], RecipeRepository]


def create_app(
    storage: Optional[RecipeRepository] = None,
    storage_factory: Optional[StorageFactory] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository used for every request.
    storage_factory:
        Called on first use when ``storage`` is ``None``. Defaults to
        :meth:`FirestoreRecipeStorage.from_env`. A factory that raises leaves
        the service running; requests that need the database answer with 500
        until a later call succeeds.
    """

    app = Flask(__name__)
    app.config.setdefault("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)
    app.config["RECIPE_STORAGE"] = storage
    app.config["RECIPE_STORAGE_FACTORY"] = storage_factory or FirestoreRecipeStorage.from_env

    storage_lock = threading.Lock()

    def get_storage() -> RecipeRepository:
        backend = app.config["RECIPE_STORAGE"]
        if backend is not None:
            return backend

        with storage_lock:
            backend = app.config["RECIPE_STORAGE"]
            if backend is None:
                try:
                    backend = app.config["RECIPE_STORAGE_FACTORY"]()
                except Exception as exc:
                    logger.exception("Recipe storage could not be initialized")
                    raise StorageUnavailableError("Database not initialized") from exc
                app.config["RECIPE_STORAGE"] = backend
                logger.info("Recipe storage initialized")
        return backend

    @app.get("/")
    def index():
        return WELCOME_MESSAGE, 200, TEXT_HEADERS

    @app.get("/add")
    def add_form() -> str:
        return render_template("add_recipe.html", title="Add recipe")

    @app.get("/health")
    def health():
        try:
            get_storage().ping()
        except Exception as exc:
            logger.exception("Health check failed")
            return (
                jsonify(
                    status="Error",
                    mongodb="Disconnected",
                    database="Disconnected",
                    error=str(exc),
                ),
                500,
            )
        return jsonify(status="OK", mongodb="Connected", database="Connected")

    @app.post("/add-recipe")
    def add_recipe():
        image = request.files.get("image")
        if image and image.filename and not _allowed_image(image.filename):
            return (
                "Unsupported image format. Allowed formats: PNG, JPG, JPEG, GIF, WEBP.",
                400,
                TEXT_HEADERS,
            )

        fields = build_new_recipe(_request_payload())

        try:
            get_storage().add_recipe(fields, image=image if image and image.filename else None)
        except StorageUnavailableError as exc:
            return str(exc), 500, TEXT_HEADERS
        except Exception:
            logger.exception("Error inserting recipe")
            return "Failed to add recipe", 500, TEXT_HEADERS

        return "Recipe successfully added!", 201, TEXT_HEADERS

    @app.get("/get-recipes")
    def list_recipes():
        try:
            recipes = [recipe.to_dict() for recipe in get_storage().list_recipes()]
        except StorageUnavailableError as exc:
            return _error(str(exc), 500)
        except Exception:
            logger.exception("Error fetching recipes")
            return _error("Failed to fetch recipes", 500)

        return jsonify(recipes)

    @app.get("/get-recipe/<recipe_id>")
    def get_recipe(recipe_id: str):
        return _recipe_operation(
            get_storage, recipe_id, "fetch", lambda backend: backend.get_recipe(recipe_id)
        )

    @app.patch("/recipes/<recipe_id>/like")
    def like_recipe(recipe_id: str):
        return _recipe_operation(
            get_storage, recipe_id, "like", lambda backend: backend.like_recipe(recipe_id)
        )

    @app.put("/update-recipe/<recipe_id>")
    def update_recipe(recipe_id: str):
        fields = build_recipe_update(_request_payload())
        return _recipe_operation(
            get_storage,
            recipe_id,
            "update",
            lambda backend: backend.update_recipe(recipe_id, fields),
        )

    @app.delete("/delete-recipe/<recipe_id>")
    def delete_recipe(recipe_id: str):
        if not is_valid_recipe_id(recipe_id):
            return _error("Invalid recipe id", 400)

        try:
            get_storage().delete_recipe(recipe_id)
        except StorageUnavailableError as exc:
            return _error(str(exc), 500)
        except KeyError:
            return _error("Recipe not found", 404)
        except Exception:
            logger.exception("Error deleting recipe %s", recipe_id)
            return _error("Failed to delete recipe", 500)

        return jsonify(message="Recipe deleted successfully", id=recipe_id)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled error while serving %s %s", request.method, request.path)
        return _error("Internal server error", 500)

    return app


def _recipe_operation(
    get_storage: Callable[[], RecipeRepository],
    recipe_id: str,
    action: str,
    operation: Callable[[RecipeRepository], Recipe],
):
    if not is_valid_recipe_id(recipe_id):
        return _error("Invalid recipe id", 400)

    try:
        recipe = operation(get_storage())
    except StorageUnavailableError as exc:
        return _error(str(exc), 500)
    except KeyError:
        return _error("Recipe not found", 404)
    except Exception:
        logger.exception("Failed to %s recipe %s", action, recipe_id)
        return _error(f"Failed to {action} recipe", 500)

    return jsonify(recipe.to_dict())


def _request_payload() -> Dict[str, Any]:
    if request.is_json:
        body = request.get_json()
        return body if isinstance(body, dict) else {}

    collected: Dict[str, List[str]] = {}
    for key, values in request.form.to_dict(flat=False).items():
        # "categories[]" and "categories" name the same field.
        if key.endswith("[]"):
            key = key[:-2]
        collected.setdefault(key, []).extend(values)
    return {key: values if len(values) > 1 else values[0] for key, values in collected.items()}


def _error(message: str, status: int):
    return jsonify(error=message), status


def _allowed_image(filename: str) -> bool:
    if not filename or "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in ALLOWED_IMAGE_EXTENSIONS


__all__ = ["create_app", "Recipe"]
