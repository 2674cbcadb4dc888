from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol

from werkzeug.datastructures import FileStorage

from .models import Recipe


class StorageUnavailableError(RuntimeError):
    """Raised when the recipe storage backend could not be initialized."""


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the web layer."""

    def ping(self) -> None:
        """Round-trip to the database, raising if it cannot be reached."""

    def list_recipes(self) -> Iterable[Recipe]:
        """Return every stored recipe."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`KeyError` if missing."""

    def add_recipe(
        self,
        fields: Mapping[str, Any],
        *,
        image: FileStorage | None = None,
    ) -> Recipe:
        """Persist a new recipe, stamping ``createdAt``, and return the stored instance."""

    def update_recipe(self, recipe_id: str, fields: Mapping[str, Any]) -> Recipe:
        """Apply a partial update and return the new representation."""

    def like_recipe(self, recipe_id: str) -> Recipe:
        """Atomically increment ``likeCount`` by one and return the new representation."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe and any associated assets."""

    def close(self) -> None:
        """Release the underlying database connection."""


__all__ = ["RecipeRepository", "StorageUnavailableError"]
