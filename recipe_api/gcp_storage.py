from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore, storage
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .config import StorageConfig
from .fields import normalize_categories, normalize_ingredients
from .models import Recipe
from .storage import RecipeRepository

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRATION = timedelta(days=7)


class FirestoreRecipeStorage(RecipeRepository):
    """GCP backed recipe storage using Firestore and Cloud Storage."""

    def __init__(
        self,
        config: Optional[StorageConfig] = None,
        *,
        client: firestore.Client | None = None,
        storage_client: storage.Client | None = None,
    ) -> None:
        self._config = config or StorageConfig()

        if client is None:
            client = firestore.Client(project=self._config.project, database=self._config.database)
        self._firestore_client = client
        self._collection = client.collection(self._config.collection_name)

        # Every call is made once with the configured deadline; failures surface to the caller.
        self._call_options: Dict[str, Any] = {"retry": None, "timeout": self._config.timeout}

        if self._config.bucket_name:
            if storage_client is None:
                storage_client = storage.Client(project=self._config.project)
            self._storage_client = storage_client
            self._bucket = storage_client.bucket(self._config.bucket_name)
        else:
            self._storage_client = None
            self._bucket = None

        logger.info(
            "Using Firestore collection %r (project=%s, database=%s)",
            self._config.collection_name,
            self._config.project or "<default>",
            self._config.database or "<default>",
        )

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        return cls(StorageConfig.from_env())

    def ping(self) -> None:
        list(self._collection.limit(1).stream(**self._call_options))

    def list_recipes(self) -> Iterable[Recipe]:
        for doc in self._collection.stream(**self._call_options):
            data = doc.to_dict() or {}
            yield self._doc_to_recipe(doc.id, data)

    def get_recipe(self, recipe_id: str) -> Recipe:
        snapshot = self._collection.document(recipe_id).get(**self._call_options)

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        data = snapshot.to_dict() or {}
        return self._doc_to_recipe(snapshot.id, data)

    def add_recipe(
        self,
        fields: Mapping[str, Any],
        *,
        image: FileStorage | None = None,
    ) -> Recipe:
        doc = dict(fields)
        doc["imageBlobName"] = None

        if image and image.filename:
            if not self._bucket:
                raise RuntimeError("A Cloud Storage bucket must be configured to upload images.")

            blob_name = self._build_blob_name(image.filename)
            blob = self._bucket.blob(blob_name)

            image.stream.seek(0)
            blob.upload_from_file(image.stream, content_type=image.mimetype)
            doc["image"] = self._get_image_url(blob)
            doc["imageBlobName"] = blob_name

        doc["createdAt"] = firestore.SERVER_TIMESTAMP

        doc_ref = self._collection.document()
        doc_ref.set(doc, **self._call_options)
        logger.info("Recipe inserted with id %s", doc_ref.id)

        snapshot = doc_ref.get(**self._call_options)
        data = snapshot.to_dict() or {}
        return self._doc_to_recipe(snapshot.id, data)

    def update_recipe(self, recipe_id: str, fields: Mapping[str, Any]) -> Recipe:
        if not fields:
            return self.get_recipe(recipe_id)

        doc_ref = self._collection.document(recipe_id)
        update_doc = dict(fields)

        if "image" in update_doc:
            # A replaced image URL orphans any uploaded blob.
            snapshot = doc_ref.get(**self._call_options)
            if not snapshot.exists:
                raise KeyError(f"Recipe '{recipe_id}' does not exist.")
            current_data = snapshot.to_dict() or {}
            self._delete_blob_if_exists(current_data.get("imageBlobName"))
            update_doc["imageBlobName"] = None

        try:
            doc_ref.update(update_doc, **self._call_options)
        except gcloud_exceptions.NotFound as exc:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.") from exc

        return self.get_recipe(recipe_id)

    def like_recipe(self, recipe_id: str) -> Recipe:
        doc_ref = self._collection.document(recipe_id)

        try:
            doc_ref.update({"likeCount": firestore.Increment(1)}, **self._call_options)
        except gcloud_exceptions.NotFound as exc:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.") from exc

        return self.get_recipe(recipe_id)

    def delete_recipe(self, recipe_id: str) -> None:
        doc_ref = self._collection.document(recipe_id)
        snapshot = doc_ref.get(**self._call_options)

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        data = snapshot.to_dict() or {}
        self._delete_blob_if_exists(data.get("imageBlobName"))

        doc_ref.delete(**self._call_options)
        logger.info("Recipe %s deleted", recipe_id)

    def close(self) -> None:
        self._firestore_client.close()
        if self._storage_client is not None:
            self._storage_client.close()

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        created_at = data.get("createdAt")
        if not isinstance(created_at, datetime):
            created_at = None

        like_count = data.get("likeCount")
        if not isinstance(like_count, int) or isinstance(like_count, bool) or like_count < 0:
            like_count = 0

        image = data.get("image")
        image_blob_name = data.get("imageBlobName")

        if image_blob_name and self._bucket:
            blob = self._bucket.blob(image_blob_name)
            image = self._get_image_url(blob)

        return Recipe(
            id=doc_id,
            title=data.get("title"),
            image=image,
            ingredients=normalize_ingredients(data.get("ingredients")),
            instructions=data.get("instructions"),
            cuisine=data.get("cuisine"),
            prep_time=data.get("prepTime"),
            categories=normalize_categories(data.get("categories")),
            like_count=like_count,
            created_at=created_at,
            user_id=data.get("userId"),
        )

    def _build_blob_name(self, filename: str) -> str:
        safe = secure_filename(filename)
        unique = uuid.uuid4().hex
        return f"recipes/{unique}_{safe}"

    def _delete_blob_if_exists(self, blob_name: str | None) -> None:
        if not blob_name or not self._bucket:
            return

        blob = self._bucket.blob(blob_name)

        try:
            blob.delete()
        except gcloud_exceptions.NotFound:
            logger.warning("Image blob %s was already removed", blob_name)

    def _get_image_url(self, blob: storage.Blob) -> str:
        try:
            return blob.generate_signed_url(
                version="v4", method="GET", expiration=SIGNED_URL_EXPIRATION
            )
        except (ValueError, TypeError, AttributeError, auth_exceptions.GoogleAuthError):
            # Signing needs credentials with a private key; otherwise serve the public URL.
            return blob.public_url


__all__ = ["FirestoreRecipeStorage"]
