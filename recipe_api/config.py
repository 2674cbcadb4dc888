from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_COLLECTION = "recipes"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class StorageConfig:
    """Connection settings for the Firestore recipe backend.

    Credentials are never part of the configuration: the Google client
    libraries resolve them through Application Default Credentials.
    """

    project: Optional[str] = None
    database: Optional[str] = None
    collection_name: str = DEFAULT_COLLECTION
    bucket_name: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorageConfig":
        """Build a configuration from environment variables."""

        env = os.environ if environ is None else environ

        raw_timeout = env.get("FIRESTORE_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"FIRESTORE_TIMEOUT must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ValueError("FIRESTORE_TIMEOUT must be positive")

        return cls(
            project=env.get("GCP_PROJECT") or None,
            database=env.get("FIRESTORE_DATABASE") or None,
            collection_name=env.get("RECIPES_COLLECTION") or DEFAULT_COLLECTION,
            bucket_name=env.get("GCS_BUCKET") or None,
            timeout=timeout,
        )


__all__ = ["StorageConfig"]
