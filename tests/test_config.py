import pytest

from recipe_api.config import StorageConfig


def test_defaults_when_environment_is_empty():
    config = StorageConfig.from_env({})

    assert config == StorageConfig()
    assert config.collection_name == "recipes"
    assert config.timeout == 10.0
    assert config.project is None
    assert config.bucket_name is None


def test_reads_environment_variables():
    config = StorageConfig.from_env(
        {
            "GCP_PROJECT": "recipe-book",
            "FIRESTORE_DATABASE": "staging",
            "RECIPES_COLLECTION": "recipe",
            "GCS_BUCKET": "recipe-images",
            "FIRESTORE_TIMEOUT": "2.5",
        }
    )

    assert config.project == "recipe-book"
    assert config.database == "staging"
    assert config.collection_name == "recipe"
    assert config.bucket_name == "recipe-images"
    assert config.timeout == 2.5


def test_reads_os_environ_by_default(monkeypatch):
    monkeypatch.setenv("RECIPES_COLLECTION", "from-env")
    monkeypatch.delenv("FIRESTORE_TIMEOUT", raising=False)

    assert StorageConfig.from_env().collection_name == "from-env"


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_rejects_invalid_timeout(raw):
    with pytest.raises(ValueError):
        StorageConfig.from_env({"FIRESTORE_TIMEOUT": raw})
