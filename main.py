"""WSGI entrypoint for the Recipe Book API.

The Flask development server is intentionally not started from this module so
that deployments rely on Gunicorn (see ``gunicorn.conf.py``). Local
development can still use ``flask --app main run`` which imports the ``app``
object defined below.
"""

import atexit
import logging
import os

from recipe_api import create_app

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()


@atexit.register
def _close_storage() -> None:
    storage = app.config.get("RECIPE_STORAGE")
    if storage is not None:
        storage.close()
        logging.getLogger(__name__).info("Recipe storage closed")


__all__ = ["app"]
