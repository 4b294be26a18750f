"""Background fetching of recipes submitted for import by URL."""

import logging
from datetime import UTC, datetime

from celery.exceptions import Retry
from sqlalchemy.orm import Session

from src.celery_app import app as celery_app
from src.database import SessionLocal
from src.models.enums import ImportStatus
from src.models.recipe_import import RecipeImport
from src.services.recipe_import import (
    RecipeImportError,
    RecipeSourceUnavailable,
    fetch_recipe,
)

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 60


def _finish(db: Session, recipe_import: RecipeImport, *, parsed=None, error=None) -> None:
    if error is None:
        recipe_import.status = ImportStatus.COMPLETED.value
        recipe_import.parsed_recipe = parsed
    else:
        recipe_import.status = ImportStatus.FAILED.value
    recipe_import.error_message = error
    recipe_import.processed_at = datetime.now(UTC)
    db.commit()


@celery_app.task(bind=True, max_retries=3)
def process_recipe_import(self, import_id: int) -> dict:
    """Fetch the page behind a RecipeImport and store the recipe found there.

    Unreachable pages are retried; pages without a usable recipe fail at once.
    The user confirms the stored result separately before any recipe is created.
    """
    db = SessionLocal()
    try:
        recipe_import = db.get(RecipeImport, import_id)
        if recipe_import is None:
            return {"error": "Import not found"}

        recipe_import.status = ImportStatus.PROCESSING.value
        db.commit()
        logger.info(f"Fetching recipe import {import_id} from {recipe_import.source_url}")

        try:
            parsed = fetch_recipe(recipe_import.source_url)
        except RecipeSourceUnavailable as e:
            if self.request.retries < self.max_retries:
                logger.warning(f"Recipe import {import_id} will be retried: {e}")
                recipe_import.status = ImportStatus.PENDING.value
                db.commit()
                raise self.retry(exc=e, countdown=RETRY_DELAY_SECONDS) from e
            _finish(db, recipe_import, error=str(e))
            return {"error": str(e)}
        except RecipeImportError as e:
            logger.info(f"Recipe import {import_id} failed: {e}")
            _finish(db, recipe_import, error=str(e))
            return {"error": str(e)}

        _finish(db, recipe_import, parsed=parsed.model_dump())
        logger.info(f"Recipe import {import_id} processed successfully")
        return {"success": True}
    except Retry:
        raise
    except Exception:
        logger.error(f"Error processing recipe import {import_id}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()
