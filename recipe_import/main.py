import logging

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import BadRequest, UnsupportedMediaType

from recipe_import import config
from recipe_import.catalog import CatalogLoadError, load_catalog, suggest_ingredients
from recipe_import.html_fetcher import FetchError
from recipe_import.importer import RecipeImporter
from recipe_import.logging_config import configure_logging
from recipe_import.recipe_store import ImportLoadError, ImportSaveError, save_import
from recipe_import.text_parser import RecipeFormat, to_paprika_text

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["SECRET_KEY"] = config.SECRET_KEY
app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES
csrf = CSRFProtect(app)
limiter = Limiter(
    get_remote_address,
    app=app,
    default_limits=[],          # no global limit; apply per-route only
    storage_uri="memory://",
)


def _read_json_body():
    """Return (data, error_response); error_response is set on invalid JSON."""
    try:
        data = request.get_json(silent=False)
    except (ValueError, TypeError, BadRequest, UnsupportedMediaType):
        return None, (jsonify({
            "error": "Invalid JSON",
            "message": "Request body must be valid JSON"
        }), 400)
    if not isinstance(data, dict):
        return None, (jsonify({
            "error": "Invalid JSON",
            "message": "Request body must be a JSON object"
        }), 400)
    return data, None


def _catalog_error(e: CatalogLoadError):
    logger.exception("Ingredient catalog could not be loaded", extra={"path": config.INGREDIENT_CATALOG_FILE})
    return jsonify({
        "error": "Catalog error",
        "message": str(e)
    }), 500


def _importer() -> RecipeImporter:
    """One catalog load per request; every line in the batch sees the same tables."""
    return RecipeImporter(load_catalog(config.INGREDIENT_CATALOG_FILE))


@app.errorhandler(413)
def request_too_large(e):
    return jsonify({
        "error": "File too large",
        "message": f"Uploads are limited to {config.MAX_UPLOAD_BYTES // (1024 * 1024)} MB"
    }), 413


@app.route("/import-recipe", methods=["POST"])
@limiter.limit("10 per minute")
def import_recipe():
    """Import a recipe from a URL."""
    logger.info("Importing recipe from URL")

    data, error = _read_json_body()
    if error:
        return error

    url = data.get('url')
    if not url or not isinstance(url, str):
        return jsonify({
            "error": "Invalid request",
            "message": "URL is required"
        }), 400

    # Validate URL format
    if not url.startswith('http://') and not url.startswith('https://'):
        return jsonify({
            "error": "Invalid URL",
            "message": "URL must start with http:// or https://"
        }), 400

    try:
        result = _importer().import_url(url)
    except CatalogLoadError as e:
        return _catalog_error(e)
    except FetchError as e:
        logger.exception("Fetch error during import", extra={"url": url, "status_code": e.status_code})
        return jsonify({
            "error": "Fetch error",
            "message": str(e),
            "status_code": e.status_code,
        }), 502
    except Exception as e:
        logger.exception("Unexpected error during import", extra={"url": url})
        return jsonify({
            "error": "Import failed",
            "message": str(e)
        }), 500

    if result.recipe is None:
        return jsonify({
            "error": "No recipe found on this page",
            "message": "The page was fetched but no recipe could be extracted",
            "confidence": result.confidence,
            "source": result.source,
        }), 404

    return jsonify(result.to_dict()), 200


@app.route("/import-recipe-text", methods=["POST"])
@limiter.limit("10 per minute")
def import_recipe_text():
    """Import a recipe from pasted text (Paprika, Meal-Master or plain sections)."""
    logger.info("Importing recipe from text")

    data, error = _read_json_body()
    if error:
        return error

    text = data.get('text')
    if not text or not isinstance(text, str) or not text.strip():
        return jsonify({
            "error": "Invalid request",
            "message": "Text is required"
        }), 400

    if len(text) > config.MAX_TEXT_LENGTH:
        return jsonify({
            "error": "Invalid text",
            "message": f"Recipe text must be at most {config.MAX_TEXT_LENGTH} characters long"
        }), 400

    try:
        fmt = RecipeFormat.from_hint(data.get('format'))
    except ValueError as e:
        return jsonify({
            "error": "Invalid format",
            "message": str(e)
        }), 400

    try:
        result = _importer().import_text(text, fmt)
    except CatalogLoadError as e:
        return _catalog_error(e)
    except Exception as e:
        logger.exception("Unexpected error during text import", extra={"text_length": len(text)})
        return jsonify({
            "error": "Import failed",
            "message": str(e)
        }), 500

    if result.recipe is None:
        return jsonify({
            "error": "Could not parse recipe text",
            "message": "No recipe title or sections were recognised",
            "hint": result.hint,
            "confidence": result.confidence,
            "source": result.source,
        }), 422

    body = result.to_dict()
    body["paprika_text"] = to_paprika_text(result.recipe)
    return jsonify(body), 200


@app.route("/import-paprika", methods=["POST"])
@limiter.limit("10 per minute")
def import_paprika():
    """Import every recipe in an uploaded Paprika export."""
    logger.info("Importing Paprika export")

    if 'file' not in request.files:
        return jsonify({
            "error": "No file provided",
            "message": "A Paprika export file is required"
        }), 400

    file = request.files['file']
    data = file.read()

    if not data:
        logger.warning("Uploaded Paprika export is empty", extra={"upload_filename": file.filename})
        return jsonify({
            "error": "Empty file",
            "message": "The uploaded file is empty"
        }), 400

    if len(data) > config.MAX_UPLOAD_BYTES:
        return request_too_large(None)

    try:
        results, skipped = _importer().import_paprika(data)
    except CatalogLoadError as e:
        return _catalog_error(e)
    except Exception as e:
        logger.exception("Unexpected error during Paprika import", extra={"upload_filename": file.filename})
        return jsonify({
            "error": "Import failed",
            "message": str(e)
        }), 500

    logger.info("Paprika import complete", extra={"imported": len(results), "skipped": skipped})
    return jsonify({
        "recipes": [r.to_dict() for r in results],
        "imported_count": len(results),
        "skipped_count": skipped,
    }), 200


@app.route("/ingredients/match", methods=["POST"])
def match_ingredients():
    """Match raw ingredient lines against the catalog."""
    data, error = _read_json_body()
    if error:
        return error

    lines = data.get('lines')
    if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
        return jsonify({
            "error": "Invalid request",
            "message": "lines must be a list of strings"
        }), 400

    try:
        matcher = load_catalog(config.INGREDIENT_CATALOG_FILE).matcher()
    except CatalogLoadError as e:
        return _catalog_error(e)

    report = matcher.match_lines(lines)
    return jsonify({
        "matches": [m.to_dict() for m in report.matches],
        "unmatched_lines": report.unmatched_lines,
    }), 200


@app.route("/ingredients/search", methods=["GET"])
def search_ingredients():
    """Suggest catalog ingredients for a free-text query."""
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({"results": []}), 200

    try:
        catalog = load_catalog(config.INGREDIENT_CATALOG_FILE)
    except CatalogLoadError as e:
        return _catalog_error(e)

    return jsonify({"results": suggest_ingredients(query, catalog)}), 200


@app.route("/imports", methods=["POST"])
def save_imported_recipe():
    """Persist a reviewed import, replacing an earlier save of the same recipe."""
    data, error = _read_json_body()
    if error:
        return error

    recipe = data.get('recipe')
    if not isinstance(recipe, dict) or not str(recipe.get('name') or '').strip():
        return jsonify({
            "error": "Invalid recipe",
            "message": "Recipe name is required"
        }), 400

    matched = data.get('matched_ingredients', [])
    if not isinstance(matched, list):
        return jsonify({
            "error": "Invalid request",
            "message": "matched_ingredients must be a list"
        }), 400

    try:
        recipe_id = save_import(
            config.IMPORTS_FILE,
            {"recipe": recipe, "matched_ingredients": matched},
            recipe_id=data.get('id'),
        )
    except (ImportLoadError, ImportSaveError) as e:
        logger.exception("Failed to save import", extra={"recipe_name": recipe.get('name')})
        return jsonify({
            "error": "Save error",
            "message": str(e)
        }), 500

    logger.info("Import saved", extra={"recipe_id": recipe_id, "matched": len(matched)})
    return jsonify({"id": recipe_id, "success": True}), 200


if __name__ == "__main__":
    app.run(debug=True, port=5000)
