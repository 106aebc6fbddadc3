import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from recipe_import.recipe_parser import generate_recipe_id


class ImportLoadError(Exception):
    """Raised when saved imports cannot be loaded from file."""
    pass


class ImportSaveError(Exception):
    """Raised when an import cannot be saved to file."""
    pass


def load_imports(file_path: Path | str) -> list[dict[str, Any]]:
    """Load saved imports; a missing file means nothing has been saved yet."""
    file_path = Path(file_path)

    if not file_path.exists():
        return []

    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ImportLoadError(f"Invalid JSON in imports file: {e}")

    if not isinstance(data, dict) or "imports" not in data:
        raise ImportLoadError("Imports file must contain an 'imports' key")

    return data["imports"]


def _write_atomic(file_path: Path, data: dict) -> None:
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory keeps the rename on one filesystem
        temp_fd, temp_path = tempfile.mkstemp(
            dir=file_path.parent,
            prefix=".imports_tmp_",
            suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, file_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    except (IOError, OSError, PermissionError) as e:
        raise ImportSaveError(f"Failed to save imports to {file_path}: {e}")


def save_import(file_path: Path | str, payload: dict[str, Any], recipe_id: Optional[str] = None) -> str:
    """Store a recipe and its matched ingredients, replacing any earlier save.

    The previous matched ingredients of *recipe_id* are cleared before the
    new ones are written, so a re-save never leaves stale matches behind.

    Args:
        file_path: Path to the JSON file
        payload: `{"recipe": {...}, "matched_ingredients": [...]}`
        recipe_id: Id to replace; generated from the recipe name when omitted

    Returns:
        The id the import was stored under

    Raises:
        ValueError: If the recipe has no name
        ImportLoadError: If the existing file is corrupt
        ImportSaveError: If the file cannot be written
    """
    file_path = Path(file_path)
    recipe = payload.get("recipe") or {}
    name = str(recipe.get("name") or "").strip()
    if not name:
        raise ValueError("Recipe name is required")

    imports = load_imports(file_path)
    existing_ids = {item["id"] for item in imports}
    if recipe_id is None:
        recipe_id = generate_recipe_id(name, existing_ids)

    entry = {"id": recipe_id, "recipe": {**recipe, "name": name}, "matched_ingredients": []}
    for item in imports:
        if item["id"] == recipe_id:
            item["matched_ingredients"] = []
            entry = item
            entry["recipe"] = {**recipe, "name": name}
            break
    else:
        imports.append(entry)

    entry["matched_ingredients"] = list(payload.get("matched_ingredients") or [])

    _write_atomic(file_path, {"imports": imports})
    return recipe_id
