import os
import secrets

# Flask secret key, used for session signing and CSRF token generation.
# Set SECRET_KEY in the environment for production; a random key is
# generated on startup as a fallback (sessions won't survive restarts).
SECRET_KEY = os.environ.get("SECRET_KEY", secrets.token_hex(32))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Controlled ingredient vocabulary (canonical names + aliases)
INGREDIENT_CATALOG_FILE = os.environ.get("INGREDIENT_CATALOG_FILE", "data/ingredient_catalog.json")

# Saved imports (recipe + matched ingredients)
IMPORTS_FILE = os.environ.get("IMPORTS_FILE", "data/imports.json")

# Remote page fetching
FETCH_TIMEOUT_SECONDS = float(os.environ.get("FETCH_TIMEOUT_SECONDS", "10"))
FETCH_USER_AGENT = os.environ.get(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (compatible; RecipeImporter/1.0)",
)

# Nested zip archives inside an upload (gzip layers do not count as a level)
MAX_ARCHIVE_DEPTH = 2

# Upload / paste limits
MAX_UPLOAD_BYTES = 100 * 1024 * 1024
MAX_TEXT_LENGTH = 50_000

# Partial matches must score strictly above this to be accepted
PARTIAL_MATCH_THRESHOLD = 0.5

# Fuzzy suggestions for unmatched lines (rapidfuzz WRatio, 0–100)
SUGGESTION_LIMIT = 5
SUGGESTION_SCORE_CUTOFF = 60
