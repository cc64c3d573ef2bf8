import os

from dotenv import load_dotenv

# Optional overrides for local test runs; never points at a shared database
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Settings are read at import time by several modules, so pin the test
# configuration before anything under libs/ or services/ is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ["CODE_RETRY_BASE_DELAY"] = "0"
os.environ["ENVIRONMENT"] = "local"

from libs.common.config import get_settings  # noqa: E402

get_settings.cache_clear()
