import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


_SUPABASE_URL = os.getenv('SUPABASE_URL')
# Service role key bypasses RLS; the anon key works for locally seeded data
_SUPABASE_KEY = os.getenv('SUPABASE_SERVICE_ROLE_KEY') or os.getenv('SUPABASE_KEY')
_DATABASE_URL = os.getenv('DATABASE_URL')

_OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
_EMBEDDING_MODEL = os.getenv('EMBEDDING_MODEL', 'text-embedding-3-small')

_ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY') or os.getenv('CLAUDE_API_KEY')
_CLAUDE_MODEL = os.getenv('CLAUDE_MODEL', 'claude-3-5-haiku-20241022')

_ENRICHMENT_ENABLED = _env_bool('ENRICHMENT_ENABLED', 'true')
_ENRICHMENT_BATCH_SIZE = int(os.getenv('ENRICHMENT_BATCH_SIZE', '5'))
_ENRICHMENT_INTERVAL_SECONDS = float(os.getenv('ENRICHMENT_INTERVAL_SECONDS', '30'))
_ENRICHMENT_STARTUP_DELAY_SECONDS = float(os.getenv('ENRICHMENT_STARTUP_DELAY_SECONDS', '5'))
_ENRICHMENT_ITEM_DELAY_SECONDS = float(os.getenv('ENRICHMENT_ITEM_DELAY_SECONDS', '0.1'))


class Config:
    """Central configuration for the meeting knowledge service."""

    SERVICE_NAME = "converse-knowledge-service"

    SUPABASE_URL = _SUPABASE_URL
    SUPABASE_KEY = _SUPABASE_KEY
    DATABASE_URL = _DATABASE_URL

    OPENAI_API_KEY = _OPENAI_API_KEY
    EMBEDDING_MODEL = _EMBEDDING_MODEL

    ANTHROPIC_API_KEY = _ANTHROPIC_API_KEY
    CLAUDE_MODEL = _CLAUDE_MODEL

    ENRICHMENT_ENABLED = _ENRICHMENT_ENABLED
    ENRICHMENT_BATCH_SIZE = _ENRICHMENT_BATCH_SIZE
    ENRICHMENT_INTERVAL_SECONDS = _ENRICHMENT_INTERVAL_SECONDS
    ENRICHMENT_STARTUP_DELAY_SECONDS = _ENRICHMENT_STARTUP_DELAY_SECONDS
    ENRICHMENT_ITEM_DELAY_SECONDS = _ENRICHMENT_ITEM_DELAY_SECONDS


settings = Config()
