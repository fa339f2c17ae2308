# ============================================================================
# src/medication_identification/config/env.py
# ============================================================================
"""
.env loading

Environment variables always win over .env values, so a deployed process
can override anything checked into a local .env file.
"""

from pathlib import Path

from dotenv import load_dotenv


def load_environment() -> bool:
    """Load .env file if it exists. Returns True when a file was loaded."""
    # Project root first, then the current working directory
    env_path = Path(__file__).parent.parent.parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path, override=False)
        return True

    cwd_env = Path.cwd() / '.env'
    if cwd_env.exists():
        load_dotenv(cwd_env, override=False)
        return True

    return False
