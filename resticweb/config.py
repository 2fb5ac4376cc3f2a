# --- File: ./resticweb/config.py ---
import os
import json
from pathlib import Path

# --- Base Directory ---
PACKAGE_DIR = Path(__file__).resolve().parent
BASE_DIR = PACKAGE_DIR.parent

# --- Key Directories ---
# The instance folder holds the optional config.json with per-install overrides.
INSTANCE_DIR = Path(os.environ.get('RESTICWEB_INSTANCE_DIR', BASE_DIR / "instance")).resolve()
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

# --- Server Defaults ---
DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 6723

# --- Restic Settings ---
RESTIC_BINARY = os.environ.get('RESTIC_BINARY', 'restic')
RESTIC_REPOSITORY = os.environ.get('RESTIC_REPOSITORY', '').strip()
RESTIC_PASSWORD_FILE = os.environ.get('RESTIC_PASSWORD_FILE', '').strip()
RESTIC_CACHE_DIR = os.environ.get('RESTIC_CACHE_DIR', '').strip()
RESTIC_NO_CACHE = os.environ.get('RESTIC_NO_CACHE', '').lower() in ('1', 'true', 'yes')
RESTIC_OPTIONS = [o.strip() for o in os.environ.get('RESTIC_OPTIONS', '').split(',') if o.strip()]
RESTIC_TIMEOUT = int(os.environ.get('RESTIC_TIMEOUT', '600'))

DUMP_CHUNK_SIZE = 64 * 1024
PROJECT_NAME = "Restic Web"


def load_instance_config(instance_dir=None):
    """
    Reads instance/config.json if it exists and returns its contents as a dict.
    Only upper-case keys are kept, matching Flask's own config conventions.
    """
    config_path = Path(instance_dir or INSTANCE_DIR) / "config.json"
    if not config_path.exists():
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        print(f"[WARNING] Could not read or parse {config_path}: {e}")
        return {}
    if not isinstance(user_config, dict):
        print(f"[WARNING] Ignoring {config_path}: expected a JSON object.")
        return {}
    return {k: v for k, v in user_config.items() if k.isupper()}


def default_settings():
    """Returns the settings mapping every app starts from."""
    return {
        'PROJECT_NAME': PROJECT_NAME,
        'RESTIC_BINARY': RESTIC_BINARY,
        'RESTIC_REPOSITORY': RESTIC_REPOSITORY,
        'RESTIC_PASSWORD_FILE': RESTIC_PASSWORD_FILE,
        'RESTIC_CACHE_DIR': RESTIC_CACHE_DIR,
        'RESTIC_NO_CACHE': RESTIC_NO_CACHE,
        'RESTIC_OPTIONS': list(RESTIC_OPTIONS),
        'RESTIC_TIMEOUT': RESTIC_TIMEOUT,
        'DUMP_CHUNK_SIZE': DUMP_CHUNK_SIZE,
        'LISTING_PROVIDER': None,
    }
