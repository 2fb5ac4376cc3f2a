# --- File: ./resticweb/request_params.py ---
from urllib.parse import unquote

from .errors import ValidationError

# ===================================================================
# --- QUERY STRING HELPERS ---
# ===================================================================

def get_params(args) -> dict:
    """Flattens a request's query args to {key: first value}."""
    return {key: (values[0] if values else '') for key, values in args.lists()}


def get_comma_sep_params(key, args) -> list:
    """Splits a comma separated parameter, dropping empty items."""
    value = args.get(key, '')
    if not value:
        return []
    return [v.strip() for v in value.split(',') if v.strip()]


def get_bool_param(key, args) -> bool:
    """A flag is set when the parameter is present and non-empty, e.g. `?long=1`."""
    return args.get(key, '') != ''


def get_required_param(key, args, description=None) -> str:
    value = args.get(key, '').strip()
    if not value:
        raise ValidationError(f"no {description or key} is given in request")
    return value


def get_absolute_path_param(key, args, unquote_again=False):
    """
    Returns the path parameter, or None if absent. The value is decoded once by
    the query string parser. With `unquote_again`, it is unquoted once more for
    hand-typed filters that browsers send quoted twice. Values built by our own
    links (`dir`, the dump link) are encoded once and must not get it.
    """
    value = args.get(key, '')
    if not value:
        return None
    path = unquote(value) if unquote_again else value
    if not path.startswith('/'):
        raise ValidationError(f"path filter must be absolute, starting with '/': {path}")
    return path
