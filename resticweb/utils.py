# --- File: ./resticweb/utils.py ---
import math
import datetime
from urllib.parse import quote

# ===================================================================
# TEMPLATE FILTERS
# ===================================================================

# Type bits of Go's os.FileMode, highest bit first, as restic serializes them.
_FILEMODE_TYPE_CHARS = "dalTLDpSugct?"
_FILEMODE_PERM_CHARS = "rwxrwxrwx"


def _jinja2_filter_datetime(date, fmt='%Y-%m-%d %H:%M:%S'):
    """Formats a datetime object or an ISO date string."""
    if not date:
        return "N/A"
    if isinstance(date, str):
        try:
            date = datetime.datetime.fromisoformat(date)
        except (ValueError, TypeError):
            return date  # Return original string if parsing fails
    return date.strftime(fmt) if hasattr(date, 'strftime') else date


def _jinja2_filter_filesize(size_bytes):
    """Converts a size in bytes to a human-readable format."""
    if size_bytes is None:
        return "N/A"
    if size_bytes == 0:
        return "0 B"
    size_name = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_name) - 1)
    if i == 0:
        return f"{size_bytes} B"
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)
    return f"{s} {size_name[i]}"


def _jinja2_filter_filemode(mode):
    """Renders a numeric file mode the way `ls -l` (and restic) does: drwxr-xr-x."""
    if mode is None:
        return ""
    mode = int(mode)
    out = [c for i, c in enumerate(_FILEMODE_TYPE_CHARS) if mode & (1 << (31 - i))]
    if not out:
        out.append('-')
    for i, c in enumerate(_FILEMODE_PERM_CHARS):
        out.append(c if mode & (1 << (8 - i)) else '-')
    return "".join(out)


def _jinja2_filter_urlquote(value):
    """Quotes a value for use inside a query string."""
    return quote(str(value), safe='')


def register_template_filters(app):
    """Registers all custom template filters with the Flask application."""
    app.template_filter('strftime')(_jinja2_filter_datetime)
    app.template_filter('filesize')(_jinja2_filter_filesize)
    app.template_filter('filemode')(_jinja2_filter_filemode)
    app.template_filter('urlquote')(_jinja2_filter_urlquote)
