# --- File: ./resticweb/errors.py ---
from flask import current_app, render_template
from werkzeug.exceptions import HTTPException

# ===================================================================
# --- ERROR TYPES ---
# ===================================================================

class ResticWebError(Exception):
    """Base error. `code` is the HTTP status the error handler responds with."""
    code = 500

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self):
        return self.message


class ValidationError(ResticWebError):
    """A request parameter is missing or malformed."""
    code = 400


class DecodeError(ResticWebError):
    """The captured listing output could not be decoded."""

    def __init__(self, message, offset=None):
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)
        self.offset = offset


class ProviderError(ResticWebError):
    """The restic invocation failed or timed out."""

    def __init__(self, message, returncode=None, stderr=''):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class RenderError(ResticWebError):
    """A single tree node failed to render. Recovered inline, never sent as a status."""


# ===================================================================
# --- ERROR HANDLERS ---
# ===================================================================

def _render_error_page(code, title, message):
    return render_template('error.html', code=code, title=title, message=message), code


def handle_resticweb_error(e):
    if e.code >= 500:
        current_app.logger.error(f"{type(e).__name__}: {e}")
    else:
        current_app.logger.warning(f"{type(e).__name__}: {e}")
    return _render_error_page(e.code, type(e).__name__, e.message)


def handle_http_exception(e):
    current_app.logger.warning(f"HTTP {e.code}: {e.description}")
    return _render_error_page(e.code, e.name, e.description)


def register_error_handlers(app):
    """Registers the themed error page for our own errors and werkzeug's."""
    app.register_error_handler(ResticWebError, handle_resticweb_error)
    app.register_error_handler(HTTPException, handle_http_exception)
