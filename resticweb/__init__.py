# --- File: ./resticweb/__init__.py ---
from flask import Flask, g

from .config import INSTANCE_DIR, STATIC_DIR, TEMPLATES_DIR, default_settings, load_instance_config
from .errors import register_error_handlers
from .provider import ResticCli
from .render import TemplateRenderer
from .utils import register_template_filters


def create_app(test_config=None):
    """Application factory function."""
    app = Flask(
        __name__,
        instance_path=str(INSTANCE_DIR),
        static_folder=str(STATIC_DIR),
        template_folder=str(TEMPLATES_DIR)
    )

    # Defaults, then instance/config.json, then whatever the caller passes in.
    app.config.from_mapping(default_settings())
    app.config.update(load_instance_config(app.instance_path))
    if test_config is not None:
        app.config.update(test_config)

    provider = app.config.get('LISTING_PROVIDER') or ResticCli.from_config(app.config)
    app.extensions['resticweb.provider'] = provider
    app.extensions['resticweb.renderer'] = TemplateRenderer()

    register_template_filters(app)
    register_error_handlers(app)

    # --- BLUEPRINT REGISTRATION ---
    from .blueprints.browse import browse_bp
    app.register_blueprint(browse_bp)

    @app.before_request
    def load_project_name():
        g.project_name = app.config.get('PROJECT_NAME', 'Restic Web')

    return app
