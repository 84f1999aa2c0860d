"""Routes package — Blueprint registration for all API endpoints.

Each blueprint module defines a `bp` variable. This module provides
register_blueprints() which imports and registers all of them.
"""


def register_blueprints(app):
    """Import and register all API blueprints on the Flask app."""
    from routes.system import bp as system_bp
    from routes.catalog import bp as catalog_bp
    from routes.diagnostics import bp as diagnostics_bp
    from routes.content import bp as content_bp
    from routes.generation import bp as generation_bp
    from routes.resolution import bp as resolution_bp

    for blueprint in [
        system_bp,
        catalog_bp,
        diagnostics_bp,
        content_bp,
        generation_bp,
        resolution_bp,
    ]:
        app.register_blueprint(blueprint)


def get_json_body() -> dict:
    """Request JSON object, {} for an empty or non-object body."""
    from flask import request

    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}
