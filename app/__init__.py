"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import importlib

from flask import Flask, jsonify, request

from app.errors import GenerationError, InvalidFeedback, NotFound


def create_app():
    """Create and configure the Flask application."""
    from app.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # Register blueprints
    from app.routes.prospects import bp as prospects_bp
    from app.routes.scripts import bp as scripts_bp
    from app.routes.hive import bp as hive_bp
    from app.routes.reports import bp as reports_bp
    from app.routes.monitor import bp as monitor_bp

    app.register_blueprint(prospects_bp)
    app.register_blueprint(scripts_bp)
    app.register_blueprint(hive_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(monitor_bp)

    # Write endpoints all take a JSON object; arrays and scalars never reach a handler
    @app.before_request
    def _require_json_object():
        if request.method in ('POST', 'PATCH', 'PUT') and request.is_json:
            data = request.get_json(silent=True)
            if data is not None and not isinstance(data, dict):
                return jsonify({'error': 'JSON object body required'}), 400

    # Fallback mapping for anything a route handler lets through
    @app.errorhandler(NotFound)
    def _not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(InvalidFeedback)
    def _invalid_feedback(e):
        return jsonify({'error': str(e), 'allowed': e.allowed}), 400

    @app.errorhandler(GenerationError)
    def _generation_failed(e):
        app.logger.error("Text generation failed: %s", e)
        return jsonify({'error': 'Error generating script'}), 502

    # Flask has already logged the traceback by the time this runs
    @app.errorhandler(500)
    def _internal_error(e):
        return jsonify({'error': 'Internal server error'}), 500

    # Initialize circuit breakers for external API services
    from app.extensions import redis_client
    from app.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic, no create_all() here.
    importlib.import_module('app.models.prospect')
    importlib.import_module('app.models.script')
    importlib.import_module('app.models.learning')

    return app
