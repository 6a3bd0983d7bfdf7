import logging

from flask import Flask
from flask_cors import CORS

# Package-level extensions (db, login_manager) exposed in this package's __init__
from . import db, login_manager
from .config import Config, resolve_settings

from flask_jwt_extended import JWTManager

# JWT manager instance (initialized per-app)
jwt = JWTManager()


def create_app(config: dict = None):
    """Create and configure the Flask application.

    Optional `config` dict may be provided for test overrides (e.g., in-memory DB).
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    resolve_settings(app.config)
    # only the JSON API is meant for cross-origin callers
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Init extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "views.login"
    jwt.init_app(app)

    # Flask-Login user loader
    @login_manager.user_loader
    def load_user(user_id):
        # import lazily to avoid circular imports at module import time
        from .models.app import User

        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    # Import models to register with SQLAlchemy
    from .models import app as models

    # Register routes (relative imports so module works when run as package)
    from .routes.views import views_bp
    from .routes.auth import auth_bp
    from .routes.doctor import doctor_bp
    from .routes.patient import patient_bp
    from .routes.appointment import appointment_bp

    app.register_blueprint(views_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(doctor_bp, url_prefix="/api/medicos")
    app.register_blueprint(patient_bp, url_prefix="/api/pacientes")
    app.register_blueprint(appointment_bp, url_prefix="/api/turnos")

    return app


if __name__ == "__main__":
    app = create_app()
    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.run(debug=True)
