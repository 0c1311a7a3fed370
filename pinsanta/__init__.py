from __future__ import annotations

import os

import click
from flask import Flask, jsonify
from flask.logging import default_handler

from .errors import SantaError
from .extensions import db, login_manager, migrate, csrf
from .views.admin import admin_bp
from .views.auth import auth_bp
from .views.player import player_bp
from .views.public import public_bp

DEFAULT_ADMIN_PIN = "123456"


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///secret-santa.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Single shared admin secret; players authenticate with their own 4-digit PIN.
    app.config["SANTA_ADMIN_PIN"] = os.environ.get("ADMIN_PIN", DEFAULT_ADMIN_PIN).strip()
    app.config["SANTA_ASSIGN_ATTEMPTS"] = int(os.environ.get("SANTA_ASSIGN_ATTEMPTS", "3"))
    app.config["SANTA_LOG_LEVEL"] = os.environ.get("SANTA_LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    _configure_logging(app)
    if app.config["SANTA_ADMIN_PIN"] == DEFAULT_ADMIN_PIN:
        app.logger.warning("ADMIN_PIN is not set; using the default admin PIN")

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # JSON endpoints authenticate by header/session instead of CSRF tokens.
    for bp in (public_bp, auth_bp, admin_bp, player_bp):
        csrf.exempt(bp)
        app.register_blueprint(bp)

    @app.errorhandler(SantaError)
    def _santa_error(e: SantaError):
        return jsonify(e.to_dict()), e.status_code

    @app.cli.command("init-db")
    def init_db_command():
        """Create the participants and exclusions tables."""
        db.create_all()
        click.echo("Initialized the database.")

    return app


def _configure_logging(app: Flask) -> None:
    # app.logger is the "pinsanta" logger; service modules log to its children.
    app.logger.setLevel(app.config["SANTA_LOG_LEVEL"])
    if default_handler not in app.logger.handlers:
        app.logger.addHandler(default_handler)
