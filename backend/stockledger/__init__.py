# backend/stockledger/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db


def create_app(config_object=Config) -> Flask:
    """
    Build an application instance.

    Each instance owns one in-memory database: the product, order and
    location collections live for as long as the app does.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db.init_app(app)

    # Import models so metadata is complete before create_all
    from . import models  # noqa: F401
    from .immutability import register_immutability_listeners
    register_immutability_listeners()

    with app.app_context():
        db.create_all()

        if app.config.get("SEED_DEMO_DATA"):
            from .services.seed_service import seed_demo_data
            seed_demo_data()

    return app
