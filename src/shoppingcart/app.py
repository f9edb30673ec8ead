import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from shoppingcart.core.config import Config, config
from shoppingcart.core.dependencies import CONTAINER_EXTENSION, DependencyContainer, configure_container
from shoppingcart.core.exceptions import CartError
from shoppingcart.db import create_tables, get_engine
from shoppingcart.routes import cart_bp

logger = logging.getLogger(__name__)


def create_app(config_override: Optional[Config] = None, engine: Optional[Engine] = None) -> Flask:
    """
    Application factory.

    Each app gets its own dependency container, so tests can build several
    apps against different databases side by side.
    """
    app_config = config_override or config
    app_config.validate()

    logging.basicConfig(
        level=app_config.app.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = app_config.app.secret_key
    app.config["DEBUG"] = app_config.app.debug

    engine = engine or get_engine(app_config.cart.database)
    create_tables(engine, app_config.cart.database.table)

    app.extensions[CONTAINER_EXTENSION] = configure_container(
        engine,
        app_config.cart,
        target=DependencyContainer(),
    )

    # ------------------------------------------------------------------ #
    # Blueprints                                                          #
    # ------------------------------------------------------------------ #
    app.register_blueprint(cart_bp, url_prefix="/api/v1/cart")

    # ------------------------------------------------------------------ #
    # Error handlers: consistent JSON error envelope                      #
    # ------------------------------------------------------------------ #
    @app.errorhandler(CartError)
    def cart_error(e: CartError):
        if e.status_code >= 500:
            logger.error(f"{e.error_code}: {e.internal_message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"success": False, "error": str(e.description)}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"success": False, "error": str(e.description)}), 404

    @app.errorhandler(SQLAlchemyError)
    def db_error(e):
        logger.error(f"Unhandled database error: {e}")
        return jsonify({"success": False, "error": "A database error occurred."}), 500

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"success": False, "error": "An internal server error occurred."}), 500

    # ------------------------------------------------------------------ #
    # Health check                                                         #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Liveness and readiness check. Returns 503 if DB is unreachable."""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return jsonify({
                "status": "ok",
                "database": "reachable",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }), 200
        except SQLAlchemyError as exc:
            return jsonify({"status": "error", "database": str(exc)}), 503

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(debug=config.app.debug, host=config.app.host, port=config.app.port)
