# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from custody.container import Container
from custody.shared.config import AppConfig, load_config
from custody.shared.errors import register_error_handler
from custody.shared.logging import logger, setup_logging
from custody.shared.middleware.request_logger import configure_request_logging

EXTENSION_KEY = "custody"


def _configure_security_headers(app: Flask, *, enable_hsts: bool) -> None:
    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        resp.headers.setdefault("Cache-Control", "no-store")
        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
        )
        resp.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")

        if enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return resp


def create_app(config: AppConfig | None = None) -> Flask:
    config = config or load_config()
    setup_logging(config.log_level, log_file=config.log_file, debug_mode=config.debug_logging)

    container = Container(config)
    container.init_storage()

    app = Flask(__name__)
    app.config.update(SECRET_KEY=config.secret_key)
    app.extensions[EXTENSION_KEY] = container

    register_error_handler(app, debug_mode=config.debug_logging)
    configure_request_logging(app, debug_mode=config.debug_logging)
    _configure_security_headers(app, enable_hsts=config.security.enable_hsts)

    cors_kwargs: dict[str, object] = {
        "resources": {r"/api/*": {"origins": config.security.allowed_origins}}
    }
    if any(o != "*" for o in config.security.allowed_origins):
        cors_kwargs["supports_credentials"] = True
    CORS(app, **cors_kwargs)

    app.register_blueprint(container.misc_controller.as_blueprint())
    app.register_blueprint(container.auth_controller.as_blueprint())
    app.register_blueprint(container.account_controller.as_blueprint())

    logger.info(
        f"Flask app initialized storage={config.storage_backend} "
        f"tokens={config.auth.token_strategy}"
    )
    return app


def get_container(app: Flask) -> Container:
    return app.extensions[EXTENSION_KEY]


__all__ = ["create_app", "get_container"]
