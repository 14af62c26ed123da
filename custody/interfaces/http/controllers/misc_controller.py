# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, jsonify

from custody.infrastructure.db import Database
from custody.infrastructure.health import check_database


class MiscController:
    def __init__(self, database: Database | None = None) -> None:
        self._database = database

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("misc", __name__)
        bp.add_url_rule("/api/health", view_func=self.health, methods=["GET"])
        return bp

    def health(self):
        database = check_database(self._database)
        status = {"ok": database != "unavailable", "database": database}
        return jsonify(status), 200 if status["ok"] else 503
