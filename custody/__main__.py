# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Serve the API with werkzeug's threaded server."""

from __future__ import annotations

import signal
import threading

from werkzeug.serving import make_server

from custody.app import create_app, get_container
from custody.shared.config import load_config
from custody.shared.logging import logger


def main() -> None:
    config = load_config()
    app = create_app(config)
    container = get_container(app)

    server = make_server(config.server.host, config.server.port, app, threaded=True)
    stopping = threading.Event()

    def _request_shutdown(signum, _frame) -> None:
        if stopping.is_set():
            return
        stopping.set()
        logger.info(f"server: received {signal.Signals(signum).name}, shutting down")
        # shutdown() blocks until serve_forever returns, so call it off the main thread
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _request_shutdown)
    signal.signal(signal.SIGTERM, _request_shutdown)

    container.token_sweeper.start()
    logger.info(f"server: listening on http://{config.server.host}:{config.server.port}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
        container.shutdown()
        logger.info("server: stopped")


if __name__ == "__main__":
    main()
