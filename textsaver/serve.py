import logging
import signal
import threading
from typing import Optional

from werkzeug.serving import BaseWSGIServer, make_server

from textsaver.app import create_app
from textsaver.config import Config, load_config
from textsaver.errors import ConfigurationError, StorageError
from textsaver.store import Store

logger = logging.getLogger("textsaver")


def build_server(cfg: Config, store: Store) -> BaseWSGIServer:
    app = create_app(cfg, store=store)
    server = make_server(cfg.host, cfg.port, app, threaded=True)
    # Non-daemon request threads are joined by server_close(), so in-flight
    # requests finish before the store is closed.
    server.daemon_threads = False
    return server


def install_signal_handlers(server: BaseWSGIServer) -> None:
    def _shutdown(signum, frame) -> None:
        logger.info("Received %s, shutting down...", signal.Signals(signum).name)
        # shutdown() waits for serve_forever() to return, so it cannot run on
        # the thread that is serving.
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)


def run(cfg: Config) -> None:
    store = Store(cfg.database_path)
    logger.info("Connected to SQLite database at %s", cfg.database_path)
    server: Optional[BaseWSGIServer] = None
    try:
        store.init_schema()
        server = build_server(cfg, store)
        install_signal_handlers(server)
        logger.info("Server running on %s:%s", cfg.host, server.server_port)
        logger.info("OpenAI configured: %s", "Yes" if cfg.openai_api_key else "No")
        server.serve_forever()
    finally:
        if server is not None:
            server.server_close()
            logger.info("HTTP server closed.")
        store.close()
        logger.info("Database connection closed.")


def main() -> None:
    try:
        cfg = load_config()
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}")
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        run(cfg)
    except StorageError as exc:
        raise SystemExit(f"Storage error: {exc}")


if __name__ == "__main__":
    main()
