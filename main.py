"""
Password Arena Main Entry Point

Starts the web front-end and the metrics exporter based on configuration.
"""

import argparse
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from arena.config.config_loader import get_config
from arena.logging.logger import setup_logger
from arena.metrics.prometheus_exporter import get_metrics, start_metrics_server
from arena.web.app import BACKGROUND_WORKERS, create_app
from storage.arena_store import ArenaStore


class ArenaServer:
    """
    Owns the long-lived collaborators of one arena process.

    The store, broadcast hub and rate limiter are built once at startup and
    handed to the Flask app.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize the server.

        Args:
            config_file: Optional YAML configuration file
        """
        self.config = get_config(config_file)
        log_file = Path(self.config.logging.dir) / "server.log"
        self.logger = setup_logger(
            "arena.server",
            level=self.config.logging.level,
            log_format=self.config.logging.format,
            log_file=log_file,
        )
        self.store = ArenaStore.from_config(self.config.database)
        self.background = ThreadPoolExecutor(
            max_workers=BACKGROUND_WORKERS, thread_name_prefix="arena-request-log"
        )
        self.app = None

    def start(self) -> None:
        """Create tables, start metrics and serve HTTP until interrupted."""
        self.logger.info(f"Starting {self.config.app.app_name}")
        self.logger.info(f"Environment: {self.config.app.environment}")

        self.store.create_tables()

        metrics = get_metrics()
        if self.config.metrics.enabled:
            start_metrics_server(self.config.metrics.port)

        self.app = create_app(
            self.config, store=self.store, metrics=metrics, background=self.background
        )

        self.logger.info(
            f"Listening on {self.config.web.host}:{self.config.web.port}",
            extra={"event_type": "server_started", "component": "server"},
        )
        self.app.run(
            host=self.config.web.host,
            port=self.config.web.port,
            debug=self.config.app.debug,
            use_reloader=False,
            threaded=True,
        )

    def stop(self) -> None:
        """Flush pending request log writes and release the database connections."""
        self.logger.info("Stopping server")
        self.background.shutdown(wait=True)
        self.store.close()


def signal_handler(signum, frame):
    """
    Handle shutdown signals.

    Args:
        signum: Signal number
        frame: Current stack frame
    """
    print("\nReceived shutdown signal, stopping...")
    sys.exit(0)


def main(argv=None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Password Arena server")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration file")
    args = parser.parse_args(argv)

    signal.signal(signal.SIGTERM, signal_handler)

    server = ArenaServer(args.config)
    try:
        server.start()
    except KeyboardInterrupt:
        print("\nShutdown requested...")
    except Exception as e:
        server.logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        server.stop()


if __name__ == "__main__":
    main()
