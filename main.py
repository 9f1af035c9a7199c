"""Entry point for the log index synchronizer."""

import logging
import signal
import sys
import threading

from logsync.app import create_app
from logsync.config import load_config
from logsync.errors import ConfigError
from logsync.mapper import build_mapper
from logsync.metrics import SyncMetrics
from logsync.scheduler import SchedulerGuard
from logsync.store import LogStoreClient, create_pool
from logsync.submitter import SolrSubmitter
from logsync.sync import SyncService


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    store = LogStoreClient(create_pool(config.database_url), table=config.log_table)
    submitter = SolrSubmitter(
        config.solr_url,
        config.solr_username,
        config.solr_password,
        timeout=config.request_timeout,
    )
    metrics = SyncMetrics()
    service = SyncService(store, build_mapper(config.fragment_size), submitter, metrics)
    guard = SchedulerGuard(service, config.cron_schedule, config.timezone)

    logger.info(
        "Starting log index sync with solr=%s, table=%s, fragment_size=%s",
        config.solr_url, config.log_table, config.fragment_size or "unfragmented",
    )
    guard.start()

    app = create_app(guard, metrics)
    web = threading.Thread(
        target=app.run,
        kwargs={"host": config.host, "port": config.port, "use_reloader": False},
        daemon=True,
    )
    web.start()
    logger.info("Status server listening on %s:%d", config.host, config.port)

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        guard.shutdown(wait=True)
        submitter.close()
        store.close()


if __name__ == "__main__":
    main()
