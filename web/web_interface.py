# ------------------------------------------------------------------------------
# web_interface.py
# ------------------------------------------------------------------------------

from dataclasses import dataclass
from typing import Any

from flask import Flask, jsonify

from clock.angle_mapper import ClockAngleMapper, zero_reference_for
from clock.refresh import ClockRefresher
from logging_config import get_logger
from timesync.interfaces.store import WatchStoreInterface
from timesync.interfaces.time_source import TimeSourceInterface
from timesync.services.offset_tracker import OffsetTracker
from timesync.services.sync_worker import SyncWorker

logger = get_logger(__name__)


@dataclass
class KronosServices:
    """Everything the web layer needs, built once by the composition root."""

    store: WatchStoreInterface
    time_source: TimeSourceInterface
    mapper: ClockAngleMapper
    tracker: OffsetTracker
    worker: SyncWorker
    refresher: ClockRefresher | None = None
    sync_timeout_s: float = 10.0

    def apply_settings(self, cfg: dict[str, Any]) -> None:
        """
        Pushes changed runtime settings into the live services.

        Raises:
            InvalidZoneError: CLOCK_ZONE does not resolve.
        """
        mapper = ClockAngleMapper(
            cfg["CLOCK_ZONE"], zero_reference_for(cfg["CLOCK_ZERO_REFERENCE"])
        )
        self.tracker.configure(
            zone_id=cfg["CLOCK_ZONE"], wrap_hours=cfg["OFFSET_WRAP_HOURS"]
        )
        self.mapper = mapper
        if self.refresher is not None:
            self.refresher.set_mapper(mapper)
            self.refresher.set_ambient(bool(cfg["AMBIENT_MODE"]))
            self.refresher.set_frame_interval(cfg["FRAME_INTERVAL_MS"])


def create_web_interface(services: KronosServices):
    """
    Creates and returns the web interface (Flask server) for the project.

    Returns:
        Dict with "server" (the Flask app) and "run" (blocking dev server).
    """
    app = Flask(__name__)

    from web.blueprints.api_v1 import api_v1

    api_v1.services = services
    app.register_blueprint(api_v1)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "sync_worker_running": services.worker.is_running()})

    def run(debug=False, host="0.0.0.0", port=8050):
        logger.info(f"Starting web interface on {host}:{port}")
        app.run(debug=debug, host=host, port=port, use_reloader=False, threaded=True)

    return {"server": app, "run": run}
