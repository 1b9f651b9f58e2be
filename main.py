# ------------------------------------------------------------------------------
# Main Script for the Kronos Clock Service and Web Interface
# main.py
# ------------------------------------------------------------------------------
from config import load_config
config = load_config()
from logging_config import get_logger
logger = get_logger(__name__)
import atexit
import json
import os

# --------------------------------------------------------------------------
# Configuration Parameters
# --------------------------------------------------------------------------
# use the configuration values from the config dictionary.
_debug = config["DEBUG_MODE"]
output_dir = config["OUTPUT_DIR"]

logger.info(f"Debug mode is {'enabled' if _debug else 'disabled'}.")
logger.info(f"Configuration: {json.dumps(config, indent=2)}")

os.makedirs(output_dir, exist_ok=True)

# -----------------------------
# Trusted Time Sources
# -----------------------------
from timesync.services.time_source_service import (
    FallbackTimeSource,
    HttpDateTimeSource,
    NtpTimeSource,
)

trusted_sources = []
if config["NTP_HOSTS"]:
    trusted_sources.append(
        NtpTimeSource(
            config["NTP_HOSTS"],
            timeout_s=config["NTP_TIMEOUT_S"],
            cache_expiration_s=config["NTP_CACHE_EXPIRATION_S"],
        )
    )
if config["TIME_HTTP_URL"]:
    trusted_sources.append(
        HttpDateTimeSource(
            config["TIME_HTTP_URL"],
            timeout_s=config["NTP_TIMEOUT_S"],
            cache_expiration_s=config["NTP_CACHE_EXPIRATION_S"],
        )
    )
for source in trusted_sources:
    source.sync_in_background()

time_source = FallbackTimeSource(trusted_sources)

# -----------------------------
# Watch Store and Offset Tracking
# -----------------------------
from clock.angle_mapper import ClockAngleMapper, zero_reference_for
from clock.refresh import ClockRefresher
from timesync.services.observation_service import StubObservationService
from timesync.services.offset_tracker import OffsetTracker
from timesync.services.store_service import SqliteWatchStore
from timesync.services.sync_worker import SyncWorker

store = SqliteWatchStore()
tracker = OffsetTracker(
    store,
    time_source,
    config["CLOCK_ZONE"],
    observation=StubObservationService(),
    wrap_hours=config["OFFSET_WRAP_HOURS"],
)
worker = SyncWorker(tracker)
worker.start()

mapper = ClockAngleMapper(
    config["CLOCK_ZONE"], zero_reference_for(config["CLOCK_ZERO_REFERENCE"])
)


_last_logged_minute = [None]


def _log_tick(sample, angles):
    # First tick of each minute only.
    if sample.minute == _last_logged_minute[0]:
        return
    _last_logged_minute[0] = sample.minute
    logger.debug(
        f"{sample.time_of_day().isoformat(timespec='seconds')} {sample.zone}: "
        f"h={angles.hour:.4f} m={angles.minute:.4f} s={angles.second:.4f}"
    )


refresher = ClockRefresher(
    mapper,
    time_source,
    on_tick=_log_tick,
    ambient=config["AMBIENT_MODE"],
    frame_interval_ms=config["FRAME_INTERVAL_MS"],
)
refresher.start()

# Register the cleanup functions
atexit.register(worker.stop)
atexit.register(refresher.stop)

# -----------------------------
# Import and Run the Web Interface
# -----------------------------
from web.web_interface import KronosServices, create_web_interface

services = KronosServices(
    store=store,
    time_source=time_source,
    mapper=mapper,
    tracker=tracker,
    worker=worker,
    refresher=refresher,
)

# Expose the Flask server as the WSGI app.
interface = create_web_interface(services)
app = interface["server"]

if __name__ == '__main__':
    # Run the web interface
    try:
        interface["run"](debug=_debug, host=config["WEB_HOST"], port=config["WEB_PORT"])
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Shutting down sync worker...")
        refresher.stop()
        worker.stop()
