"""
API v1 Blueprint.

This blueprint provides versioned API endpoints under /api/v1/*: the clock
face, time zones, the watch registry and watch syncing.

Services are injected by create_web_interface() as `api_v1.services`.
"""

import threading
from datetime import time

from flask import Blueprint, Response, jsonify, request

from config import get_config
from core import clock_core, settings_core, watches_core, zones_core
from logging_config import get_logger
from timesync.errors import (
    InvalidZoneError,
    ObservationUnavailable,
    StoreUnavailable,
    WatchNotFoundError,
)
from timesync.services.observation_service import decode_image
from timesync.services.offset_tracker import SyncResult

logger = get_logger(__name__)

# Create Blueprint
api_v1 = Blueprint("api_v1", __name__, url_prefix="/api/v1")
api_v1.services = None

MIN_IMAGE_SIZE = 64
MAX_IMAGE_SIZE = 2048


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


def _error_response(error: Exception):
    """Maps application errors to HTTP responses."""
    if isinstance(error, ObservationUnavailable):
        return _error(str(error), 422)
    if isinstance(error, WatchNotFoundError):
        return _error(str(error), 404)
    if isinstance(error, StoreUnavailable):
        return _error("Watch storage is unavailable, please retry.", 503)
    if isinstance(error, InvalidZoneError):
        return _error(str(error), 400)
    logger.error(f"Unexpected API error: {error}", exc_info=error)
    return _error(str(error), 500)


def _flag(name: str, default: bool) -> bool:
    value = request.args.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_observed(value) -> time:
    """Parses HH:MM[:SS[.fff]] into a naive time. Raises ValueError."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError("observed must be a time string HH:MM[:SS[.fff]]")
    parsed = time.fromisoformat(value.strip())
    if parsed.tzinfo is not None:
        raise ValueError("observed must not carry a UTC offset")
    return parsed


def _request_data():
    """JSON object body, or form fields when the body is not JSON."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form


def _result_to_dict(result: SyncResult) -> dict:
    return {
        "watch": watches_core.watch_to_dict(result.watch),
        "trusted_ms": result.trusted_ms,
        "offset_ms": result.offset_ms,
        "drift_ms": result.drift_ms,
        "previous_offset_ms": result.previous_offset_ms,
    }


def _submit_and_wait(watch_id: int, **job):
    """Hands the job to the sync worker and waits a bounded time for it."""
    services = api_v1.services
    done = threading.Event()
    outcome = {}

    def _on_done(result, error):
        outcome["result"] = result
        outcome["error"] = error
        done.set()

    if not services.worker.submit(watch_id, callback=_on_done, **job):
        return _error("A sync for this watch is already in progress.", 409)

    if not done.wait(services.sync_timeout_s):
        return jsonify({"status": "pending", "watch_id": watch_id}), 202

    if outcome["error"] is not None:
        return _error_response(outcome["error"])
    return jsonify({"status": "success", **_result_to_dict(outcome["result"])})


# =============================================================================
# Clock
# =============================================================================


def _mapper_for_request():
    services = api_v1.services
    zone = request.args.get("zone")
    if zone:
        return services.mapper.with_zone(zone)
    return services.mapper


@api_v1.route("/clock", methods=["GET"])
def clock_get():
    """Returns the current time and hand angles for a zone."""
    try:
        mapper = _mapper_for_request()
    except InvalidZoneError as e:
        return _error_response(e)
    return jsonify(clock_core.clock_snapshot(mapper, api_v1.services.time_source))


@api_v1.route("/clock.png", methods=["GET"])
def clock_png():
    """Renders the clock face as a PNG image."""
    cfg = get_config()
    try:
        mapper = _mapper_for_request()
    except InvalidZoneError as e:
        return _error_response(e)

    try:
        size = int(request.args.get("size", cfg["CLOCK_IMAGE_SIZE"]))
    except ValueError:
        return _error("size must be an integer", 400)
    size = max(MIN_IMAGE_SIZE, min(size, MAX_IMAGE_SIZE))

    png = clock_core.render_clock(
        mapper,
        api_v1.services.time_source,
        size=size,
        show_numerals=_flag("numerals", cfg["SHOW_NUMERALS"]),
        ambient=_flag("ambient", cfg["AMBIENT_MODE"]),
        accent=cfg["ACCENT_COLOR"],
    )
    return Response(png, mimetype="image/png", headers={"Cache-Control": "no-store"})


# =============================================================================
# Time Zones
# =============================================================================


@api_v1.route("/zones", methods=["GET"])
def zones_list():
    """Lists selectable zones and the configured one."""
    return jsonify(
        {"current": api_v1.services.mapper.zone_id, "zones": zones_core.available_zones()}
    )


@api_v1.route("/zones/country/<code>", methods=["GET"])
def zones_for_country(code: str):
    """Suggests a zone for an ISO country code."""
    zone = zones_core.zone_for_country(code)
    if zone is None:
        return _error(f"No time zone known for country {code!r}", 404)
    return jsonify({"country": code.upper(), "zone": zone})


# =============================================================================
# Watches
# =============================================================================


@api_v1.route("/watches", methods=["GET"])
def watches_list():
    """Returns all watches ordered by make, then model."""
    try:
        watches = watches_core.list_watches(api_v1.services.store)
    except StoreUnavailable as e:
        return _error_response(e)
    return jsonify({"watches": [watches_core.watch_to_dict(w) for w in watches]})


@api_v1.route("/watches", methods=["POST"])
def watches_add():
    """Registers a watch. Body: {"make": ..., "model": ...}."""
    data = _request_data()
    try:
        watch = watches_core.register_watch(
            api_v1.services.store, data.get("make", ""), data.get("model", "")
        )
    except ValueError as e:
        return _error(str(e), 400)
    except StoreUnavailable as e:
        return _error_response(e)
    return jsonify({"status": "success", "watch": watches_core.watch_to_dict(watch)}), 201


@api_v1.route("/watches/<int:watch_id>", methods=["GET"])
def watches_get(watch_id: int):
    try:
        watch = watches_core.get_watch(api_v1.services.store, watch_id)
    except (WatchNotFoundError, StoreUnavailable) as e:
        return _error_response(e)
    return jsonify(watches_core.watch_to_dict(watch))


@api_v1.route("/watches/<int:watch_id>/sync", methods=["POST"])
def watches_sync(watch_id: int):
    """
    Compares a watch with the trusted clock.

    Accepts either an uploaded "image" file (read by the observation
    source) or an "observed" time string in JSON or form data.
    """
    upload = request.files.get("image")
    if upload is not None:
        frame = decode_image(upload.read())
        if frame is None:
            return _error("Could not decode the uploaded image.", 400)
        return _submit_and_wait(watch_id, frame=frame)

    data = _request_data()
    raw_observed = data.get("observed")
    observed = None
    if raw_observed not in (None, ""):
        try:
            observed = _parse_observed(raw_observed)
        except ValueError as e:
            return _error(str(e), 400)
    return _submit_and_wait(watch_id, observed=observed)


@api_v1.route("/watches/<int:watch_id>/mark-synced", methods=["POST"])
def watches_mark_synced(watch_id: int):
    """Records that the watch was just set to the trusted time."""
    return _submit_and_wait(watch_id, mark_synced=True)


# =============================================================================
# Settings
# =============================================================================


@api_v1.route("/settings", methods=["GET"])
def settings_get():
    """Returns the runtime-editable settings."""
    return jsonify(settings_core.get_current_settings())


@api_v1.route("/settings", methods=["POST"])
def settings_post():
    """Validates, persists and applies runtime settings."""
    data = request.get_json(silent=True)
    ok, errors = settings_core.update_settings(data)
    if not ok:
        return jsonify({"status": "error", "errors": errors}), 400

    try:
        api_v1.services.apply_settings(get_config())
    except InvalidZoneError as e:
        return _error_response(e)
    return jsonify({"status": "success", "settings": settings_core.get_current_settings()})
