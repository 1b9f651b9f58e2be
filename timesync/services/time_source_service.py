"""
Time Source Services - Trusted and Local Clocks.

Implements TimeSourceInterface for the local system clock, SNTP servers and
the HTTP Date header. Network sources are anchored to time.monotonic() after
each sync, so later reads are unaffected by changes to the local wall clock.
"""

import socket
import struct
import threading
import time
from email.utils import parsedate_to_datetime

import requests

from logging_config import get_logger
from timesync.interfaces.time_source import TimeSourceInterface

logger = get_logger(__name__)

# Seconds between 1900-01-01 (NTP era 0) and 1970-01-01.
NTP_EPOCH_DELTA = 2208988800
NTP_PORT = 123
NTP_PACKET_SIZE = 48
# LI = 0, VN = 4, Mode = 3 (client)
NTP_CLIENT_HEADER = 0x23
NTP_MODE_SERVER = 4
# Bounds on seconds between background sync attempts while unsynced.
MIN_RETRY_INTERVAL_S = 1.0
MAX_RETRY_INTERVAL_S = 60.0


class SystemTimeSource(TimeSourceInterface):
    """The local device clock. Always available."""

    def current_time_millis(self) -> int:
        return time.time_ns() // 1_000_000


def _to_ntp_timestamp(unix_seconds: float) -> tuple[int, int]:
    ntp = unix_seconds + NTP_EPOCH_DELTA
    seconds = int(ntp)
    fraction = int((ntp - seconds) * 2**32) & 0xFFFFFFFF
    return seconds, fraction


def _from_ntp_timestamp(seconds: int, fraction: int) -> float:
    return seconds - NTP_EPOCH_DELTA + fraction / 2**32


def build_sntp_request(transmit_unix_s: float) -> bytes:
    """48-byte SNTP client request carrying our transmit time."""
    packet = bytearray(NTP_PACKET_SIZE)
    packet[0] = NTP_CLIENT_HEADER
    struct.pack_into("!II", packet, 40, *_to_ntp_timestamp(transmit_unix_s))
    return bytes(packet)


def parse_sntp_response(data: bytes, t1: float, t4: float) -> tuple[float, float]:
    """
    Computes clock offset and round-trip delay from a server reply.

    Args:
        data: Raw reply packet.
        t1: Local time the request was sent (unix seconds).
        t4: Local time the reply arrived (unix seconds).

    Returns:
        (offset_s, delay_s); offset is server time minus local time.

    Raises:
        ValueError: The reply is truncated, not from a server, or a
            kiss-of-death (stratum 0) packet.
    """
    if len(data) < NTP_PACKET_SIZE:
        raise ValueError(f"SNTP reply too short ({len(data)} bytes)")
    mode = data[0] & 0x07
    if mode != NTP_MODE_SERVER:
        raise ValueError(f"Unexpected SNTP mode {mode}")
    stratum = data[1]
    if stratum == 0:
        raise ValueError("SNTP kiss-of-death reply")

    words = struct.unpack("!12I", data[:NTP_PACKET_SIZE])
    if words[10] == 0 and words[11] == 0:
        raise ValueError("SNTP reply without transmit timestamp")
    t2 = _from_ntp_timestamp(words[8], words[9])
    t3 = _from_ntp_timestamp(words[10], words[11])

    offset = ((t2 - t1) + (t3 - t4)) / 2.0
    delay = (t4 - t1) - (t3 - t2)
    return offset, delay


def query_sntp(host: str, timeout: float = 5.0, port: int = NTP_PORT) -> tuple[float, float]:
    """Sends one SNTP request and returns (offset_s, delay_s)."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.settimeout(timeout)
        t1 = time.time()
        sock.sendto(build_sntp_request(t1), (host, port))
        data, _ = sock.recvfrom(512)
        t4 = time.time()
    return parse_sntp_response(data, t1, t4)


class _AnchoredTimeSource(TimeSourceInterface):
    """
    Shared sync/caching logic for network sources.

    After a successful fetch the trusted time is stored together with the
    monotonic clock reading; reads extrapolate from that anchor until the
    cache expires. While unsynced or expired the source reports None and
    re-syncs in the background, at most once per retry interval.
    """

    def __init__(
        self, cache_expiration_s: float = 3600.0, retry_interval_s: float | None = None
    ):
        self._cache_expiration_s = cache_expiration_s
        if retry_interval_s is None:
            retry_interval_s = max(
                MIN_RETRY_INTERVAL_S, min(cache_expiration_s, MAX_RETRY_INTERVAL_S)
            )
        self._retry_interval_s = retry_interval_s
        self._lock = threading.Lock()
        self._anchor_ms: int | None = None
        self._anchor_monotonic = 0.0
        self._last_attempt_monotonic: float | None = None
        self._sync_thread: threading.Thread | None = None

    def _fetch_time_ms(self) -> int:
        """Returns the trusted current time in epoch ms, or raises."""
        raise NotImplementedError

    def sync(self) -> bool:
        """Synchronizes now. Returns True on success."""
        with self._lock:
            self._last_attempt_monotonic = time.monotonic()
        try:
            trusted_ms = self._fetch_time_ms()
        except (OSError, ValueError, requests.RequestException) as e:
            logger.warning(f"{self.name} sync failed: {e}")
            return False
        with self._lock:
            self._anchor_ms = trusted_ms
            self._anchor_monotonic = time.monotonic()
        logger.info(f"{self.name} synchronized")
        return True

    def sync_in_background(self) -> None:
        """Starts a sync on a daemon thread unless one is already running."""
        with self._lock:
            if self._sync_thread is not None and self._sync_thread.is_alive():
                return
            self._sync_thread = threading.Thread(
                target=self.sync, name=f"{self.name}Sync", daemon=True
            )
            self._sync_thread.start()

    def _retry_due(self) -> bool:
        with self._lock:
            last = self._last_attempt_monotonic
        return last is None or time.monotonic() - last >= self._retry_interval_s

    def is_synced(self) -> bool:
        return self.current_time_millis() is not None

    def current_time_millis(self) -> int | None:
        with self._lock:
            anchor_ms = self._anchor_ms
            elapsed = time.monotonic() - self._anchor_monotonic
        if anchor_ms is not None and elapsed <= self._cache_expiration_s:
            return anchor_ms + int(elapsed * 1000)
        if self._retry_due():
            self.sync_in_background()
        return None


class NtpTimeSource(_AnchoredTimeSource):
    """SNTP client over a list of hosts, tried in order."""

    def __init__(
        self,
        hosts: list[str],
        timeout_s: float = 5.0,
        cache_expiration_s: float = 3600.0,
        retry_interval_s: float | None = None,
    ):
        super().__init__(cache_expiration_s, retry_interval_s)
        if not hosts:
            raise ValueError("NtpTimeSource needs at least one host")
        self._hosts = list(hosts)
        self._timeout_s = timeout_s

    @property
    def hosts(self) -> list[str]:
        return list(self._hosts)

    def _fetch_time_ms(self) -> int:
        last_error: Exception | None = None
        for host in self._hosts:
            try:
                offset_s, delay_s = query_sntp(host, timeout=self._timeout_s)
            except (OSError, ValueError) as e:
                logger.debug(f"SNTP query to {host} failed: {e}")
                last_error = e
                continue
            logger.debug(f"SNTP {host}: offset={offset_s * 1000:.1f}ms delay={delay_s * 1000:.1f}ms")
            return int((time.time() + offset_s) * 1000)
        raise OSError(f"No NTP host reachable ({last_error})")


class HttpDateTimeSource(_AnchoredTimeSource):
    """Second-resolution time from the HTTP Date header of a web server."""

    def __init__(
        self,
        url: str,
        timeout_s: float = 5.0,
        cache_expiration_s: float = 3600.0,
        retry_interval_s: float | None = None,
    ):
        super().__init__(cache_expiration_s, retry_interval_s)
        self._url = url
        self._timeout_s = timeout_s

    def _fetch_time_ms(self) -> int:
        t1 = time.monotonic()
        response = requests.head(self._url, timeout=self._timeout_s, allow_redirects=True)
        t4 = time.monotonic()
        date_header = response.headers.get("Date")
        if not date_header:
            raise ValueError(f"No Date header from {self._url}")
        server_time = parsedate_to_datetime(date_header)
        # Assume the server stamped the reply halfway through the round trip.
        return int(server_time.timestamp() * 1000 + (t4 - t1) * 500)


class FallbackTimeSource(TimeSourceInterface):
    """
    Tries each trusted source in order and falls back to the local clock.

    Never returns None. `last_source` names the source that answered the
    most recent read.
    """

    def __init__(
        self,
        sources: list[TimeSourceInterface],
        fallback: TimeSourceInterface | None = None,
    ):
        self._sources = list(sources)
        self._fallback = fallback or SystemTimeSource()
        self._last_source = self._fallback.name
        self._warned = False

    @property
    def last_source(self) -> str:
        return self._last_source

    @property
    def sources(self) -> list[TimeSourceInterface]:
        return list(self._sources)

    def current_time_millis(self) -> int:
        for source in self._sources:
            value = source.current_time_millis()
            if value is not None:
                self._last_source = source.name
                self._warned = False
                return value
        if self._sources and not self._warned:
            logger.warning("No trusted time source available, using the local clock")
            self._warned = True
        self._last_source = self._fallback.name
        value = self._fallback.current_time_millis()
        if value is None:
            raise RuntimeError(f"Fallback time source {self._fallback.name} returned None")
        return value


def current_time_or_local(source: TimeSourceInterface | None) -> int:
    """Reads the trusted clock, falling back to the local clock if unavailable."""
    if source is not None:
        value = source.current_time_millis()
        if value is not None:
            return value
        logger.debug(f"{source.name} unavailable, using the local clock")
    return SystemTimeSource().current_time_millis()
