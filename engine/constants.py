"""
Shared constants used across the measurement engine.

Endpoints, payload sizes and timing floors are fixed; nothing here is
exposed as a runtime option.
"""

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

BASE_URL = "https://speed.cloudflare.com"
DOWNLOAD_URL = f"{BASE_URL}/__down"
UPLOAD_URL = f"{BASE_URL}/__up"

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = "speedcheck/1.0 (+aiohttp)"

# Every request must hit the network; nothing may be served from a cache.
NO_CACHE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}

UPLOAD_CONTENT_TYPE = "application/octet-stream"

# ---------------------------------------------------------------------------
# Latency
# ---------------------------------------------------------------------------

PING_COUNT = 5
PING_TIMEOUT = 15.0              # seconds, per request

# ---------------------------------------------------------------------------
# Transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 10_000_000          # bytes per chunk, both directions
MIN_TRANSFER_DURATION = 5.0      # seconds before throughput is final
PROGRESS_INTERVAL = 0.15         # seconds between progress callbacks
STREAM_BLOCK_SIZE = 64 * 1024    # read / write granularity inside a chunk

BYTES_PER_MEGABIT = 125_000
