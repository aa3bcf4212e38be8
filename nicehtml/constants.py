"""Shared constants for the fragment loader."""

DEFAULT_SCRIPT_TYPE = "text/nicehtml"
DEFAULT_CACHE_BUST_PARAM = "timestamp"
DEFAULT_ENGINE_KIND = "nicehtml"
DEFAULT_USER_AGENT = "nicehtml-loader"

ORIGIN_INLINE = "inline"
ORIGIN_REMOTE = "remote"

STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_JOINED = "joined"
STATE_INVOKING = "invoking"
STATE_DONE = "done"
STATE_FAILED = "failed"

RUN_STATES = (
    STATE_IDLE,
    STATE_LOADING,
    STATE_JOINED,
    STATE_INVOKING,
    STATE_DONE,
    STATE_FAILED,
)
