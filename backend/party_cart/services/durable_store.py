import json
import time
from typing import Any, List, Optional

from party_cart.config import settings
from party_cart.repositories.storage_repo import QuotaExceededError
from party_cart.utils.log import get_logger

log = get_logger("storage")

_PROBE_KEY = "__storage_probe__"
_DAY_MS = 24 * 60 * 60 * 1000

# returned by _loads when the raw text is not valid JSON
_MISSING = object()


def _loads(raw: Optional[str]) -> Any:
    if raw is None:
        return _MISSING
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return _MISSING


class DurableStore:
    """
    JSON key/value adapter over a storage backend.

    None of the public methods raise. When the backend is missing or fails
    its probe the store is "unavailable": reads return the default and writes
    return False, and callers keep their state in memory for the session.
    """

    def __init__(self, backend=None, prefix: Optional[str] = None, stale_after_days: Optional[int] = None):
        self.backend = backend
        self.prefix = settings.STORAGE_KEY_PREFIX if prefix is None else prefix
        days = settings.STALE_ENTRY_DAYS if stale_after_days is None else stale_after_days
        self.stale_after_ms = days * _DAY_MS
        self.available = False

    def init(self) -> bool:
        """Probe the backend with a write/remove round trip."""
        if self.backend is None:
            self.available = False
            return False
        try:
            self.backend.set_item(_PROBE_KEY, "1")
            self.backend.remove_item(_PROBE_KEY)
            self.available = True
        except Exception as e:
            log.warning(f"backend unavailable, running in memory only: {e!r}")
            self.available = False
        return self.available

    def dispose(self) -> None:
        self.available = False
        self.backend = None

    def get(self, key: str, default: Any = None) -> Any:
        if not self.available:
            return default
        try:
            raw = self.backend.get_item(key)
        except Exception as e:
            log.warning(f"get({key!r}) failed: {e!r}")
            return default
        value = _loads(raw)
        if value is _MISSING:
            if raw is not None:
                log.debug(f"get({key!r}): unparseable value treated as miss")
            return default
        return value

    def set(self, key: str, value: Any) -> bool:
        if not self.available:
            return False
        try:
            data = json.dumps(value)
        except (TypeError, ValueError) as e:
            log.warning(f"set({key!r}): value is not JSON serializable: {e}")
            return False
        try:
            self.backend.set_item(key, data)
            return True
        except QuotaExceededError:
            log.warning(f"set({key!r}): quota exceeded, evicting stale entries")
            self.evict_stale(exclude=key)
            try:
                self.backend.set_item(key, data)
                return True
            except Exception as e:
                log.warning(f"set({key!r}) still failing after cleanup: {e!r}")
                return False
        except Exception as e:
            log.warning(f"set({key!r}) failed: {e!r}")
            return False

    def remove(self, key: str) -> bool:
        if not self.available:
            return False
        try:
            self.backend.remove_item(key)
            return True
        except Exception as e:
            log.warning(f"remove({key!r}) failed: {e!r}")
            return False

    def keys(self) -> List[str]:
        if not self.available:
            return []
        try:
            return list(self.backend.keys())
        except Exception as e:
            log.warning(f"keys() failed: {e!r}")
            return []

    def evict_stale(self, exclude: Optional[str] = None) -> int:
        """
        Delete prefixed entries whose `timestamp` (epoch ms) is older than the
        stale window, and prefixed entries that no longer parse.
        Returns the number of entries removed.
        """
        now_ms = time.time() * 1000
        removed = 0
        for k in self.keys():
            if not k.startswith(self.prefix) or k == exclude:
                continue
            try:
                raw = self.backend.get_item(k)
            except Exception as e:
                log.warning(f"evict_stale: cannot read {k!r}: {e!r}")
                continue
            data = _loads(raw)
            if data is _MISSING:
                stale = raw is not None
            else:
                ts = data.get("timestamp") if isinstance(data, dict) else None
                stale = (
                    isinstance(ts, (int, float))
                    and not isinstance(ts, bool)
                    and now_ms - ts > self.stale_after_ms
                )
            if stale and self.remove(k):
                removed += 1
        log.info(f"evict_stale: removed {removed} entries")
        return removed
