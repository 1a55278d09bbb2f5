"""Cart persistence: storage backends and the debounced persistence adapter."""
import asyncio
import json
import os
from datetime import datetime
from typing import Optional, Protocol

from storefront import config
from storefront.db import get_redis
from storefront.debounce import Debouncer
from storefront.logging import get_logger
from .models import Cart, sanitize_cart_item

logger = get_logger(__name__)


class KeyValueStorage(Protocol):
    """Minimal async string store the cart is persisted into."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, mostly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage:
    """Device-local storage: one JSON file per key under a directory."""

    def __init__(self, directory: str = config.CART_STORAGE_DIR):
        self.directory = directory

    def _path(self, key: str) -> str:
        safe_key = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def _read(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), encoding="utf-8") as fh:
                return fh.read()
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            fh.write(value)
        os.replace(tmp_path, path)

    def _remove(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)


class RedisStorage:
    """Upstash Redis storage for server-side carts, with a 24h TTL."""

    def __init__(self, redis=None, ttl: int = config.CART_REDIS_TTL_SECONDS):
        self._redis = redis
        self.ttl = ttl

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value, ex=self.ttl)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)


def cart_to_record(cart: Cart, version: str = config.CART_VERSION) -> dict:
    """Versioned storage record for a cart."""
    return {
        "items": [item.to_dict() for item in cart.items],
        "lastUpdated": cart.last_updated.isoformat(),
        "version": version,
    }


def cart_from_record(record: dict, version: str = config.CART_VERSION) -> Cart:
    """
    Rebuild a cart from a storage record.

    A record with another schema version yields an empty cart; there is no
    migration. Items without a product id are dropped.
    """
    if not isinstance(record, dict) or record.get("version") != version:
        return Cart()

    raw_items = record.get("items") or []
    if not isinstance(raw_items, list):
        raise ValueError("cart items must be a list")

    items = []
    seen: set[str] = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        item = sanitize_cart_item(raw)
        if not item.product_id or item.product_id in seen:
            continue
        seen.add(item.product_id)
        items.append(item)

    last_updated = record.get("lastUpdated")
    if last_updated:
        return Cart(items=tuple(items), last_updated=datetime.fromisoformat(last_updated))
    return Cart(items=tuple(items))


class CartPersistence:
    """
    Keeps the stored cart record in sync with the in-memory cart.

    Loading happens once at start-up. Saves are debounced so a burst of
    mutations collapses into one write of the latest state. Persistence is
    best-effort: read and write failures are logged, never raised.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = config.CART_STORAGE_KEY,
        version: str = config.CART_VERSION,
        debounce_seconds: float = config.CART_SAVE_DEBOUNCE_SECONDS,
    ):
        self.storage = storage
        self.key = key
        self.version = version
        self._pending: Optional[dict] = None
        self._debouncer = Debouncer(self._write_pending, debounce_seconds)

    async def load(self) -> Cart:
        """Read the stored cart; anything unreadable starts a fresh cart."""
        try:
            raw = await self.storage.get(self.key)
        except Exception:
            logger.exception("Failed to read cart from storage")
            return Cart()

        if not raw:
            return Cart()

        try:
            record = json.loads(raw)
            cart = cart_from_record(record, self.version)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupted cart record: {e}")
            return Cart()

        if isinstance(record, dict) and record.get("version") != self.version:
            logger.info(
                f"Cart record version {record.get('version')!r} != {self.version!r}, starting empty"
            )
        return cart

    def schedule_save(self, cart: Cart) -> None:
        """Snapshot the cart and (re)start the debounce window."""
        self._pending = cart_to_record(cart, self.version)
        self._debouncer.trigger()

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    async def flush(self) -> None:
        """Write any pending snapshot immediately."""
        await self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
        self._pending = None

    async def _write_pending(self) -> None:
        record, self._pending = self._pending, None
        if record is None:
            return
        try:
            await self.storage.set(self.key, json.dumps(record, ensure_ascii=False))
        except Exception:
            # e.g. quota exceeded; the in-memory cart stays authoritative
            logger.exception("Failed to save cart to storage")
