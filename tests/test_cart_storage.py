"""Tests for cart persistence (storage backends and debounced saves)."""
import asyncio
import json
from decimal import Decimal

import pytest

from storefront import config
from storefront.cart import CartManager, CartPersistence, FileStorage, MemoryStorage, RedisStorage
from storefront.cart.storage import cart_from_record, cart_to_record


class _CountingStorage(MemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    async def set(self, key, value):
        self.writes.append(value)
        await super().set(key, value)


class _BrokenStorage:
    async def get(self, key):
        raise OSError("storage unavailable")

    async def set(self, key, value):
        raise OSError("quota exceeded")

    async def delete(self, key):
        raise OSError("storage unavailable")


class _FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        self.ttls[key] = ex

    async def delete(self, key):
        self.values.pop(key, None)


def _stored_record(storage, key=config.CART_STORAGE_KEY):
    return json.loads(storage.data[key])


class TestRecords:
    def test_record_shape(self):
        record = cart_to_record(CartManager().cart)

        assert set(record) == {"items", "lastUpdated", "version"}
        assert record["version"] == "1.0"

    def test_version_mismatch_gives_empty_cart(self):
        record = {"version": "0.9", "items": [{"product_id": "A100", "quantity": 1}]}

        assert cart_from_record(record).is_empty

    def test_drops_items_without_id_and_duplicates(self):
        record = {
            "version": "1.0",
            "items": [
                {"product_id": "A100", "quantity": 2},
                {"quantity": 5},
                {"product_id": "A100", "quantity": 9},
                "garbage",
            ],
        }

        cart = cart_from_record(record)

        assert [(i.product_id, i.quantity) for i in cart.items] == [("A100", 2)]


class TestCartPersistence:
    @pytest.mark.asyncio
    async def test_round_trip(self, sample_product):
        storage = MemoryStorage()
        manager = await CartManager.create(CartPersistence(storage, debounce_seconds=0.01))
        await manager.add_item(sample_product, 2, notes="n")
        await manager.update_item_price("A100", "15")
        await manager.close()

        restored = await CartManager.create(CartPersistence(storage))

        item = restored.get_item("A100")
        assert item.quantity == 2
        assert item.unit_price == Decimal("15")
        assert item.notes == "n"
        assert item.product.ref == "A100"
        assert restored.get_subtotal() == Decimal("30")

    @pytest.mark.asyncio
    async def test_stored_version_mismatch_starts_empty(self):
        record = {"version": "0.1", "items": [{"product_id": "A100", "quantity": 1}]}
        storage = MemoryStorage({config.CART_STORAGE_KEY: json.dumps(record)})

        manager = await CartManager.create(CartPersistence(storage))

        assert manager.cart.is_empty

    @pytest.mark.asyncio
    async def test_corrupt_record_starts_empty(self):
        storage = MemoryStorage({config.CART_STORAGE_KEY: "{not json"})

        manager = await CartManager.create(CartPersistence(storage))

        assert manager.cart.is_empty

    @pytest.mark.asyncio
    async def test_rapid_mutations_coalesce_into_one_write(self, sample_product):
        storage = _CountingStorage()
        manager = CartManager(persistence=CartPersistence(storage, debounce_seconds=0.05))

        for _ in range(5):
            await manager.add_item(sample_product, 1)
        assert storage.writes == []

        await asyncio.sleep(0.15)

        assert len(storage.writes) == 1
        assert json.loads(storage.writes[0])["items"][0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory_state(self, sample_product):
        persistence = CartPersistence(_BrokenStorage(), debounce_seconds=0.01)
        manager = CartManager(persistence=persistence)

        await manager.add_item(sample_product, 1)
        await asyncio.sleep(0.05)

        assert manager.get_item_count() == 1
        assert not persistence.save_pending

    @pytest.mark.asyncio
    async def test_read_failure_starts_empty(self):
        manager = await CartManager.create(CartPersistence(_BrokenStorage()))

        assert manager.cart.is_empty

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_save(self, sample_product):
        storage = _CountingStorage()
        persistence = CartPersistence(storage, debounce_seconds=0.01)
        manager = CartManager(persistence=persistence)
        await manager.add_item(sample_product, 1)

        persistence.cancel()
        await asyncio.sleep(0.05)

        assert storage.writes == []

    @pytest.mark.asyncio
    async def test_clear_persists_empty_items(self, sample_product):
        storage = MemoryStorage()
        manager = CartManager(persistence=CartPersistence(storage, debounce_seconds=10))
        await manager.add_item(sample_product, 1)
        await manager.clear_cart()
        await manager.close()

        assert _stored_record(storage)["items"] == []


class TestBackends:
    @pytest.mark.asyncio
    async def test_file_storage(self, tmp_path):
        storage = FileStorage(str(tmp_path))

        assert await storage.get("cart") is None
        await storage.set("cart", '{"a": 1}')
        assert await storage.get("cart") == '{"a": 1}'
        await storage.delete("cart")
        assert await storage.get("cart") is None

    @pytest.mark.asyncio
    async def test_file_storage_key_is_sanitized(self, tmp_path):
        storage = FileStorage(str(tmp_path))

        await storage.set("../escape/key", "x")

        assert [p.name for p in tmp_path.iterdir()] == ["___escape_key.json"]

    @pytest.mark.asyncio
    async def test_redis_storage_sets_ttl(self):
        redis = _FakeRedis()
        storage = RedisStorage(redis=redis, ttl=60)

        await storage.set("cart:1", "payload")

        assert await storage.get("cart:1") == "payload"
        assert redis.ttls["cart:1"] == 60


@pytest.mark.asyncio
async def test_get_cart_manager_is_a_file_backed_singleton(tmp_path, monkeypatch, sample_product):
    from storefront.cart import get_cart_manager, service

    monkeypatch.setattr(service, "_cart_manager", None)
    monkeypatch.setattr(service, "FileStorage", lambda: FileStorage(str(tmp_path)))

    manager = await get_cart_manager()
    assert await get_cart_manager() is manager

    await manager.add_item(sample_product, 1)
    await manager.close()

    stored = json.loads((tmp_path / f"{config.CART_STORAGE_KEY}.json").read_text())
    assert stored["items"][0]["product_id"] == "A100"
