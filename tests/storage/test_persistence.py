import json

from local_cache import InMemoryStorage, LocalCache, PersistenceBridge


def _immediate(value):
    def fetcher(args, on_result):
        on_result(value)

    return fetcher


def test_thaw_without_storage_is_empty():
    bridge = PersistenceBridge()

    assert bridge.degraded
    assert bridge.thaw("color") == {}
    bridge.mark_dirty("color")
    assert bridge.dirty == frozenset()


def test_thaw_treats_malformed_data_as_absent():
    storage = InMemoryStorage(
        initial={"broken": "{not json", "listy": "[1, 2]", "empty": "", "ok": '{"1": [1, 2]}'}
    )
    bridge = PersistenceBridge(storage)

    assert bridge.thaw("broken") == {}
    assert bridge.thaw("listy") == {}
    assert bridge.thaw("empty") == {}
    assert bridge.thaw("missing") == {}
    assert bridge.thaw("ok") == {"1": [1, 2]}


def test_round_trip_into_fresh_cache():
    storage = InMemoryStorage()
    value = {"name": "red", "rgb": [255, 0, 0], "alpha": 0.5, "named": True, "parent": None}

    first = LocalCache(storage)
    first.initialize("v1")
    first.fetch_through("color", 5, _immediate(value))

    second = LocalCache(storage)
    second.initialize("v1")
    calls = []

    def fetcher(args, on_result):
        calls.append(args)
        on_result("unused")

    received = []
    second.fetch_through("color", 5, fetcher, None, received.append)

    assert received == [value]
    assert calls == []


def test_write_back_flushes_all_dirty_partitions():
    storage = InMemoryStorage()
    bridge = PersistenceBridge(storage)
    partitions = {"color": {"1": "red"}, "size": {"1": "large"}}

    bridge.mark_dirty("color")
    bridge.mark_dirty("size")
    bridge.write_back(partitions)

    assert bridge.dirty == frozenset()
    assert json.loads(storage.get("color")) == {"1": "red"}
    assert json.loads(storage.get("size")) == {"1": "large"}


def test_quota_failure_keeps_partition_dirty_and_callbacks_delivered():
    storage = InMemoryStorage(capacity=20)
    cache = LocalCache(storage)
    cache.initialize()
    received = []

    cache.fetch_through("color", 1, _immediate("x" * 50), None, received.append)

    assert received == ["x" * 50]
    assert cache.get("color", 1) == "x" * 50
    assert storage.get("color") is None
    assert cache.bridge.dirty == frozenset({"color"})


def test_dirty_partition_retried_on_next_completion():
    storage = InMemoryStorage(capacity=40)
    cache = LocalCache(storage)
    cache.initialize()

    cache.fetch_through("color", 1, _immediate("x" * 40))
    assert cache.bridge.dirty == frozenset({"color"})

    storage.capacity = None
    cache.fetch_through("size", 1, _immediate("large"))

    assert cache.bridge.dirty == frozenset()
    assert json.loads(storage.get("color")) == {"1": "x" * 40}
    assert json.loads(storage.get("size")) == {"1": "large"}


def test_unserializable_values_stay_in_memory_only():
    storage = InMemoryStorage()
    cache = LocalCache(storage)
    cache.initialize()
    marker = object()
    received = []

    cache.fetch_through("objects", 1, _immediate(marker), None, received.append)

    assert received == [marker]
    assert cache.get("objects", 1) is marker
    assert storage.get("objects") is None
    assert cache.bridge.dirty == frozenset()


class FlakyStorage(InMemoryStorage):
    """In-memory storage whose reads or writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_get = False
        self.fail_set = False

    def get(self, key):
        if self.fail_get:
            raise OSError("read failed")
        return super().get(key)

    def set(self, key, value):
        if self.fail_set:
            raise OSError("write failed")
        super().set(key, value)


def test_thaw_treats_read_error_as_absent():
    storage = FlakyStorage()
    storage.set("color", '{"1": "red"}')
    storage.fail_get = True
    bridge = PersistenceBridge(storage)

    assert bridge.thaw("color") == {}


def test_unexpected_write_error_keeps_partition_dirty():
    storage = FlakyStorage()
    cache = LocalCache(storage)
    cache.initialize("v1")
    storage.fail_set = True
    received = []

    cache.fetch_through("color", 1, _immediate("red"), None, received.append)

    assert received == ["red"]
    assert cache.get("color", 1) == "red"
    assert storage.get("color") is None
    assert cache.bridge.dirty == frozenset({"color"})
