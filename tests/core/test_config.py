import logging

import pytest

from local_cache import CacheConfig, InMemoryStorage, JsonFileStorage, LocalCache, setup_logging


@pytest.fixture(autouse=True)
def _reset_config_instance():
    CacheConfig.set_instance(None)
    yield
    CacheConfig.set_instance(None)


def test_default_config_builds_in_memory_storage():
    config = CacheConfig.get_instance()

    assert config is CacheConfig.get_instance()
    assert isinstance(config.build_storage(), InMemoryStorage)


def test_config_with_path_builds_file_storage(tmp_path):
    config = CacheConfig(storage_path=str(tmp_path / "store.json"))

    storage = config.build_storage()

    assert isinstance(storage, JsonFileStorage)
    assert storage.path == tmp_path / "store.json"


def test_non_persistent_config_has_no_storage():
    assert CacheConfig(persistent=False).build_storage() is None


def test_failed_storage_construction_falls_back_to_memory_only():
    assert CacheConfig(storage_capacity=-5).build_storage() is None


def test_empty_validator_key_is_rejected():
    with pytest.raises(ValueError):
        CacheConfig(validator_key="")


def test_cache_from_config_uses_configured_key():
    CacheConfig.set_instance(CacheConfig(validator_key="_version", storage_capacity=1000))

    cache = LocalCache.from_config()
    cache.initialize("v1")

    assert cache.validator_key == "_version"
    assert cache.persistent


def test_setup_logging_writes_package_log_file(tmp_path):
    config = CacheConfig(log_level=logging.WARNING, log_dir=str(tmp_path / "logs"))
    package_logger = logging.getLogger("local_cache")
    try:
        log_file = setup_logging(config)
        logging.getLogger("local_cache.cache").debug("hello")
        for handler in package_logger.handlers:
            handler.flush()

        assert log_file == tmp_path / "logs" / "local_cache.log"
        assert "hello" in log_file.read_text(encoding="utf-8")
        assert len(package_logger.handlers) == 2

        setup_logging(config)
        assert len(package_logger.handlers) == 2
    finally:
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.setLevel(logging.NOTSET)
