import logging
import threading

from local_cache import CacheConfig, LocalCache, setup_logging


def fetch_color(args, on_result):
    threading.Timer(0.2, on_result, args=({"id": args["id"], "name": "red"},)).start()


config = CacheConfig(storage_path="demo-cache.json", log_level=logging.DEBUG)
setup_logging(config)
cache = LocalCache.from_config(config)
cache.initialize(validator="demo-v1")

get_color = cache.bind("color", fetch_color)
futures = [get_color.future(5) for _ in range(3)]
print([f.result(timeout=5) for f in futures])
