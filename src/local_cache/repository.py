from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Hashable, Optional

from .interfaces import Fetcher, ResultCallback

if TYPE_CHECKING:
    from .cache import LocalCache


class CachedFetcher:
    """A fetcher bound to one cache category.

    Turns an existing callback-style fetcher into a cached getter::

        get_color = cache.bind("color", fetch_color)
        get_color(5, print)

    The fetcher receives ``{"id": id}`` unless explicit ``args`` are given.
    """

    def __init__(self, cache: "LocalCache", category: str, fetcher: Fetcher):
        self.cache = cache
        self.category = category
        self.fetcher = fetcher

    def __call__(
        self, id: Hashable, callback: Optional[ResultCallback] = None, args: Any = None
    ) -> None:
        self.cache.fetch_through(
            self.category, id, self.fetcher, self._args_for(id, args), callback
        )

    def future(self, id: Hashable, args: Any = None) -> "Future[Any]":
        return self.cache.fetch_future(self.category, id, self.fetcher, self._args_for(id, args))

    def cached(self, id: Hashable, default: Any = None) -> Any:
        return self.cache.get(self.category, id, default)

    @staticmethod
    def _args_for(id: Hashable, args: Any) -> Any:
        return {"id": id} if args is None else args

    def __repr__(self) -> str:
        return f"CachedFetcher(category={self.category!r}, fetcher={self.fetcher!r})"
