"""
Live snapshot subscriptions.

A subscription delivers the full result set of a query once on start
and again whenever the collection changes. Change streams are used when
the deployment supports them (replica sets); otherwise the query is
polled and only changed snapshots are delivered. Query errors deliver
an empty list instead of ending the subscription.
"""

import threading
from typing import Any, Callable, List, Optional, Sequence, Tuple

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from careerconnect.core.config import get_settings
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import serialize_docs

logger = get_logger(__name__)

SnapshotCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class SnapshotSubscription:
    def __init__(
        self,
        collection: Collection,
        filter_: dict,
        on_snapshot: SnapshotCallback,
        sort: Sequence[Tuple[str, int]] = (),
        on_error: Optional[ErrorCallback] = None,
        transform: Optional[Callable[[List[dict]], Any]] = None,
        limit: int = 0,
        poll_interval: Optional[float] = None,
        use_change_streams: Optional[bool] = None,
    ):
        settings = get_settings()
        self.collection = collection
        self.filter = filter_
        self.sort = list(sort)
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.transform = transform or serialize_docs
        self.limit = limit
        self.poll_interval = poll_interval if poll_interval is not None else settings.snapshot_poll_interval_seconds
        self.use_change_streams = (
            settings.use_change_streams if use_change_streams is None else use_change_streams
        )
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last = None

    # ------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------

    def start(self) -> Callable[[], None]:
        self._thread = threading.Thread(
            target=self._run,
            name=f"snapshot-{self.collection.name}",
            daemon=True,
        )
        self._thread.start()
        return self.unsubscribe

    def unsubscribe(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        logger.info("snapshot_unsubscribed", collection=self.collection.name)

    @property
    def active(self) -> bool:
        return not self._stop.is_set()

    # ------------------------------------------------------------
    # delivery
    # ------------------------------------------------------------

    def _query(self) -> List[dict]:
        cursor = self.collection.find(self.filter)
        if self.sort:
            cursor = cursor.sort(self.sort)
        if self.limit:
            cursor = cursor.limit(self.limit)
        return list(cursor)

    def _deliver(self, only_if_changed: bool = False) -> None:
        try:
            docs = self._query()
        except PyMongoError as exc:
            logger.error("snapshot_query_failed", collection=self.collection.name, error=str(exc))
            if self.on_error:
                self.on_error(exc)
            payload = self.transform([])
        else:
            payload = self.transform(docs)

        if only_if_changed and payload == self._last:
            return
        self._last = payload
        if not self._stop.is_set():
            self.on_snapshot(payload)

    def _run(self) -> None:
        self._deliver()
        if self.use_change_streams and self._watch():
            return
        self._poll()

    def _watch(self) -> bool:
        """Follow the change stream; False means streams are unavailable."""
        try:
            with self.collection.watch(max_await_time_ms=500) as stream:
                logger.info("snapshot_change_stream_opened", collection=self.collection.name)
                while not self._stop.is_set():
                    change = stream.try_next()
                    if change is not None:
                        self._deliver()
            return True
        except PyMongoError as exc:
            logger.warning(
                "snapshot_change_stream_unavailable",
                collection=self.collection.name,
                error=str(exc),
            )
            return False

    def _poll(self) -> None:
        while not self._stop.wait(self.poll_interval):
            self._deliver(only_if_changed=True)


def subscribe(collection: Collection, filter_: dict, on_snapshot: SnapshotCallback, **kwargs) -> Callable[[], None]:
    """Start a snapshot subscription and return its unsubscribe callable."""
    subscription = SnapshotSubscription(collection, filter_, on_snapshot, **kwargs)
    logger.info("snapshot_subscribed", collection=collection.name)
    return subscription.start()
