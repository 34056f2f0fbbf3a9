import time

from pymongo.errors import OperationFailure, PyMongoError

from careerconnect.db.subscriptions import SnapshotSubscription, subscribe
from tests.conftest import wait_for


def test_initial_and_changed_snapshots_are_delivered(db):
    companies = db["companies"]
    companies.insert_one({"_id": "c1", "status": "pending"})
    snapshots = []

    unsubscribe = subscribe(companies, {"status": "pending"}, snapshots.append, poll_interval=0.02)
    try:
        assert wait_for(lambda: len(snapshots) >= 1)
        assert [c["id"] for c in snapshots[0]] == ["c1"]

        companies.insert_one({"_id": "c2", "status": "pending"})

        assert wait_for(lambda: len(snapshots) >= 2)
        assert sorted(c["id"] for c in snapshots[-1]) == ["c1", "c2"]
    finally:
        unsubscribe()


def test_unchanged_results_are_not_redelivered(db):
    snapshots = []
    subscription = SnapshotSubscription(db["activities"], {}, snapshots.append, poll_interval=0.02)
    subscription.start()
    try:
        assert wait_for(lambda: len(snapshots) == 1)
        assert not wait_for(lambda: len(snapshots) > 1, timeout=0.2)
    finally:
        subscription.unsubscribe()

    assert subscription.active is False


class BrokenCollection:
    name = "broken"

    def find(self, *_):
        raise PyMongoError("connection refused")


def test_query_errors_deliver_empty_list():
    snapshots, errors = [], []
    subscription = SnapshotSubscription(
        BrokenCollection(), {}, snapshots.append, on_error=errors.append, use_change_streams=False
    )
    subscription.start()
    try:
        assert wait_for(lambda: snapshots == [[]])
        assert isinstance(errors[0], PyMongoError)
    finally:
        subscription.unsubscribe()


class ChangeStream:
    """Yields the queued change events, then nothing."""

    def __init__(self, events):
        self.events = list(events)
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def try_next(self):
        if self.events:
            return self.events.pop(0)
        time.sleep(0.01)
        return None


class WatchedCollection:
    name = "watched"

    def __init__(self, snapshots, stream=None, watch_error=None):
        self.snapshots = list(snapshots)
        self.stream = stream
        self.watch_error = watch_error
        self.finds = 0

    def find(self, *_):
        docs = self.snapshots[min(self.finds, len(self.snapshots) - 1)]
        self.finds += 1
        return list(docs)

    def watch(self, **_):
        if self.watch_error:
            raise self.watch_error
        return self.stream


def test_change_stream_events_trigger_new_snapshots():
    stream = ChangeStream([{"operationType": "insert"}])
    collection = WatchedCollection([[{"_id": "c1"}], [{"_id": "c1"}, {"_id": "c2"}]], stream=stream)
    snapshots = []

    subscription = SnapshotSubscription(collection, {}, snapshots.append, use_change_streams=True)
    subscription.start()
    try:
        assert wait_for(lambda: len(snapshots) == 2)
        assert [c["id"] for c in snapshots[0]] == ["c1"]
        assert [c["id"] for c in snapshots[1]] == ["c1", "c2"]
    finally:
        subscription.unsubscribe()

    subscription._thread.join(timeout=2)
    assert not subscription._thread.is_alive()
    assert stream.closed


def test_unavailable_change_streams_fall_back_to_polling():
    collection = WatchedCollection(
        [[{"_id": "c1"}], [{"_id": "c1"}, {"_id": "c2"}]],
        watch_error=OperationFailure("The $changeStream stage is only supported on replica sets", code=40573),
    )
    snapshots = []

    subscription = SnapshotSubscription(
        collection, {}, snapshots.append, use_change_streams=True, poll_interval=0.02
    )
    subscription.start()
    try:
        assert wait_for(lambda: len(snapshots) == 2)
        assert [c["id"] for c in snapshots[1]] == ["c1", "c2"]
    finally:
        subscription.unsubscribe()
