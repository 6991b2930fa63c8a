import threading

from stream_relay_api.models import StreamRecord
from stream_relay_api.services.reconciler import Reconciler, ReconcilerState
from stream_relay_api.services.relay import RelayRequestError


def fill(store, *names):
    for name in names:
        store.add(StreamRecord(name=name, rtsp_url=f"rtsp://10.0.0.5/{name}"))


def test_restores_after_outage(store, relay):
    fill(store, "cam1", "cam2", "cam3")
    clock = {"now": 0.0}
    waits = []

    def fake_wait(seconds):
        waits.append(seconds)
        clock["now"] += seconds
        return False

    def ping():
        reachable = clock["now"] >= 40
        if not reachable:
            assert relay.register_path.call_count == 0
        return reachable

    relay.ping.side_effect = ping
    reconciler = Reconciler(store, relay, max_attempts=30, interval=2.0, wait=fake_wait)

    assert reconciler.run() is ReconcilerState.DONE
    assert reconciler.attempts == 21
    assert len(waits) == 20
    assert relay.register_path.call_count == 3
    assert sorted(c.args[0] for c in relay.register_path.call_args_list) == ["cam1", "cam2", "cam3"]
    assert reconciler.restored == 3


def test_times_out_when_relay_never_answers(store, relay, caplog):
    fill(store, "cam1")
    relay.ping.return_value = False
    reconciler = Reconciler(store, relay, max_attempts=5, interval=2.0, wait=lambda s: False)

    assert reconciler.run() is ReconcilerState.TIMED_OUT
    assert relay.ping.call_count == 5
    relay.register_path.assert_not_called()
    assert "not reachable after 10s" in caplog.text
    assert reconciler.finished


def test_partial_failures_still_complete(store, relay):
    fill(store, "cam1", "cam2")

    def register(name, url):
        if name == "cam1":
            raise RelayRequestError(400, "bad")

    relay.register_path.side_effect = register
    reconciler = Reconciler(store, relay, wait=lambda s: False)

    assert reconciler.run() is ReconcilerState.DONE
    assert relay.register_path.call_count == 2
    assert reconciler.restored == 1


def test_empty_store_is_done(store, relay):
    reconciler = Reconciler(store, relay, wait=lambda s: False)
    assert reconciler.run() is ReconcilerState.DONE
    relay.register_path.assert_not_called()


def test_stop_cancels_waiting_thread(store, relay):
    relay.ping.return_value = False
    reconciler = Reconciler(store, relay, max_attempts=1000, interval=30.0)

    thread = reconciler.start()
    assert reconciler.start() is thread
    reconciler.stop(timeout=2.0)

    assert not thread.is_alive()
    assert reconciler.state is ReconcilerState.CANCELLED


def test_runs_in_background_thread(store, relay):
    fill(store, "cam1")
    done = threading.Event()
    relay.register_path.side_effect = lambda name, url: done.set()

    reconciler = Reconciler(store, relay, wait=lambda s: False)
    reconciler.start().join(2.0)

    assert done.is_set()
    assert reconciler.state is ReconcilerState.DONE
