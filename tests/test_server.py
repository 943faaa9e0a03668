"""Tests for the loss server: bookkeeping, lifecycle and concurrency."""

import math
import threading
import time

import pytest

from losssim.channels import ChannelPool
from losssim.server import Server
from losssim.timeline import RealTimeline, VirtualTimeline


class ScriptedSampler:
    """Returns service times from a fixed list instead of random draws."""

    def __init__(self, values):
        self.values = list(values)

    def sample(self, rate):
        return self.values.pop(0)


class HeldTimeline:
    """Real clock whose scheduled completions wait until the test fires them."""

    def __init__(self):
        self.pending = []

    def now(self):
        return time.monotonic()

    def call_later(self, delay, callback):
        self.pending.append(callback)

    def fire_all(self):
        pending, self.pending = self.pending, []
        for callback in pending:
            callback()


class InstrumentedPool(ChannelPool):
    """Records claims and how many threads were inside ``claim`` at once."""

    def __init__(self, n):
        super().__init__(n)
        self.inside = 0
        self.max_inside = 0
        self.claims = []

    def claim(self):
        self.inside += 1
        self.max_inside = max(self.max_inside, self.inside)
        time.sleep(0.001)
        index = super().claim()
        if index is not None:
            assert index not in self.claims, f"channel {index} claimed while busy"
            self.claims.append(index)
        self.inside -= 1
        return index

    def release(self, index):
        super().release(index)
        self.claims.remove(index)


def drive_arrivals(timeline, server, times):
    env = timeline.env

    def process():
        for t in times:
            yield env.timeout(t - env.now)
            server.handle_arrival()

    env.process(process())


def test_scripted_idle_time_reconciliation():
    timeline = VirtualTimeline()
    # arrivals at 2, 4, 10 served for 3, 4, 1 -> busy [2,8] and [10,11]
    server = Server(3, 1.0, timeline=timeline, sampler=ScriptedSampler([3.0, 4.0, 1.0]))
    server.start_simulation()
    drive_arrivals(timeline, server, [2.0, 4.0, 10.0])
    timeline.run_for(15.0)
    server.stop_simulation()

    assert math.isclose(server.idle_time, 8.0)
    assert math.isclose(server.duration, 15.0)
    assert math.isclose(server.total_processing_time, 8.0)
    assert math.isclose(server.busy_time_area, 8.0)
    assert server.handled_requests == 3
    assert server.rejected_requests == 0


def test_interval_right_after_claim_is_not_idle():
    timeline = VirtualTimeline()
    server = Server(1, 1.0, timeline=timeline, sampler=ScriptedSampler([10.0]))
    server.start_simulation()
    drive_arrivals(timeline, server, [1.0, 3.0])
    timeline.run_for(5.0)
    server.stop_simulation()

    # only [0, 1] was idle; the second arrival at t=3 finds the channel busy
    assert math.isclose(server.idle_time, 1.0)
    assert server.handled_requests == 1
    assert server.rejected_requests == 1
    assert server.total_processing_time == 0.0
    assert math.isclose(server.busy_time_area, 4.0)


def test_arrivals_fill_channels_in_index_order_then_reject():
    timeline = VirtualTimeline()
    server = Server(2, 1.0, timeline=timeline, sampler=ScriptedSampler([5.0, 5.0]))
    server.start_simulation()
    assert server.handle_arrival() == 0
    assert server.handle_arrival() == 1
    assert server.handle_arrival() is None
    stats = server.stats()
    assert stats.total_requests == 3
    assert stats.handled_requests + stats.rejected_requests == stats.total_requests
    assert stats.duration is None


def test_never_claims_a_busy_channel_under_simultaneous_arrivals():
    timeline = HeldTimeline()
    pool = InstrumentedPool(4)
    server = Server(4, 1.0, timeline=timeline, pool=pool)
    server.start_simulation()

    workers = 32
    barrier = threading.Barrier(workers)

    def arrive():
        barrier.wait()
        server.handle_arrival()

    for _ in range(2):
        threads = [threading.Thread(target=arrive) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert pool.max_inside == 1
        assert sorted(pool.claims) == [0, 1, 2, 3]
        timeline.fire_all()
        assert pool.all_free()

    server.stop_simulation()
    assert server.total_requests == 2 * workers
    assert server.handled_requests == 8
    assert server.rejected_requests == 2 * workers - 8


def test_real_threads_keep_counter_invariant():
    server = Server(2, 1.0, timeline=RealTimeline(time_scale=0.001))
    server.start_simulation()

    def burst():
        for _ in range(25):
            server.handle_arrival()
            time.sleep(0.0005)

    threads = [threading.Thread(target=burst) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    deadline = time.monotonic() + 2.0
    while not server.pool.all_free() and time.monotonic() < deadline:
        time.sleep(0.01)
    server.stop_simulation()

    assert server.pool.all_free()
    assert server.total_requests == 200
    assert server.handled_requests + server.rejected_requests == server.total_requests
    assert server.handled_requests >= 2
    assert 0 <= server.idle_time <= server.duration


def test_lifecycle_errors():
    server = Server(1, 1.0, timeline=VirtualTimeline())
    with pytest.raises(RuntimeError):
        server.handle_arrival()
    with pytest.raises(RuntimeError):
        server.stop_simulation()
    server.start_simulation()
    with pytest.raises(RuntimeError):
        server.start_simulation()
    with pytest.raises(RuntimeError):
        _ = server.duration


def test_events_after_stop_leave_counters_frozen():
    timeline = VirtualTimeline()
    server = Server(1, 1.0, timeline=timeline, sampler=ScriptedSampler([4.0]))
    server.start_simulation()
    drive_arrivals(timeline, server, [1.0])
    timeline.run_for(2.0)
    server.stop_simulation()
    frozen = server.stats()

    assert server.handle_arrival() is None
    timeline.run_for(10.0)  # the pending completion fires after stop

    after = server.stats()
    assert after.late_arrivals == 1
    assert after.total_requests == frozen.total_requests
    assert after.total_processing_time == frozen.total_processing_time
    assert after.idle_time == frozen.idle_time
    assert server.pool.all_free()


@pytest.mark.parametrize("n, mu", [(0, 1.0), (2, 0.0), (2, -1.0), (1.5, 1.0)])
def test_invalid_configuration_fails_fast(n, mu):
    with pytest.raises(ValueError):
        Server(n, mu, timeline=VirtualTimeline())


@pytest.mark.parametrize("mu", [float("nan"), float("inf")])
def test_non_finite_service_rate_fails_fast(mu):
    with pytest.raises(ValueError):
        Server(2, mu, timeline=VirtualTimeline())
