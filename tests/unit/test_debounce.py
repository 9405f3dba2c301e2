import asyncio

from restaurant_ops.realtime.debounce import Debouncer, KeyedTimers, SingleSlotTimer


async def test_single_slot_timer_replaces_pending_callback():
    timer = SingleSlotTimer(0.02)
    fired = []

    timer.schedule(lambda: fired.append("first"))
    timer.schedule(lambda: fired.append("second"))
    await timer.wait()

    assert fired == ["second"]
    assert not timer.pending


async def test_single_slot_timer_cancel():
    timer = SingleSlotTimer(0.02)
    fired = []

    timer.schedule(lambda: fired.append("x"))
    timer.cancel()
    await asyncio.sleep(0.05)

    assert fired == []


async def test_keyed_timers_are_independent():
    timers = KeyedTimers(0.02)
    fired = []

    timers.schedule(1, lambda: fired.append(1))
    timers.schedule(2, lambda: fired.append(2))
    timers.schedule(1, lambda: fired.append("1b"))
    timers.cancel(2)
    await timers.wait_all()

    assert fired == ["1b"]
    assert timers.pending_keys() == []


async def test_debouncer_issues_only_final_key():
    issued = []

    async def action(key):
        issued.append(key)
        return True

    debouncer = Debouncer(0.05, action)
    for key in ("a", "b", "c"):
        debouncer.trigger(key)
        await asyncio.sleep(0.01)
    await debouncer.wait()

    assert issued == ["c"]
    assert debouncer.last_issued_key == "c"


async def test_debouncer_drops_last_issued_key():
    issued = []

    async def action(key):
        issued.append(key)
        return True

    debouncer = Debouncer(0.01, action)
    debouncer.trigger("a")
    await debouncer.wait()

    assert debouncer.trigger("a") is False
    assert await debouncer.run_now("a") is False
    assert issued == ["a"]


async def test_debouncer_forgets_failed_key():
    attempts = []

    async def action(key):
        attempts.append(key)
        return False

    debouncer = Debouncer(0.01, action)
    debouncer.trigger("a")
    await debouncer.wait()

    assert debouncer.last_issued_key is None
    assert debouncer.trigger("a") is True
    await debouncer.wait()
    assert attempts == ["a", "a"]


async def test_cancel_drops_in_flight_action():
    started = asyncio.Event()
    finished = []

    async def slow_action(key):
        started.set()
        await asyncio.sleep(1)
        finished.append(key)
        return True

    debouncer = Debouncer(0, slow_action)
    debouncer.trigger("a")
    await started.wait()
    debouncer.cancel()
    await asyncio.sleep(0.01)

    assert finished == []
    assert debouncer.last_issued_key is None


async def test_repeated_key_leaves_in_flight_action_running():
    started = asyncio.Event()
    release = asyncio.Event()
    finished = []

    async def slow_action(key):
        started.set()
        await release.wait()
        finished.append(key)
        return True

    debouncer = Debouncer(0, slow_action)
    debouncer.trigger("a")
    await started.wait()

    assert debouncer.in_flight
    assert debouncer.trigger("a") is False

    release.set()
    await debouncer.wait()

    assert finished == ["a"]
    assert debouncer.last_issued_key == "a"
    assert not debouncer.in_flight


async def test_new_key_replaces_in_flight_action():
    started = asyncio.Event()
    finished = []

    async def action(key):
        if key == "a":
            started.set()
            await asyncio.sleep(1)
        finished.append(key)
        return True

    debouncer = Debouncer(0, action)
    debouncer.trigger("a")
    await started.wait()
    debouncer.trigger("b")
    await debouncer.wait()

    assert finished == ["b"]
    assert debouncer.last_issued_key == "b"
