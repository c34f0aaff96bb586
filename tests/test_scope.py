"""Tests for ownership: create_root, nested computations, on_cleanup, untrack."""

import logging

import pytest

from reactix import (
    DisposedError,
    Effect,
    Signal,
    create_effect,
    create_memo,
    create_root,
    create_signal,
    get_owner,
    on_cleanup,
    untrack,
)
from reactix.scope import Root


class TestCreateRoot:
    def test_dispose_stops_effects(self):
        x, set_x = create_signal(0)
        log = []

        def app(dispose):
            create_effect(lambda: log.append(x()))
            return dispose

        dispose = create_root(app)
        set_x(1)
        dispose()
        set_x(2)
        assert log == [0, 1]

    def test_returns_fn_result(self):
        assert create_root(lambda dispose: 42) == 42

    def test_root_is_owner_inside(self):
        owner = create_root(lambda dispose: get_owner())
        assert isinstance(owner, Root)
        assert get_owner() is None

    def test_reads_inside_root_are_untracked(self):
        x, set_x = create_signal(0)
        log = []

        def outer():
            log.append("outer")
            create_root(lambda dispose: x())

        create_effect(outer)
        set_x(1)
        assert log == ["outer"]

    def test_root_is_not_adopted_by_running_effect(self):
        x = Signal(0)
        roots = []
        effect = Effect(lambda: (x.get(), roots.append(create_root(lambda d: get_owner()))))
        assert roots[0] not in effect._owned
        x.set(1)
        assert not roots[0].disposed

    def test_dispose_disposes_memos(self):
        x, _ = create_signal(0)
        getter, dispose = create_root(lambda dispose: (create_memo(lambda: x()), dispose))
        dispose()
        with pytest.raises(DisposedError):
            getter()

    def test_error_in_fn_disposes_what_was_created(self):
        x, set_x = create_signal(0)
        log = []

        def app(dispose):
            create_effect(lambda: log.append(x()))
            raise ValueError("setup failed")

        with pytest.raises(ValueError, match="setup failed"):
            create_root(app)
        set_x(1)
        assert log == [0]

    def test_self_disposed_children_are_released(self):
        def app(dispose):
            for _ in range(100):
                Effect(lambda: None).dispose()
                Signal(0).dispose()
            return get_owner()

        root = create_root(app)
        assert len(root._owned) == 0

    def test_live_children_stay_owned(self):
        def app(dispose):
            kept = Effect(lambda: None)
            Effect(lambda: None).dispose()
            return get_owner(), kept

        root, kept = create_root(app)
        assert list(root._owned) == [kept]
        root.dispose()
        assert kept.disposed

    def test_failing_child_does_not_stop_teardown(self):
        x, set_x = create_signal(0)
        log = []

        def boom():
            raise RuntimeError("cleanup failed")

        def app(dispose):
            Effect(lambda: on_cleanup(boom))
            Effect(lambda: log.append(x()))
            on_cleanup(lambda: log.append("root cleanup"))
            return dispose

        dispose = create_root(app)
        with pytest.raises(RuntimeError, match="cleanup failed"):
            dispose()
        assert log == [0, "root cleanup"]
        set_x(1)
        assert log == [0, "root cleanup"]  # the second effect was still disposed


class TestOwnership:
    def test_nested_effects_are_replaced_on_rerun(self):
        toggle, set_toggle = create_signal(0)
        x, set_x = create_signal("a")
        log = []

        def outer():
            toggle()
            create_effect(lambda: log.append(x()))

        create_effect(outer)
        set_toggle(1)
        set_toggle(2)
        log.clear()

        set_x("b")
        assert log == ["b"]  # only the latest inner effect is alive

    def test_owner_inside_effect(self):
        owners = []
        effect = Effect(lambda: owners.append(get_owner()))
        assert owners == [effect]

    def test_signals_created_in_a_run_are_disposed_on_rerun(self):
        x = Signal(0)
        created = []

        def body():
            x.get()
            created.append(Signal("local"))

        Effect(body)
        x.set(1)
        with pytest.raises(DisposedError):
            created[0].get()
        assert created[1].get() == "local"

    def test_disposed_during_pass_is_skipped(self):
        x = Signal(0)
        log = []
        holder = {}

        def first():
            if x.get() > 0:
                holder["second"].dispose()

        Effect(first)
        holder["second"] = Effect(lambda: log.append(x.get()))
        x.set(1)
        assert log == [0]


class TestOnCleanup:
    def test_runs_before_rerun_and_on_dispose(self):
        x = Signal(0)
        log = []

        def body():
            log.append(f"run {x.get()}")
            on_cleanup(lambda: log.append("first"))
            on_cleanup(lambda: log.append("second"))

        effect = Effect(body)
        x.set(1)
        assert log == ["run 0", "second", "first", "run 1"]
        effect.dispose()
        assert log == ["run 0", "second", "first", "run 1", "second", "first"]

    def test_cleanup_writing_own_source_runs_once(self):
        s, set_s = create_signal(0)
        runs = []

        def body():
            v = s()
            runs.append(v)
            on_cleanup(lambda: set_s(5) if v == 1 else None)

        create_effect(body)
        set_s(1)
        set_s(2)
        # The cleanup's write lands before the re-run reads, in a single run.
        assert runs == [0, 1, 5]
        assert s() == 5

    def test_all_cleanups_run_when_one_raises(self, caplog):
        log = []

        def boom(name):
            def fail():
                log.append(name)
                raise RuntimeError(name)
            return fail

        def app(dispose):
            on_cleanup(lambda: log.append("oldest"))
            on_cleanup(boom("middle"))
            on_cleanup(boom("newest"))
            return dispose

        dispose = create_root(app)
        with caplog.at_level(logging.ERROR, logger="reactix.computation"):
            with pytest.raises(RuntimeError, match="newest"):
                dispose()
        assert log == ["newest", "middle", "oldest"]
        assert "Another error while cleaning up" in caplog.text

    def test_root_cleanup(self):
        log = []

        def app(dispose):
            on_cleanup(lambda: log.append("bye"))
            return dispose

        dispose = create_root(app)
        assert log == []
        dispose()
        dispose()
        assert log == ["bye"]

    def test_usable_as_decorator(self):
        x = Signal(0)
        log = []

        def body():
            x.get()

            @on_cleanup
            def stop():
                log.append("stopped")

        Effect(body)
        x.set(1)
        assert log == ["stopped"]

    def test_outside_owner_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="reactix.scope"):
            on_cleanup(lambda: None)
        assert "outside an owner" in caplog.text


class TestUntrack:
    def test_reads_are_not_tracked(self):
        a, set_a = create_signal(0)
        b, set_b = create_signal(0)
        log = []
        create_effect(lambda: log.append((a(), untrack(b))))
        set_b(2)
        assert log == [(0, 0)]
        set_a(1)
        assert log == [(0, 0), (1, 2)]

    def test_returns_value_outside_computation(self):
        x, _ = create_signal("v")
        assert untrack(x) == "v"

    def test_keeps_owner(self):
        owners = []
        effect = Effect(lambda: owners.append(untrack(get_owner)))
        assert owners == [effect]
