import pytest

from core.events.domain_events import DomainEvents, SourceChanged, domain_events
from core.events.signal import Signal
from core.models import SourceType


def test_domain_event_signal_connect_emit_disconnect():
    seen: list[str] = []

    def _handler(project_id: str) -> None:
        seen.append(project_id)

    domain_events.ledger_reconciled.connect(_handler)
    domain_events.ledger_reconciled.emit("p-1")
    domain_events.ledger_reconciled.disconnect(_handler)
    domain_events.ledger_reconciled.emit("p-2")

    assert seen == ["p-1"]


def test_signal_for_routes_each_source_type():
    events = DomainEvents()
    seen: list[SourceChanged] = []
    events.variation_changed.connect(seen.append)

    for source_type in SourceType:
        events.signal_for(source_type).emit(SourceChanged("t1", source_type, f"{source_type.value}-1"))

    assert [event.source_type for event in seen] == [SourceType.VARIATION]
    assert len(events.source_signals()) == 3


def test_signal_connect_is_idempotent_and_clear_drops_all():
    signal: Signal[str] = Signal()
    seen: list[str] = []

    signal.connect(seen.append)
    signal.connect(seen.append)
    signal.emit("once")
    assert seen == ["once"]
    assert signal.subscriber_count == 1

    signal.clear()
    signal.emit("dropped")
    assert seen == ["once"]


def test_signal_emit_prunes_dead_weak_callbacks():
    signal: Signal[str] = Signal()
    seen: list[str] = []

    class _DeadProxyCallback:
        def __init__(self) -> None:
            self.calls = 0

        def __call__(self, _payload: str) -> None:
            self.calls += 1
            raise ReferenceError("weakly-referenced object no longer exists")

    dead = _DeadProxyCallback()

    def _ok(payload: str) -> None:
        seen.append(payload)

    signal.connect(dead)
    signal.connect(_ok)

    signal.emit("p-1")
    signal.emit("p-2")

    assert dead.calls == 1
    assert seen == ["p-1", "p-2"]


def test_signal_emit_keeps_runtime_errors_visible():
    signal: Signal[str] = Signal()

    def _boom(_payload: str) -> None:
        raise RuntimeError("boom")

    signal.connect(_boom)

    with pytest.raises(RuntimeError, match="boom"):
        signal.emit("x")
    assert signal.subscriber_count == 1


def test_disconnecting_an_unknown_handler_is_harmless():
    signal: Signal[str] = Signal()
    signal.connect(print)

    signal.disconnect(len)

    assert signal.subscriber_count == 1
