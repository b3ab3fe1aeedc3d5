from auracontrols.core.types import GestureKind, GesturePhase, Handedness
from auracontrols.interpreter.edges import EdgeTracker

R = Handedness.RIGHT
L = Handedness.LEFT
K = GestureKind.PINCH_INDEX


def feed(tracker, hand, levels):
    return [tracker.update(hand, {K: (lvl, None)})[K].phase for lvl in levels]


def test_edges_fire_once_per_transition():
    phases = feed(EdgeTracker(), R, [False, True, True, False])
    assert phases == [GesturePhase.IDLE, GesturePhase.JUST_ENTERED, GesturePhase.ACTIVE, GesturePhase.JUST_EXITED]


def test_stable_levels_never_edge():
    t = EdgeTracker()
    assert feed(t, R, [True] * 5)[1:] == [GesturePhase.ACTIVE] * 4
    assert feed(t, R, [False] * 5)[1:] == [GesturePhase.IDLE] * 4


def test_absent_hand_resets_to_idle_through_one_exit():
    t = EdgeTracker()
    feed(t, R, [True, True])
    assert t.update_absent(R)[K].phase == GesturePhase.JUST_EXITED
    assert t.update_absent(R)[K].phase == GesturePhase.IDLE
    # re-appearing pinch is a fresh rising edge
    assert feed(t, R, [True]) == [GesturePhase.JUST_ENTERED]


def test_hands_are_tracked_independently():
    t = EdgeTracker()
    feed(t, R, [True])
    assert feed(t, L, [True]) == [GesturePhase.JUST_ENTERED]
    assert feed(t, R, [True]) == [GesturePhase.ACTIVE]


def test_every_kind_is_reported_with_metric():
    states = EdgeTracker().update(R, {K: (True, 0.03)})
    assert set(states) == set(GestureKind)
    assert states[K].metric == 0.03
    assert states[K].entered and states[K].active and not states[K].was_active
    assert states[GestureKind.PALM_OPEN].phase == GesturePhase.IDLE


def test_reset_forgets_previous_levels():
    t = EdgeTracker()
    feed(t, R, [True])
    t.reset()
    assert feed(t, R, [True]) == [GesturePhase.JUST_ENTERED]
