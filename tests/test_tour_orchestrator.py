"""Route lifecycle scenarios for the tour orchestrator (headless doubles)."""

from gui.design.onboarding_tour import HEADER_HAMBURGER, HEADER_LOGIN, HEADER_REGISTER
from gui.services.event_bus import TourEvent
from gui.services.tour_orchestrator import RouteContext, parse_route
from gui.services.tour_playback import Directive, PlaybackState
from gui.services.tour_responsive_adapter import TOOLTIP_WIDTH_STYLE
from tests.factories import add_header, add_home, add_perfil

AVATAR = "[data-tour='perfil.avatar']"


def _names(bus, *events):
    seen = []
    for ev in events:
        bus.subscribe(ev, lambda e: seen.append(e.name))
    return seen


def _walk_to_end(orch):
    for _ in range(len(orch.playback.steps)):
        orch.next_step()


# -- query parsing ------------------------------------------------------------


def test_parse_route_directives():
    assert parse_route("/") == RouteContext("/", "home", Directive.NONE)
    assert parse_route("/perfil", "tour=1") == RouteContext("/perfil", "perfil", Directive.FORCE)
    assert parse_route("/perfil?tour=START") == RouteContext("/perfil", "perfil", Directive.FORCE)
    assert parse_route("/painel/", {"tour": "reset"}) == RouteContext("/painel", "painel", Directive.RESET)
    assert parse_route("/", {"tour": ["Vitrine"]}) == RouteContext("/", "vitrine", Directive.FORCE, True)
    assert parse_route("/perfil", "tour=") == RouteContext("/perfil", "perfil", Directive.NONE)


# -- first visit ----------------------------------------------------------------


def test_first_visit_runs_header_then_page_and_records(make_orchestrator, host, clock, store, bus):
    add_header(host)
    add_home(host)
    orch = make_orchestrator()
    orch.mount("/")
    assert orch.state is PlaybackState.WAITING
    assert not orch.should_render()
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING
    assert orch.should_render()
    targets = [s.target for s in orch.steps]
    assert targets[0] == HEADER_REGISTER
    assert HEADER_HAMBURGER not in targets  # hidden on desktop
    assert targets[5:] == [".home-hero-section", ".home-hero-cta", ".demandas-section"]
    assert orch.current_step().target == HEADER_REGISTER

    _walk_to_end(orch)
    assert orch.state is PlaybackState.IDLE
    assert store.is_completed("/", "home")

    # next visit to the same route stays quiet
    orch.mount("/")
    clock.advance(1000)
    assert orch.state is PlaybackState.IDLE
    assert orch.current_step() is None


def test_logged_in_header_starts_at_profile_button(make_orchestrator, host, clock):
    add_header(host, logged_in=True)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    assert orch.steps[0].target == HEADER_LOGIN


def test_readiness_waits_for_first_anchor_in_view(make_orchestrator, host, clock):
    els = add_header(host)
    els["first"].in_view = False
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(1000)
    assert orch.state is PlaybackState.WAITING
    assert orch.valid_now and not orch.first_ready
    els["first"].in_view = True
    orch.on_viewport_changed()
    clock.advance(149)
    assert orch.state is PlaybackState.WAITING
    clock.advance(1)
    assert orch.state is PlaybackState.RUNNING


def test_start_is_cancelled_when_readiness_is_lost_during_delay(make_orchestrator, host, clock):
    els = add_header(host)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(100)  # resolved, start pending
    els["logo"].rendered = False
    orch.on_dom_mutated()
    clock.advance(500)
    assert orch.state is PlaybackState.WAITING
    assert not orch.valid_now


# -- explicit restart ---------------------------------------------------------


def test_explicit_restart_opens_on_flow_first_step(make_orchestrator, host, clock, store):
    add_header(host, logged_in=True)
    add_perfil(host)
    store.mark_completed("/perfil", "perfil")
    orch = make_orchestrator()
    orch.mount("/perfil")
    clock.advance(500)
    assert orch.state is PlaybackState.IDLE

    assert orch.handle.start("perfil")
    assert not store.is_completed("/perfil", "perfil")
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING
    assert orch.current_step().target == AVATAR
    assert all("header" not in s.target for s in orch.steps)

    _walk_to_end(orch)
    assert store.is_completed("/perfil", "perfil")


def test_named_flow_in_query_waits_for_late_first_anchor(make_orchestrator, host, clock):
    add_header(host)
    els = add_perfil(host, rendered=False)
    els["atuacao"].rendered = True
    orch = make_orchestrator()
    orch.mount("/perfil", "tour=perfil")
    clock.advance(300)
    assert orch.resolving
    els["avatar"].rendered = True
    clock.advance(100)
    assert not orch.resolving
    clock.advance(200)
    assert orch.state is PlaybackState.RUNNING
    assert orch.current_step().target == AVATAR


def test_start_without_mount_is_ignored(make_orchestrator):
    orch = make_orchestrator()
    assert orch.handle.start("perfil") is False


# -- reset ----------------------------------------------------------------------


def test_reset_query_clears_record_and_stays_idle(make_orchestrator, host, clock, store):
    add_header(host)
    store.mark_completed("/", "home")
    orch = make_orchestrator()
    orch.mount("/", "tour=reset")
    assert not store.is_completed("/", "home")
    clock.advance(1000)
    assert orch.state is PlaybackState.IDLE

    orch.mount("/")
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING


def test_handle_reset_without_starting(make_orchestrator, host, clock, store):
    store.mark_completed("/perfil", "perfil")
    store.mark_completed("/painel", "perfil")
    orch = make_orchestrator()
    assert orch.handle.reset("perfil") is True  # nothing mounted: every route
    assert store.records() == []
    assert orch.handle.reset() is False

    store.mark_completed("/perfil", "perfil")
    orch.mount("/perfil")
    assert orch.handle.reset()
    assert not store.is_completed("/perfil", "perfil")
    # reset never starts the walkthrough by itself
    clock.advance(1000)
    assert orch.state is PlaybackState.IDLE


# -- mobile -----------------------------------------------------------------------


def test_mobile_swaps_hidden_nav_for_single_hamburger_step(make_orchestrator, host, clock):
    host.width = 375
    add_header(host, mobile=True)
    add_home(host)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING
    targets = [s.target for s in orch.steps]
    assert targets.count(HEADER_HAMBURGER) == 1
    burger = next(s for s in orch.steps if s.target == HEADER_HAMBURGER)
    assert burger.content.startswith("No celular")
    assert not any("header-nav" in t for t in targets)
    assert all(s.placement == "bottom" and s.disable_beacon for s in orch.steps)
    assert all(s.styles[TOOLTIP_WIDTH_STYLE] == 300 for s in orch.steps)


# -- pause / resume -----------------------------------------------------------------


def test_lost_anchor_pauses_and_resumes_at_same_step(make_orchestrator, host, clock, bus):
    els = add_header(host)
    seen = _names(bus, TourEvent.PAUSED, TourEvent.RESUMED)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    orch.next_step()
    orch.next_step()
    els["demandas"].rendered = False
    orch.on_dom_mutated()
    assert orch.state is PlaybackState.WAITING
    assert not orch.should_render()
    els["demandas"].rendered = True
    orch.on_dom_mutated()
    assert orch.state is PlaybackState.RUNNING
    assert orch.playback.index == 2
    assert seen == ["tour_paused", "tour_resumed"]


# -- resize ------------------------------------------------------------------------


def test_resize_is_debounced_and_class_change_recomputes(make_orchestrator, host, clock, bus):
    els = add_header(host)
    seen = _names(bus, TourEvent.STOPPED, TourEvent.STEPS_RESOLVED)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    assert seen == ["tour_steps_resolved"]

    host.width = 375
    for name in ("produtos", "demandas", "painel"):
        els[name].rendered = False
    els["hamburger"].rendered = True
    for _ in range(3):
        orch.on_resize()
        clock.advance(50)
    # still inside the debounce window of the last resize
    assert "tour_stopped" not in seen
    clock.advance(70)
    assert seen[-1] == "tour_stopped"
    assert orch.state is PlaybackState.WAITING
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING
    assert HEADER_HAMBURGER in [s.target for s in orch.steps]


def test_resize_within_same_class_only_revalidates(make_orchestrator, host, clock, bus):
    add_header(host)
    seen = _names(bus, TourEvent.STEPS_RESOLVED, TourEvent.STOPPED)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    host.width = 1024
    orch.on_resize()
    clock.advance(200)
    assert seen == ["tour_steps_resolved"]
    assert orch.state is PlaybackState.RUNNING


def test_finished_forced_tour_does_not_replay_on_class_change(make_orchestrator, host, clock, store):
    add_header(host)
    orch = make_orchestrator()
    orch.mount("/", "tour=1")
    clock.advance(300)
    _walk_to_end(orch)
    host.width = 375
    orch.on_resize()
    clock.advance(1000)
    assert orch.state is PlaybackState.IDLE


# -- teardown ----------------------------------------------------------------------


def test_unmount_cancels_pending_work(make_orchestrator, host, clock, bus):
    add_header(host)
    seen = _names(bus, TourEvent.STEPS_RESOLVED, TourEvent.STARTED)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(50)
    orch.unmount()
    assert clock.pending_count == 0
    clock.advance(1000)
    assert seen == []
    assert orch.state is PlaybackState.IDLE
    assert not orch.mounted


def test_route_change_ignores_previous_route_callbacks(make_orchestrator, host, clock, bus):
    add_header(host)
    add_perfil(host)
    resolved = []
    bus.subscribe(TourEvent.STEPS_RESOLVED, lambda e: resolved.append(e.payload["route"]))
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(40)
    orch.mount("/perfil")
    clock.advance(1000)
    assert resolved == ["/perfil"]


def test_unmount_while_running_stops_without_recording(make_orchestrator, host, clock, store, bus):
    add_header(host)
    seen = _names(bus, TourEvent.STOPPED)
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    orch.unmount()
    assert seen == ["tour_stopped"]
    assert not store.is_completed("/", "home")


def test_watcher_attached_per_mount_and_detached(make_orchestrator, host, clock):
    calls = []

    class Watcher:
        def __init__(self, orch):
            self.orch = orch

        def attach(self):
            calls.append("attach")

        def detach(self):
            calls.append("detach")

    orch = make_orchestrator(watcher_factory=Watcher)
    orch.mount("/")
    orch.mount("/perfil")
    orch.dispose()
    assert calls == ["attach", "detach", "attach", "detach"]


# -- registration ------------------------------------------------------------------


def test_page_registration_via_bus_precedes_fallback(make_orchestrator, host, clock, bus):
    add_header(host)
    host.add("painel-custom")
    host.add("tile-oportunidades")
    orch = make_orchestrator()
    orch.mount("/painel")
    bus.publish(
        TourEvent.REGISTER,
        {"order": 1, "steps": [{"target": "[data-tour='painel-custom']", "content": "Novo"}]},
    )
    clock.advance(300)
    assert orch.state is PlaybackState.RUNNING
    targets = [s.target for s in orch.steps]
    assert targets.index("[data-tour='painel-custom']") == 5
    assert targets[-1] == ".painel-oportunidades, [data-tour='tile-oportunidades']"


def test_registration_during_walkthrough_is_deferred(make_orchestrator, host, clock):
    add_header(host)
    host.add("late")
    orch = make_orchestrator()
    orch.mount("/")
    clock.advance(300)
    before = orch.steps
    orch.handle.register_group("home", 1, [{"target": "[data-tour=late]", "content": "x"}])
    clock.advance(500)
    assert orch.steps == before
    assert orch.playback.index == 0

    orch.mount("/")
    clock.advance(300)
    assert "[data-tour=late]" in [s.target for s in orch.steps]
