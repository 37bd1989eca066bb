from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import Sequence

from lifecourse.content.events import DEFAULT_EVENT_CATALOG_PATH, load_event_catalog_json
from lifecourse.content.illnesses import DEFAULT_ILLNESS_CATALOG_PATH, load_illness_catalog_json
from lifecourse.content.io import DEFAULT_PERSONA_PATH, load_persona_json, save_history_json
from lifecourse.sim.core import MAX_EVENTS_PER_CATEGORY, Simulation, StepSettings, step_delay_seconds
from lifecourse.sim.hash import simulation_hash
from lifecourse.sim.history import HistoryRecorder, SimulationHistory
from lifecourse.sim.state import GENDERS

SUMMARY_PRINT_EVENT_LIMIT = 10


def _non_negative_int(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError("years must be >= 0")
    return parsed


def _events_per_turn(value: str) -> int:
    parsed = int(value)
    if not 1 <= parsed <= MAX_EVENTS_PER_CATEGORY:
        raise argparse.ArgumentTypeError(f"events per turn must be in [1, {MAX_EVENTS_PER_CATEGORY}]")
    return parsed


def _percent(value: str) -> int:
    parsed = int(value)
    if not 0 <= parsed <= 100:
        raise argparse.ArgumentTypeError("value must be in [0, 100]")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifecourse-run",
        description=(
            "Run one persona through the life-course simulation and print a per-year time series. "
            "Identical seed, persona and catalogs always reproduce the same run."
        ),
    )
    parser.add_argument("--years", type=_non_negative_int, default=30, help="Number of yearly turns to simulate")
    parser.add_argument("--seed", type=int, default=None, help="Master seed; drawn from the platform when omitted")
    parser.add_argument("--persona", default=DEFAULT_PERSONA_PATH, help="Persona traits JSON path")
    parser.add_argument("--events", default=DEFAULT_EVENT_CATALOG_PATH, help="Life event catalog JSON path")
    parser.add_argument("--illnesses", default=DEFAULT_ILLNESS_CATALOG_PATH, help="Illness catalog JSON path")
    parser.add_argument("--gender", choices=sorted(GENDERS), help="Override the persona gender")
    parser.add_argument("--anxiety-level", type=_percent, help="Override the persona anxiety level")
    parser.add_argument("--family-closeness", type=_percent, help="Override the persona family closeness")
    parser.add_argument(
        "--parents-with-addiction",
        action="store_true",
        help="Mark the persona's parents as having an addiction",
    )
    parser.add_argument("--generic-per-turn", type=_events_per_turn, default=1, help="Generic events per turn")
    parser.add_argument("--personal-per-turn", type=_events_per_turn, default=1, help="Personal events per turn")
    parser.add_argument("--no-coping", action="store_true", help="Disable coping mechanism selection")
    parser.add_argument(
        "--speed",
        type=float,
        default=None,
        help="Pace event application like the interactive view (1.0 = 2s between events)",
    )
    parser.add_argument("--print-events", action="store_true", help="Print every applied event")
    parser.add_argument("--print-summary", action="store_true", help="Print the evaluation summary after the run")
    parser.add_argument("--dump-history", help="Optional path to write the compiled run history JSON")
    return parser


def _print_turn(simulation: Simulation, applied: list, notifications: list, *, print_events: bool) -> None:
    state = simulation.state
    print(
        "year "
        f"age={state.current_age} "
        f"phase={state.life_phase} "
        f"stress={state.current_stress:.1f} "
        f"mood={state.current_mood:.1f} "
        f"social={state.social_belonging:.1f} "
        f"resilience={state.resilience_score:.1f} "
        f"health={state.physical_health:.1f} "
        f"illnesses={','.join(sorted(state.active_illnesses)) or '-'}"
    )
    if print_events:
        for entry in applied:
            print(
                f"  event age={entry.age} category={entry.category} id={entry.event.event_id} "
                f"stress={entry.effects.stress:+.1f} mood={entry.effects.mood:+.1f} "
                f"social={entry.effects.social_belonging:+.1f}"
            )
    for notification in notifications:
        print(f"  illness {notification.change_type} key={notification.illness_key} message={notification.message!r}")


def _print_summary(history: SimulationHistory) -> None:
    summary = history.summary()
    print(f"summary events={len(history.events)} illnesses={len(history.illnesses)}")
    for record in history.top_impactful_events(SUMMARY_PRINT_EVENT_LIMIT):
        print(f"  impactful age={record.age} id={record.event_id} impact={record.total_absolute_impact:.1f}")
    for record in history.traumatic_events():
        print(f"  traumatic age={record.age} id={record.event_id}")
    for entry in summary["illness_timeline"]:
        healed = "ongoing" if entry["healed_age"] is None else entry["healed_age"]
        print(
            f"  illness key={entry['illness_key']} onset={entry['onset_age']} "
            f"healed={healed} duration={entry['duration']}"
        )
    print(
        "  coping "
        f"functional={summary['functional_coping_count']} "
        f"dysfunctional={summary['dysfunctional_coping_count']}"
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        state = load_persona_json(args.persona)
        if args.gender is not None:
            state.gender = args.gender
        if args.anxiety_level is not None:
            state.anxiety_level = args.anxiety_level
        if args.family_closeness is not None:
            state.family_closeness = args.family_closeness
        if args.parents_with_addiction:
            state.parents_with_addiction = True

        settings = StepSettings(
            generic_events_per_turn=args.generic_per_turn,
            personal_events_per_turn=args.personal_per_turn,
            coping_enabled=not args.no_coping,
            step_delay_seconds=0.0 if args.speed is None else step_delay_seconds(args.speed),
        )
        simulation = Simulation(
            state=state,
            event_catalog=load_event_catalog_json(args.events),
            illness_catalog=load_illness_catalog_json(args.illnesses),
            seed=args.seed,
            settings=settings,
        )
        recorder = HistoryRecorder()
        simulation.register_rule_module(recorder)
        print(f"master_seed={simulation.master_seed} years={args.years}")

        for _ in range(args.years):
            if cancel.is_set():
                break
            applied, notifications = simulation.run_step(cancel)
            if simulation.turn_interrupted:
                print(f"[lifecourse.run] cancelled at age={simulation.state.current_age}", file=sys.stderr)
                break
            _print_turn(simulation, applied, notifications, print_events=args.print_events)

        history = recorder.compile(simulation)
        print(f"final_hash={simulation_hash(simulation)}")
        if args.print_summary:
            _print_summary(history)
        if args.dump_history:
            save_history_json(args.dump_history, history)
            print(f"dumped_history={args.dump_history}")

    except Exception as exc:
        print(f"error: {exc}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
