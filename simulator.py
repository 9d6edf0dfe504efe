#!/usr/bin/env python3
"""
Banker's Algorithm Simulator
Main entry point for the simulation system.

Educational tool for demonstrating deadlock avoidance: requests are granted
only when the system stays in a safe state.
"""

import argparse
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from models.errors import IndexOutOfRangeError
from models.resource_state import ResourceState
from utils.scenario_loader import load_scenario, load_default_scenario, ScenarioLoadError
from utils.logger import SimulatorLogger
from algorithms.avoidance import Decision, RequestArbiter
from analysis.events import EventLog, SimulationEvent, EventType


QUIT_COMMANDS = ('quit', 'exit', 'q')

HELP_TEXT = (
    "Commands:\n"
    "  P<n> a b c ...   request units for process n (e.g. 'P1 1 0 2')\n"
    "  state            show the current state\n"
    "  safety           run the safety check on the current state\n"
    "  quit             leave the simulator"
)


def run_simulation(
    scenario_path: Optional[str] = None,
    requests: Sequence[Tuple[int, List[int]]] = (),
    verbose: bool = False,
    log_file: Optional[str] = None,
    interactive: bool = False,
    input_func: Callable[[str], str] = input
) -> Tuple[EventLog, Optional[ResourceState]]:
    """
    Run the Banker's Algorithm simulation.

    Order:
    1. Load the scenario (built-in textbook state if no path is given)
    2. Render the initial state and report its safety
    3. Submit the scenario's scripted requests, then `requests`, in order
    4. Optionally hand over to the interactive prompt

    Args:
        scenario_path: Path to scenario JSON file
        requests: Extra (process, amounts) requests submitted after the script
        verbose: Enable verbose logging
        log_file: Optional file mirroring the log
        interactive: Read further requests from `input_func`
        input_func: Line reader for interactive mode

    Returns:
        Tuple of (EventLog, final ResourceState or None if loading failed)
    """
    logger = SimulatorLogger(verbose=verbose, log_file=log_file)
    event_log = EventLog()

    try:
        try:
            if scenario_path:
                state, scenario = load_scenario(scenario_path)
            else:
                state, scenario = load_default_scenario()
        except ScenarioLoadError as e:
            logger.log(f"Failed to load scenario: {e}", "error")
            return event_log, None

        logger.log(f"\n{'='*60}")
        logger.log("BANKER'S ALGORITHM SIMULATION")
        logger.log(f"Scenario: {scenario_path or 'built-in textbook example'}")
        if scenario.description:
            logger.log(f"Description: {scenario.description}")
        logger.log(f"{'='*60}")

        arbiter = RequestArbiter(state)
        labels = scenario.labels

        logger.log(state.snapshot().display(labels))
        logger.log("System initialized. Checking initial state...")
        result = arbiter.check_current_safety()
        logger.log_safety(result)
        event_log.add(SimulationEvent(
            step=0,
            event_type=EventType.SAFETY_CHECK,
            sequence=result.sequence,
            reason="initial state " + ("safe" if result.safe else "unsafe")
        ))

        step = 0
        for process, amounts in list(scenario.requests) + list(requests):
            step += 1
            submit_request(arbiter, step, process, amounts, labels, logger, event_log)

        if interactive:
            interactive_loop(arbiter, labels, logger, event_log, step, input_func)

        logger.log(f"\n{'='*60}")
        logger.log("SIMULATION COMPLETE")
        logger.log(f"{'='*60}\n")

        _display_statistics(event_log, logger)

        return event_log, state
    finally:
        logger.close()


def submit_request(
    arbiter: RequestArbiter,
    step: int,
    process: int,
    amounts: Sequence[int],
    labels: List[str],
    logger: SimulatorLogger,
    event_log: EventLog
) -> Optional[Decision]:
    """
    Submit one request to the arbiter and report the outcome.

    Args:
        arbiter: Arbiter owning the system state
        step: Request number in this session
        process: Requesting process index
        amounts: Requested units per resource type
        labels: Resource labels for state rendering
        logger: Logger instance
        event_log: Event log

    Returns:
        The Decision, or None if the request was malformed
    """
    logger.log(f"\n--- New Request from P{process} for {list(amounts)} ---")

    try:
        decision = arbiter.request(process, amounts)
    except IndexOutOfRangeError as e:
        logger.log(f"Request REJECTED. {e}", "error")
        return None

    logger.log_request(step, decision)
    logger.log(f"  Available now: {arbiter.state.available_vector.tolist()}", "debug")

    if decision.granted:
        seq_str = " -> ".join(f"P{p}" for p in decision.sequence)
        logger.log(f"Safe Sequence: {seq_str}", "success")
        logger.log(arbiter.state.snapshot().display(labels))
    else:
        logger.log_system_state(arbiter.state.snapshot().display(labels))

    event_log.add(SimulationEvent(
        step=step,
        event_type=EventType.ALLOCATION if decision.granted else EventType.DENIAL,
        process_id=decision.process,
        request=decision.request,
        decision=decision.kind.value,
        sequence=decision.sequence,
        reason=decision.reason
    ))
    return decision


def parse_request_line(line: str) -> Tuple[int, List[int]]:
    """
    Parse 'P1 1 0 2' or '1 1 0 2' into (1, [1, 0, 2]).

    Raises:
        ValueError: If the line is not a process followed by integers
    """
    tokens = line.replace(',', ' ').split()
    if len(tokens) < 2:
        raise ValueError("expected a process followed by one amount per resource type")

    process_token = tokens[0]
    if process_token[0] in 'pP':
        process_token = process_token[1:]

    return int(process_token), [int(token) for token in tokens[1:]]


def interactive_loop(
    arbiter: RequestArbiter,
    labels: List[str],
    logger: SimulatorLogger,
    event_log: EventLog,
    step: int = 0,
    input_func: Callable[[str], str] = input
) -> int:
    """
    Read requests from the user until 'quit' or end of input.

    Returns:
        Number of the last request step submitted
    """
    logger.log("\nInteractive mode. Type 'help' for commands.")

    while True:
        try:
            line = input_func("request> ").strip()
        except EOFError:
            break

        if not line:
            continue

        command = line.lower()
        if command in QUIT_COMMANDS:
            break
        if command == 'help':
            logger.log(HELP_TEXT)
            continue
        if command == 'state':
            logger.log(arbiter.state.snapshot().display(labels))
            continue
        if command == 'safety':
            logger.log_safety(arbiter.check_current_safety(), "Current state")
            continue

        try:
            process, amounts = parse_request_line(line)
        except ValueError as e:
            logger.log(f"Could not parse '{line}': {e}", "error")
            continue

        step += 1
        submit_request(arbiter, step, process, amounts, labels, logger, event_log)

    return step


def _display_statistics(event_log: EventLog, logger: SimulatorLogger) -> None:
    """Display final simulation statistics."""
    logger.log("Simulation Statistics:")

    allocations = len(event_log.get_events_by_type(EventType.ALLOCATION))
    denials = event_log.get_events_by_type(EventType.DENIAL)

    logger.log(f"  Successful Allocations: {allocations}")
    logger.log(f"  Denials: {len(denials)}")
    for kind in sorted({e.decision for e in denials}):
        count = sum(1 for e in denials if e.decision == kind)
        logger.log(f"    {kind}: {count}")

    if logger.verbose:
        logger.log("\nRequest Log:")
        logger.log(event_log.display())


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm Simulator"
    )
    parser.add_argument(
        '--scenario',
        type=str,
        default=None,
        help='Path to scenario JSON file (default: built-in textbook example)'
    )
    parser.add_argument(
        '--request',
        type=int,
        nargs='+',
        action='append',
        default=[],
        metavar='N',
        help='Submit a request: process index followed by one amount per resource '
             '(e.g. --request 1 1 0 2). May be repeated.'
    )
    parser.add_argument(
        '--interactive',
        action='store_true',
        help='Read further requests from standard input'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )

    args = parser.parse_args(argv)

    for values in args.request:
        if len(values) < 2:
            parser.error('--request needs a process index and at least one amount')

    requests = [(values[0], values[1:]) for values in args.request]

    _, state = run_simulation(
        scenario_path=args.scenario,
        requests=requests,
        verbose=args.verbose,
        log_file=args.log_file,
        interactive=args.interactive
    )
    return 0 if state is not None else 1


if __name__ == '__main__':
    sys.exit(main())
