"""
Simulator Front-End Tests

Runs the CLI, the interactive prompt, the logger and the event log
against the scenario fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import simulator
from simulator import main, parse_request_line, run_simulation
from utils.logger import SimulatorLogger
from algorithms.avoidance import Decision, DecisionKind
from algorithms.safety import SafetyResult
from analysis.events import EventLog, EventType, SimulationEvent


SCENARIOS_DIR = project_root / "tests" / "scenarios"
EXAMPLES_DIR = project_root / "scenarios"


def scripted_input(lines):
    """Return an input() replacement that raises EOFError when exhausted."""
    remaining = list(lines)

    def _input(prompt: str = "") -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return _input


# -- Logger ---------------------------------------------------------------


def test_logger_levels(capsys):
    """Each level gets its prefix; debug is hidden unless verbose."""
    logger = SimulatorLogger(verbose=False)
    logger.log("plain")
    logger.log("good", "success")
    logger.log("careful", "warning")
    logger.log("bad", "error")
    logger.log("hidden", "debug")

    out = capsys.readouterr().out
    assert "plain\n" in out
    assert "[OK] good" in out
    assert "[WARNING] careful" in out
    assert "[ERROR] bad" in out
    assert "hidden" not in out

    SimulatorLogger(verbose=True).log("shown", "debug")
    assert "[DEBUG] shown" in capsys.readouterr().out


def test_logger_request_levels(capsys):
    """Decision severity follows the decision kind."""
    logger = SimulatorLogger()
    logger.log_request(1, Decision(
        kind=DecisionKind.GRANTED, process=1, request=(1, 0, 2), sequence=(1, 3, 4, 0, 2)
    ))
    logger.log_request(2, Decision(
        kind=DecisionKind.DENIED_INSUFFICIENT_RESOURCES,
        process=4, request=(3, 3, 0), resource=0, limit=2
    ))
    logger.log_request(3, Decision(kind=DecisionKind.DENIED_UNSAFE, process=0, request=(0, 2, 0)))

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == (
        "[OK] Step 1: P1 requests [1, 0, 2] - GRANTED "
        "(Safe state maintained, sequence: P1 -> P3 -> P4 -> P0 -> P2)"
    )
    assert lines[1].startswith("[WARNING] Step 2: P4 requests [3, 3, 0] - DENIED")
    assert lines[2].startswith("[ERROR] Step 3: P0 requests [0, 2, 0] - DENIED")


def test_logger_safety(capsys):
    """Safety results print the verdict and the sequence."""
    logger = SimulatorLogger()
    logger.log_safety(SafetyResult(safe=True, sequence=(1, 0)))
    logger.log_safety(SafetyResult(safe=False), "Current state")

    out = capsys.readouterr().out
    assert "[OK] Initial state is SAFE." in out
    assert "[OK] Safe Sequence: P1 -> P0" in out
    assert "[ERROR] Current state is UNSAFE." in out


def test_logger_file(tmp_path):
    """Log file gets a header and every printed line."""
    log_path = tmp_path / "sim.log"
    logger = SimulatorLogger(log_file=str(log_path))
    logger.log("hello", "warning")
    logger.close()

    content = log_path.read_text(encoding='utf-8')
    assert content.startswith("Simulation Log - ")
    assert "[WARNING] hello" in content


# -- Event log ------------------------------------------------------------


def test_event_log_queries():
    """Events can be filtered by type and by process."""
    event_log = EventLog()
    event_log.add(SimulationEvent(step=0, event_type=EventType.SAFETY_CHECK, reason="initial state safe"))
    event_log.add(SimulationEvent(
        step=1, event_type=EventType.ALLOCATION, process_id=1,
        request=(1, 0, 2), decision="GRANTED", reason="ok"
    ))
    event_log.add(SimulationEvent(
        step=2, event_type=EventType.DENIAL, process_id=1,
        request=(0, 5, 0), decision="DENIED_EXCEEDS_MAX_CLAIM", reason="too much"
    ))

    assert len(event_log.get_events_by_type(EventType.DENIAL)) == 1
    assert len(event_log.get_events_by_process(1)) == 2
    assert event_log.display().splitlines() == [
        "Step 0: SAFETY CHECK (initial state safe)",
        "Step 1: P1 requests [1, 0, 2] - GRANTED (ok)",
        "Step 2: P1 requests [0, 5, 0] - DENIED (too much)",
    ]


# -- Simulation runs ------------------------------------------------------


def test_run_textbook_scenario(capsys):
    """Scripted walkthrough: grant, wait, unsafe."""
    print("\n" + "="*60)
    print("SIMULATION TEST: Textbook Scenario")
    print("="*60)

    event_log, state = run_simulation(str(EXAMPLES_DIR / "textbook.json"))
    out = capsys.readouterr().out

    decisions = [e.decision for e in event_log.events if e.event_type != EventType.SAFETY_CHECK]
    assert decisions == [
        "GRANTED",
        "DENIED_INSUFFICIENT_RESOURCES",
        "DENIED_UNSAFE",
    ]
    assert state.available_vector.tolist() == [2, 3, 0]

    assert "[OK] Initial state is SAFE." in out
    assert "Safe Sequence: P1 -> P3 -> P4 -> P0 -> P2" in out
    assert "--- New Request from P1 for [1, 0, 2] ---" in out
    assert "Successful Allocations: 1" in out
    assert "Denials: 2" in out


def test_run_unsafe_start(capsys):
    """An unsafe initial state is reported and nothing is granted."""
    event_log, state = run_simulation(str(SCENARIOS_DIR / "unsafe_start.json"))
    out = capsys.readouterr().out

    assert "[ERROR] Initial state is UNSAFE." in out
    assert event_log.events[0].reason == "initial state unsafe"
    assert event_log.get_events_by_type(EventType.ALLOCATION) == []
    assert event_log.events[-1].decision == "DENIED_UNSAFE"


def test_run_default_scenario_with_extra_requests():
    """Without a scenario file the textbook state is used."""
    event_log, state = run_simulation(requests=[(1, [1, 0, 2]), (7, [0, 0, 0])])

    # The out-of-range request is rejected before reaching the event log
    assert len(event_log.get_events_by_type(EventType.ALLOCATION)) == 1
    assert len(event_log.events) == 2
    assert state.need(1) == [0, 2, 0]


def test_run_missing_scenario(capsys):
    """Load failure is logged and no state is returned."""
    event_log, state = run_simulation(str(SCENARIOS_DIR / "nope.json"))

    assert state is None
    assert event_log.events == []
    assert "[ERROR] Failed to load scenario" in capsys.readouterr().out


def test_interactive_session(capsys):
    """Interactive prompt drives the same request path."""
    lines = [
        "help",
        "P1 1 0 2",
        "bogus input",
        "",
        "state",
        "safety",
        "9 0 0 0",
        "p0 0, 0, -1",
        "quit",
        "P3 0 1 1",
    ]
    event_log, state = run_simulation(interactive=True, input_func=scripted_input(lines))
    out = capsys.readouterr().out

    assert "Commands:" in out
    assert "Could not parse 'bogus input'" in out
    assert "[OK] Current state is SAFE." in out
    assert "Request REJECTED." in out
    # Only the valid request reached the arbiter; input after 'quit' is ignored
    assert len(event_log.get_events_by_type(EventType.ALLOCATION)) == 1
    assert state.available_vector.tolist() == [2, 3, 0]


def test_interactive_oversized_request(tmp_path, capsys):
    """A huge typed amount is denied as over-claim and the session carries on."""
    log_path = tmp_path / "big.log"
    lines = ["P0 100000000000000000000 0 0", "P1 1 0 2"]
    event_log, state = run_simulation(
        interactive=True, log_file=str(log_path), input_func=scripted_input(lines)
    )
    capsys.readouterr()

    denial = event_log.get_events_by_type(EventType.DENIAL)[0]
    assert denial.decision == "DENIED_EXCEEDS_MAX_CLAIM"
    assert denial.request == (100000000000000000000, 0, 0)
    assert state.available_vector.tolist() == [2, 3, 0]
    assert "SIMULATION COMPLETE" in log_path.read_text(encoding='utf-8')


def test_log_file_closed_when_session_aborts(tmp_path, monkeypatch, capsys):
    """The log file is closed even when the prompt is interrupted."""
    loggers = []

    class RecordingLogger(SimulatorLogger):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            loggers.append(self)

    def interrupted_input(prompt=""):
        raise KeyboardInterrupt

    monkeypatch.setattr(simulator, "SimulatorLogger", RecordingLogger)
    log_path = tmp_path / "aborted.log"

    with pytest.raises(KeyboardInterrupt):
        run_simulation(interactive=True, log_file=str(log_path), input_func=interrupted_input)
    capsys.readouterr()

    assert loggers[0].file_handle is None
    assert "Interactive mode" in log_path.read_text(encoding='utf-8')


def test_interactive_ends_on_eof():
    """End of input leaves the prompt cleanly."""
    event_log, state = run_simulation(interactive=True, input_func=scripted_input(["1 1 0 2"]))

    assert len(event_log.events) == 2
    assert state.available_vector.tolist() == [2, 3, 0]


def test_parse_request_line():
    """Process token may carry a P prefix; commas are allowed."""
    assert parse_request_line("P1 1 0 2") == (1, [1, 0, 2])
    assert parse_request_line("p4 3,3,0") == (4, [3, 3, 0])
    assert parse_request_line("0 -1 0 0") == (0, [-1, 0, 0])

    for bad in ("P1", "P 1 0 2", "x 1 2 3", "1 a b c"):
        with pytest.raises(ValueError):
            parse_request_line(bad)


# -- Command line ---------------------------------------------------------


def test_main_with_requests(capsys):
    """--request may be repeated; exit code is 0."""
    code = main(["--request", "1", "1", "0", "2", "--request", "0", "0", "2", "0"])
    out = capsys.readouterr().out

    assert code == 0
    assert "P1 requests [1, 0, 2] - GRANTED" in out
    assert "P0 requests [0, 2, 0] - DENIED" in out
    assert "Request Log:" not in out


def test_main_verbose_prints_request_log(capsys):
    """--verbose ends the run with the full request log."""
    code = main(["--request", "1", "1", "0", "2", "--verbose"])
    out = capsys.readouterr().out

    assert code == 0
    request_log = out.split("Request Log:\n", 1)[1].splitlines()
    assert request_log[:2] == [
        "Step 0: SAFETY CHECK (initial state safe)",
        "Step 1: P1 requests [1, 0, 2] - GRANTED "
        "(Safe state maintained, sequence: P1 -> P3 -> P4 -> P0 -> P2)",
    ]


def test_main_with_scenario_and_log_file(tmp_path, capsys):
    """Scenario and log file flags."""
    log_path = tmp_path / "run.log"
    code = main([
        "--scenario", str(EXAMPLES_DIR / "single_printer.json"),
        "--log-file", str(log_path),
        "--verbose",
    ])
    capsys.readouterr()

    assert code == 0
    content = log_path.read_text(encoding='utf-8')
    assert "Printer" in content
    assert "P1 requests [1] - DENIED" in content
    assert "P0 requests [1] - GRANTED" in content
    assert "[DEBUG] " in content


def test_main_missing_scenario(capsys):
    """Unloadable scenario exits with 1."""
    assert main(["--scenario", str(SCENARIOS_DIR / "nope.json")]) == 1
    capsys.readouterr()


def test_main_request_needs_amounts(capsys):
    """A --request with only a process index is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--request", "1"])
    assert exc_info.value.code == 2
    capsys.readouterr()
