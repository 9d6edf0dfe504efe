"""
Logger utility for the Banker's Algorithm Simulator.

Provides request-by-request logging with verbosity levels.
"""

from typing import Optional
from datetime import datetime

from algorithms.avoidance import Decision, DecisionKind
from algorithms.safety import SafetyResult


# Log level per decision kind
DECISION_LEVELS = {
    DecisionKind.GRANTED: "success",
    DecisionKind.DENIED_INSUFFICIENT_RESOURCES: "warning",
    DecisionKind.DENIED_EXCEEDS_MAX_CLAIM: "error",
    DecisionKind.DENIED_UNSAFE: "error",
}


class SimulatorLogger:
    """
    Logger for request decisions and safety checks.

    Format: "Step X: P1 requests [1, 0, 2] - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
        """
        self.verbose = verbose
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, success, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        print(formatted)

        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "success":
            return f"[OK] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_step(self, step: int, message: str, level: str = "info") -> None:
        """Log a message tagged with its request step."""
        self.log(f"Step {step}: {message}", level)

    def log_request(self, step: int, decision: Decision) -> None:
        """
        Log a request decision.

        Args:
            step: Request number in this session
            decision: Decision returned by the arbiter
        """
        status = "GRANTED" if decision.granted else "DENIED"
        message = (
            f"P{decision.process} requests {list(decision.request)} - "
            f"{status} ({decision.reason})"
        )
        self.log_step(step, message, DECISION_LEVELS[decision.kind])

    def log_safety(self, result: SafetyResult, label: str = "Initial state") -> None:
        """
        Log the outcome of a safety check.

        Args:
            result: Result of the safety check
            label: What was checked, e.g. "Initial state"
        """
        if result.safe:
            self.log(f"{label} is SAFE.", "success")
            self.log(f"Safe Sequence: {result.format_sequence()}", "success")
        else:
            self.log(f"{label} is UNSAFE.", "error")

    def log_system_state(self, state_str: str) -> None:
        """Log a system state rendering (verbose only)."""
        if self.verbose:
            self.log(state_str)

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
