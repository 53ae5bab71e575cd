"""
Logger utility for the Resource Allocation Graph Deadlock Detector.

Provides step-by-step logging with verbosity levels.
"""

from typing import Optional
from datetime import datetime


class SimulatorLogger:
    """
    Logger for simulation events and detection results.

    Format: "Step X: P0 requests R1 - ACCEPTED/REJECTED (reason)"
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
            self.file_handle.write(f"Deadlock Detection Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
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
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_step(self, step: int, message: str, level: str = "info") -> None:
        """Log a simulation step message."""
        self.log(f"Step {step}: {message}", level)

    def log_mutation(self, step: int, action: str, accepted: bool, reason: str) -> None:
        """
        Log the outcome of a graph mutation.

        Args:
            step: Current simulation step
            action: Description of the attempted mutation (e.g. "P0 requests R1")
            accepted: Whether the store applied it
            reason: Result message or error kind
        """
        status = "ACCEPTED" if accepted else "REJECTED"
        level = "info" if accepted else "warning"
        self.log_step(step, f"{action} - {status} ({reason})", level)

    def log_superseded(self, step: int, resource: str, previous: str, new_owner: str) -> None:
        """Log an allocation that replaced the previous holder."""
        self.log_step(
            step,
            f"NOTICE - {resource} taken from {previous} and allocated to {new_owner}",
            "warning"
        )

    def log_deadlock(self, step: int, chain: str, deadlocked: list) -> None:
        """
        Log deadlock detection.

        Args:
            step: Current simulation step
            chain: Rendered cycle, e.g. "P0 -> R0 -> P1 -> R1 -> P0"
            deadlocked: Names of processes on the cycle
        """
        names = ", ".join(deadlocked)
        self.log_step(step, f"DEADLOCK DETECTED - Processes in deadlock: [{names}]")
        self.log(f"  Cycle: {chain}")

    def log_graph(self, step: int, graph_str: str) -> None:
        """
        Log graph snapshot.

        Args:
            step: Current simulation step
            graph_str: Formatted RAG or WFG
        """
        if self.verbose:
            self.log_step(step, f"Graph:\n{graph_str}")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
