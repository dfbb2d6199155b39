"""
Logger utility for the Dining Philosophers Simulator.

Provides batch-by-batch logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime


class SimulatorLogger:
    """
    Logger for simulation events and decisions.

    Format: "t=X: PY picks up CZ - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable debug output (per-event transitions)
            log_file: Optional file path for logging
            quiet: Suppress info output on the console (warnings and errors still shown)
        """
        self.verbose = verbose
        self.quiet = quiet
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
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        # Console output
        if not (self.quiet and level in ("info", "debug")):
            print(formatted)

        # File output
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

    def log_time(self, time: int, message: str, level: str = "info") -> None:
        """Log a message stamped with the logical time."""
        self.log(f"t={time}: {message}", level)

    def log_batch(self, time: int, descriptions: List[str]) -> None:
        """
        Log the contents of a popped batch (debug only).

        Args:
            time: Logical time of the batch
            descriptions: One description per event
        """
        if self.verbose:
            self.log_time(time, f"batch of {len(descriptions)} event(s): {'; '.join(descriptions)}", "debug")

    def log_pickup(
        self,
        time: int,
        philosopher_id: int,
        chopstick_id: int,
        granted: bool,
        reason: str = ""
    ) -> None:
        """
        Log a chopstick request (debug only).

        Args:
            time: Current logical time
            philosopher_id: Requesting philosopher
            chopstick_id: Requested chopstick
            granted: Whether the request was granted
            reason: Reason for the decision
        """
        status = "GRANTED" if granted else "DENIED"
        suffix = f" ({reason})" if reason else ""
        self.log_time(time, f"P{philosopher_id} picks up C{chopstick_id} - {status}{suffix}", "debug")

    def log_conflict(
        self,
        time: int,
        chopstick_id: int,
        winner_id: int,
        loser_ids: List[int]
    ) -> None:
        """
        Log a resolved simultaneous-access conflict.

        Args:
            time: Current logical time
            chopstick_id: Contested chopstick
            winner_id: Philosopher that got the chopstick
            loser_ids: Philosophers rescheduled
        """
        losers = ", ".join(f"P{pid}" for pid in loser_ids)
        self.log_time(
            time,
            f"CONFLICT on C{chopstick_id} - P{winner_id} wins, {losers} retry"
        )

    def log_deadlock(self, time: int, deadlocked_ids: list) -> None:
        """
        Log deadlock detection.

        Args:
            time: Current logical time
            deadlocked_ids: Philosophers in deadlock
        """
        ids_str = ", ".join(f"P{pid}" for pid in deadlocked_ids)
        self.log_time(time, f"DEADLOCK DETECTED - Philosophers in deadlock: [{ids_str}]")

    def log_table_state(self, time: int, state_str: str) -> None:
        """
        Log table state snapshot.

        Args:
            time: Current logical time
            state_str: Formatted table state
        """
        if self.verbose:
            self.log_time(time, f"Table State:\n{state_str}", "debug")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
