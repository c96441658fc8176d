"""
Phase Logging for the Page Edit engine
======================================

Colored, structured console logging with per-phase timing for the edit
pipeline (classify -> locate -> compose -> generate -> merge -> validate ->
record).
IMPORTANT: No emojis in console output (Windows encoding issues).
"""

import logging
import time
from typing import Optional, Dict, Any, List
from contextlib import contextmanager
from datetime import datetime
from colorama import Fore, Style, init

# Initialize colorama for Windows
init(autoreset=True)

# Phase definitions
class Phase:
    """Phase constants for the edit pipeline"""
    CLASSIFY = "CLASSIFY"
    LOCATE = "LOCATE"
    COMPOSE = "COMPOSE"
    GENERATION = "GENERATION"
    MERGE = "MERGE"
    VALIDATE = "VALIDATE"
    RECORD = "RECORD"

# Phase colors
PHASE_COLORS = {
    Phase.CLASSIFY: Fore.CYAN,
    Phase.LOCATE: Fore.BLUE,
    Phase.COMPOSE: Fore.MAGENTA,
    Phase.GENERATION: Fore.GREEN,
    Phase.MERGE: Fore.YELLOW,
    Phase.VALIDATE: Fore.RED,
    Phase.RECORD: Fore.GREEN + Style.BRIGHT,
}

# Phase icons (text-based, no emojis for Windows)
PHASE_ICONS = {
    Phase.CLASSIFY: "[CLS]",
    Phase.LOCATE: "[LOC]",
    Phase.COMPOSE: "[CMP]",
    Phase.GENERATION: "[GEN]",
    Phase.MERGE: "[MRG]",
    Phase.VALIDATE: "[VAL]",
    Phase.RECORD: "[REC]",
}

PIPELINE_ORDER = (
    Phase.CLASSIFY,
    Phase.LOCATE,
    Phase.COMPOSE,
    Phase.GENERATION,
    Phase.MERGE,
    Phase.VALIDATE,
    Phase.RECORD,
)


class TimingTracker:
    """Track timing for phases and operations"""

    def __init__(self):
        self._timings: Dict[str, float] = {}
        self._start_times: Dict[str, float] = {}

    def start(self, key: str):
        self._start_times[key] = time.perf_counter()

    def end(self, key: str) -> float:
        """End timing and return elapsed seconds"""
        if key not in self._start_times:
            return 0.0
        elapsed = time.perf_counter() - self._start_times.pop(key)
        self._timings[key] = self._timings.get(key, 0.0) + elapsed
        return elapsed

    def get_all(self) -> Dict[str, float]:
        return self._timings.copy()


class PhaseLogger:
    """
    Logger with phase tracking and visual formatting

    Phase banners are printed only when ``verbose`` is set; full prompts and
    responses only when ``extra_verbose`` is set. Warnings and errors are
    always logged.

    Usage:
        phase_logger = PhaseLogger(session_id="edit-42", verbose=True)

        with phase_logger.phase(Phase.MERGE, sub_label="section 2/3"):
            phase_logger.info("Merging regenerated section...")
    """

    def __init__(
        self,
        session_id: str,
        verbose: bool = False,
        extra_verbose: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.session_id = session_id
        self.verbose = verbose or extra_verbose
        self.extra_verbose = extra_verbose
        self.logger = logger or logging.getLogger(__name__)
        self.timing_tracker = TimingTracker()
        self._current_phase: Optional[str] = None
        self._phase_stack: List[Optional[str]] = []

    @contextmanager
    def phase(self, phase_name: str, sub_label: Optional[str] = None):
        """
        Context manager for phase tracking with automatic timing

        Example:
            with phase_logger.phase(Phase.GENERATION, sub_label="3 sections"):
                ...
        """
        self._enter_phase(phase_name, sub_label)
        try:
            yield self
        finally:
            self._exit_phase(phase_name)

    def _enter_phase(self, phase_name: str, sub_label: Optional[str] = None):
        self._phase_stack.append(self._current_phase)
        self._current_phase = phase_name
        self.timing_tracker.start(phase_name)
        self._print_phase_header(phase_name, sub_label)

    def _exit_phase(self, phase_name: str):
        elapsed = self.timing_tracker.end(phase_name)
        self._print_phase_footer(phase_name, elapsed)
        self._current_phase = self._phase_stack.pop() if self._phase_stack else None

    def _print_phase_header(self, phase_name: str, sub_label: Optional[str] = None):
        if not self.verbose:
            return
        color = PHASE_COLORS.get(phase_name, Fore.WHITE)
        icon = PHASE_ICONS.get(phase_name, "[???]")

        separator = "=" * 60
        timestamp = datetime.now().strftime("%H:%M:%S")
        sub_str = f" - {sub_label}" if sub_label else ""

        self.logger.info("")
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")
        self.logger.info(
            f"{color}{icon} {phase_name} [{self.session_id}]{sub_str} [{timestamp}]{Style.RESET_ALL}"
        )
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")

    def _print_phase_footer(self, phase_name: str, elapsed: float):
        if not self.verbose:
            return
        color = PHASE_COLORS.get(phase_name, Fore.WHITE)
        icon = PHASE_ICONS.get(phase_name, "[???]")
        elapsed_str = f"{elapsed:.3f}s" if elapsed > 0 else "N/A"

        self.logger.info(
            f"{color}{icon} {phase_name} COMPLETED (Elapsed: {elapsed_str}){Style.RESET_ALL}"
        )

    def info(self, message: str):
        """Log info message with current phase context"""
        if self._current_phase:
            color = PHASE_COLORS.get(self._current_phase, Fore.WHITE)
            icon = PHASE_ICONS.get(self._current_phase, "[???]")
            self.logger.info(f"{color}{icon}{Style.RESET_ALL} {message}")
        else:
            self.logger.info(message)

    def error(self, message: str):
        self.logger.error(f"{Fore.RED}{Style.BRIGHT}[ERROR] {message}{Style.RESET_ALL}")

    def _print_block(self, title: str, body: str, metadata: Optional[Dict[str, Any]] = None):
        color = PHASE_COLORS.get(self._current_phase, Fore.WHITE)
        separator = "~" * 60

        self.logger.info("")
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")
        self.logger.info(f"{color}[EXTRA_VERBOSE] {title}{Style.RESET_ALL}")
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")

        if metadata:
            self.logger.info(f"{Fore.YELLOW}[PARAMETERS]{Style.RESET_ALL}")
            for key, value in metadata.items():
                self.logger.info(f"  {key}: {value}")
            self.logger.info("")

        self.logger.info(body)
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")
        self.logger.info("")

    def log_prompt(self, model: str, prompt: str, **kwargs):
        """
        Log full prompt (only if extra_verbose)

        Args:
            model: Model name
            prompt: Prompt text sent to the generation service
            **kwargs: Additional parameters (temperature, max_tokens, shape...)
        """
        if not self.extra_verbose:
            return
        self._print_block(f"PROMPT TO {model}", prompt, kwargs)

    def log_response(self, model: str, response: str, metadata: Optional[Dict[str, Any]] = None):
        """Log full response (only if extra_verbose)"""
        if not self.extra_verbose:
            return
        self._print_block(f"RESPONSE FROM {model}", response, metadata)

    def log_decision(self, decision: str, reason: Optional[str] = None):
        """Log ACCEPTED or REJECTED for the edit, with the reason when given"""
        accepted = decision.upper() == "ACCEPTED"
        color = (Fore.GREEN if accepted else Fore.RED) + Style.BRIGHT
        tag = "[OK]" if accepted else "[REJECT]"

        self.logger.info(f"{color}{tag} EDIT {decision.upper()}{Style.RESET_ALL}")
        if reason:
            self.logger.info(f"  Reason: {reason}")

    def log_timing_summary(self):
        """Log timing summary for all phases (only if extra_verbose)"""
        if not self.extra_verbose:
            return

        timings = self.timing_tracker.get_all()
        if not timings:
            return

        separator = "=" * 60
        self.logger.info("")
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}{separator}{Style.RESET_ALL}")
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}EDIT TIMING [{self.session_id}]{Style.RESET_ALL}")
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}{separator}{Style.RESET_ALL}")

        # Pipeline order; phases that never ran (short-circuited edits) are skipped
        for phase_name in PIPELINE_ORDER:
            if phase_name not in timings:
                continue
            color = PHASE_COLORS[phase_name]
            self.logger.info(f"{color}{PHASE_ICONS[phase_name]} {phase_name:12s} {timings[phase_name]:8.3f}s{Style.RESET_ALL}")

        total_time = sum(timings.values())

        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}{separator}{Style.RESET_ALL}")
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}TOTAL TIME: {total_time:.3f}s{Style.RESET_ALL}")
        self.logger.info("")


# Convenience functions
def create_phase_logger(
    session_id: str,
    verbose: bool = False,
    extra_verbose: bool = False
) -> PhaseLogger:
    """Create a new PhaseLogger instance"""
    return PhaseLogger(
        session_id=session_id,
        verbose=verbose,
        extra_verbose=extra_verbose
    )


def setup_logging(level: str = "INFO", logger_name: str = "page_edit") -> int:
    """
    Apply a log level to the engine's loggers.

    Installs a stream handler on the root logger if none is configured yet,
    then sets ``level`` on ``logger_name``. Unknown level names fall back
    to INFO.

    Returns:
        The numeric level applied
    """
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()],
    )
    logging.getLogger(logger_name).setLevel(numeric_level)
    return numeric_level
