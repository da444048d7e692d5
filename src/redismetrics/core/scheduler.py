"""Fixed-interval scheduling of report cycles on top of SimPy."""

import logging
import threading
from typing import Any, Callable, Generator, Optional

import simpy
import simpy.rt

logger = logging.getLogger(__name__)

# Longest uninterrupted sleep in realtime mode, so stop() is noticed promptly
DEFAULT_POLL_INTERVAL_S = 0.25


class ReportScheduler:
    """Runs report cycles at a fixed interval, one at a time.

    In realtime mode the underlying ``simpy.rt.RealtimeEnvironment`` is driven
    from a single background thread, so cycles can never overlap. With
    ``realtime=False`` a plain ``simpy.Environment`` is used and time only
    advances inside ``run()``, which makes schedules deterministic in tests.
    """

    def __init__(
        self,
        realtime: bool = True,
        factor: float = 1.0,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        env: Optional[simpy.Environment] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            realtime: Follow the wall clock instead of simulated time
            factor: Wall-clock seconds per simulated second in realtime mode
            poll_interval_s: Longest single sleep in realtime mode
            env: Existing SimPy environment to schedule on
        """
        if env is not None:
            self.env = env
        elif realtime:
            self.env = simpy.rt.RealtimeEnvironment(factor=factor, strict=False)
        else:
            self.env = simpy.Environment()

        self.realtime = isinstance(self.env, simpy.rt.RealtimeEnvironment)
        self.poll_interval_s = poll_interval_s if self.realtime else float("inf")
        self.active_processes: list = []
        self.cycles_run = 0
        self._stop_requested = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._reporting_process: Optional[simpy.Process] = None

        logger.info(f"ReportScheduler initialized (realtime={self.realtime})")

    def schedule_process(self, process_generator_func: Callable, *args, **kwargs) -> simpy.Process:
        """Schedule a SimPy process (a generator function).

        Args:
            process_generator_func: A generator function that yields SimPy events
            *args: Positional arguments for the generator function
            **kwargs: Keyword arguments for the generator function

        Returns:
            The SimPy Process object
        """
        process = self.env.process(process_generator_func(*args, **kwargs))
        self.active_processes.append(process)
        logger.debug(f"Scheduled process: {process_generator_func.__name__}")
        return process

    def schedule_reporting(
        self,
        report_fn: Callable[[], Any],
        period_s: float,
        initial_delay_s: Optional[float] = None,
        max_cycles: Optional[int] = None,
    ) -> simpy.Process:
        """Call ``report_fn`` every ``period_s`` seconds.

        Args:
            report_fn: One report cycle
            period_s: Seconds between cycles
            initial_delay_s: Seconds before the first cycle (defaults to period_s)
            max_cycles: Stop after this many cycles, None to run until stopped

        Returns:
            The SimPy Process running the schedule
        """
        if period_s <= 0:
            raise ValueError(f"period_s must be positive, got {period_s}")
        if self._reporting_process is not None:
            raise RuntimeError("Reporting is already scheduled on this scheduler")

        delay = period_s if initial_delay_s is None else initial_delay_s
        self._reporting_process = self.schedule_process(
            self._reporting_loop, report_fn, period_s, delay, max_cycles
        )
        logger.info(f"Scheduled reporting every {period_s}s (first in {delay}s)")
        return self._reporting_process

    def _reporting_loop(
        self,
        report_fn: Callable[[], Any],
        period_s: float,
        initial_delay_s: float,
        max_cycles: Optional[int],
    ) -> Generator:
        yield from self._wait(initial_delay_s)
        while not self._stop_requested.is_set():
            try:
                report_fn()
            except Exception:
                logger.exception(f"Report cycle failed at time {self.env.now}")
            self.cycles_run += 1

            if max_cycles is not None and self.cycles_run >= max_cycles:
                return
            yield from self._wait(period_s)

    def _wait(self, duration_s: float) -> Generator:
        target = self.env.now + duration_s
        while not self._stop_requested.is_set():
            remaining = target - self.env.now
            if remaining <= 1e-9:
                return
            yield self.env.timeout(min(remaining, self.poll_interval_s))

    def run(self, until: Optional[Any] = None) -> None:
        """Run scheduled processes.

        Args:
            until: Time or event to run until; defaults to the end of the
                reporting process, or until no events remain
        """
        if until is None:
            until = self._reporting_process

        logger.info(f"Starting scheduler (until: {until})")

        try:
            self.env.run(until=until)
        except Exception as e:
            logger.error(f"Error in scheduler at time {self.env.now}: {e}")
            raise
        finally:
            logger.info(f"Scheduler stopped at time {self.env.now} after {self.cycles_run} cycles")

    def start_background(self, name: str = "redis-reporter") -> threading.Thread:
        """Run the schedule in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Scheduler is already running")
        self._thread = threading.Thread(target=self.run, name=name, daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout_s: Optional[float] = None) -> bool:
        """Ask the reporting loop to finish and wait for the thread.

        Returns:
            True if no background thread is left running
        """
        self._stop_requested.set()
        if self._thread is None:
            return True

        self._thread.join(timeout_s)
        stopped = not self._thread.is_alive()
        if not stopped:
            logger.warning(f"Scheduler thread still running after {timeout_s}s")
        return stopped

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def now(self) -> float:
        """Current scheduler time in seconds."""
        return self.env.now
