"""
Scope capture session.

Lifecycle:
    IDLE --start()--> RUNNING --stop() / watchdog--> IDLE

start() validates the manifest against the hardware, configures capture
depth and start/stop cycles, then arms a watchdog timer that calls stop()
after `timeout_seconds`.

stop() halts every tap, drains all samples, merges them in time order and
writes the VCD. The whole check-and-drain body runs under the session lock,
so concurrent manual and watchdog calls drain at most once; later calls
return None without touching the device.

Each start() arms a new watchdog generation; a timer from an earlier
capture that fires late is ignored.

Without an explicit config the session uses load_config(), so SCOPE_*
environment overrides apply.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config.schema import ScopeConfig, load_config
from ..core.errors import ErrorCode, ManifestError, ConfigMismatchError, ScopeError, SessionStateError
from ..core.report import CaptureReport, TapStats
from ..decode.decoder import TraceDecoder, build_runtime_states
from ..manifest.model import Manifest, load_manifest
from ..protocol.adapter import RegisterTransport, ScopeProtocol
from ..timeline.merger import TimelineMerger
from ..waveform.writer import WaveformWriter

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Capture session state."""
    IDLE = 'idle'
    RUNNING = 'running'


class ScopeSession:
    """
    One capture session against a scope unit.

    Example:
        session = ScopeSession(transport, load_config())
        session.start(start_cycle=1000)
        ... run workload ...
        report = session.stop()
    """

    def __init__(
        self,
        transport: RegisterTransport,
        config: Optional[ScopeConfig] = None,
        manifest: Optional[Manifest] = None,
    ):
        self.config = config if config is not None else load_config()
        self.protocol = ScopeProtocol(transport)

        self._manifest = manifest
        self._manifest_injected = manifest is not None
        self._state = SessionState.IDLE
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._watchdog: Optional[threading.Timer] = None
        self._generation = 0

        self.last_report: Optional[CaptureReport] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def manifest(self) -> Optional[Manifest]:
        return self._manifest

    def __enter__(self) -> 'ScopeSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.running:
            self.stop()
        return False

    # === START ===

    def _load_manifest(self) -> Manifest:
        if self._manifest_injected:
            return self._manifest

        path = self.config.capture.manifest_path
        if not path:
            raise ManifestError(
                ErrorCode.E1001_MANIFEST_NOT_FOUND, "no scope manifest path configured"
            )
        return load_manifest(path)

    def start(self, start_cycle: Optional[int] = None,
              stop_cycle: Optional[int] = None) -> None:
        """
        Validate, configure and arm the scope.

        Raises:
            SessionStateError: If the session is already running
            ScopeError: If the configuration is invalid
            ManifestError: If the manifest cannot be loaded
            ConfigMismatchError: If a tap width differs from the hardware
            DeviceIOError: If a register access fails
        """
        with self._lock:
            if self.running:
                raise SessionStateError(ErrorCode.E4001_SESSION_RUNNING)

            errors = self.config.validate()
            if errors:
                raise ScopeError(ErrorCode.E3001_INVALID_CONFIG, "; ".join(errors))

            manifest = self._load_manifest()

            for tap in manifest:
                dev_width = self.protocol.get_width(tap.id)
                if dev_width != tap.width:
                    raise ConfigMismatchError(
                        ErrorCode.E2003_TAP_WIDTH_MISMATCH,
                        f"invalid tap #{tap.id} width, actual={dev_width}, expected={tap.width}",
                        {'tap': tap.id, 'actual': dev_width, 'expected': tap.width},
                    )

            depth = self.config.capture.capture_depth
            if depth is not None:
                logger.info(f"capture depth: {depth}")
                for tap in manifest:
                    self.protocol.set_depth(tap.id, depth)

            if stop_cycle is not None:
                logger.info(f"stop time: {stop_cycle}")
                for tap in manifest:
                    self.protocol.set_stop(tap.id, stop_cycle)

            if start_cycle is not None:
                logger.info(f"start time: {start_cycle}")
                for tap in manifest:
                    self.protocol.set_start(tap.id, start_cycle)

            self._manifest = manifest
            self._state = SessionState.RUNNING
            self.last_report = None
            self._idle.clear()
            self._start_watchdog()

    def _start_watchdog(self) -> None:
        self._generation += 1
        timeout = self.config.capture.timeout_seconds
        self._watchdog = threading.Timer(timeout, self._on_timeout, args=(self._generation,))
        self._watchdog.name = 'tapscope-watchdog'
        self._watchdog.daemon = True
        self._watchdog.start()

    def _on_timeout(self, generation: int) -> None:
        with self._lock:
            # stale timer from an earlier capture
            if generation != self._generation or not self.running:
                return

            logger.warning("auto-stop timeout!")
            try:
                self._stop_locked()
            except Exception as e:
                logger.exception(f"auto-stop failed: {e}")

    def _cancel_watchdog(self) -> None:
        watchdog, self._watchdog = self._watchdog, None
        if watchdog is not None and watchdog is not threading.current_thread():
            watchdog.cancel()

    # === STOP ===

    def stop(self) -> Optional[CaptureReport]:
        """
        Halt capture and dump the waveform.

        Returns:
            CaptureReport for the drain, or None if the session was idle

        Raises:
            DeviceIOError: If a register access fails mid-drain
            ScopeError: If the output file cannot be written
        """
        with self._lock:
            return self._stop_locked()

    def _stop_locked(self) -> Optional[CaptureReport]:
        if not self.running:
            return None

        self._state = SessionState.IDLE
        self._cancel_watchdog()
        try:
            self.last_report = self._drain()
        finally:
            self._idle.set()
        return self.last_report

    def _drain(self) -> CaptureReport:
        manifest = self._manifest
        protocol = self.protocol

        logger.info("stop recording...")
        for tap in manifest:
            protocol.set_stop(tap.id, 0)

        logger.info("load trace info...")
        taps = build_runtime_states(manifest)
        decoder = TraceDecoder(
            protocol,
            word_width=self.config.device.word_width,
            progress_interval=self.config.waveform.progress_interval,
        )
        for tap in taps:
            decoder.load_tap_info(tap)

        output_path = Path(self.config.waveform.output_path)
        report = CaptureReport(output_path=str(output_path))
        report.taps = [
            TapStats(
                tap_id=tap.id,
                path=tap.path,
                width=tap.width,
                samples=tap.samples,
                first_cycle=tap.cycle_time if tap.samples else None,
            )
            for tap in taps
        ]

        merger = TimelineMerger(taps, max_gap=self.config.waveform.max_gap_cycles)
        interval = self.config.waveform.progress_interval

        try:
            with open(output_path, 'w') as f:
                writer = WaveformWriter(f, timescale=self.config.waveform.timescale)

                logger.info("dump header...")
                writer.write_header(taps)

                logger.info("dump taps...")
                for step in merger.steps(decoder.decode_sample):
                    writer.write_step(step)
                    if interval and merger.samples_merged % interval == 0:
                        writer.flush()
        except OSError as e:
            raise ScopeError(
                ErrorCode.E4002_OUTPUT_WRITE_FAILED, f"{output_path}: {e}"
            ) from e

        report.cycles = merger.cycles
        report.register_ops = protocol.io_count
        logger.info(f"trace dump done! - {merger.cycles} cycles")
        return report

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the session is idle. Returns False on timeout."""
        return self._idle.wait(timeout)
