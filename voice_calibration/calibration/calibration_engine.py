# voice_calibration/calibration/calibration_engine.py

"""
Calibration Engine - two-phase, user-guided VAD calibration.

Phase 1 profiles the user's speech against ambient noise, Phase 2 measures
echo leakage while a fixed utterance is played back. Every setting the engine
forces on the way in is restored on every path back to IDLE.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog

from voice_calibration.core.exceptions import CalibrationError, PlaybackError
from voice_calibration.core.ports import (
    INTERRUPTION_ENABLED,
    MIN_SPEECH_START_MS,
    NEGATIVE_THRESHOLD,
    POSITIVE_THRESHOLD,
    IRecognizerControl,
    ISettingsSink,
    ISpeechPlayback,
    ISpeechProbabilitySource
)
from .models import CalibrationConfig, CalibrationState, Phase1Result, Phase2Result
from .functionality import (
    Sampler,
    ScopedOverride,
    analyze_leakage,
    analyze_speech_profile,
    with_timeout
)

logger = structlog.get_logger()

StateChangeCallback = Callable[[CalibrationState, CalibrationState], None]


class CalibrationEngine:
    """
    Calibration state machine.

    IDLE -> PHASE1 -> PHASE1_SUMMARY -> PHASE2 -> PHASE2_SUMMARY -> IDLE,
    cancel_calibration() from every non-idle state.

    The engine is the single owner of three shared settings: listening status,
    probability processing and interruption. Each is held by a ScopedOverride.
    An epoch counter, bumped by start() and cancel_calibration(), invalidates
    asynchronous continuations scheduled in an earlier run.
    """

    def __init__(
            self,
            source: ISpeechProbabilitySource,
            recognizer: IRecognizerControl,
            playback: ISpeechPlayback,
            settings: ISettingsSink,
            config: Optional[CalibrationConfig] = None,
            sampler: Optional[Sampler] = None,
            on_state_change: Optional[StateChangeCallback] = None
    ):
        """
        Args:
            source: Live speech probability source
            recognizer: Recognizer control (listening on/off)
            playback: Speech playback for the Phase 2 utterance
            settings: Sink receiving calibrated parameters
            config: Calibration configuration
            sampler: Optional pre-built sampler (tests inject a fake clock)
            on_state_change: Called with (old, new) on every transition
        """
        self.source = source
        self.recognizer = recognizer
        self.playback = playback
        self.settings = settings
        self.config = config or CalibrationConfig()
        self.config.validate()
        self.sampler = sampler or Sampler(tick_interval_ms=self.config.tick_interval_ms)
        self.on_state_change = on_state_change

        # State
        self._state = CalibrationState.IDLE
        self._epoch = 0
        self._starting = False
        self._playback_task: Optional[asyncio.Task] = None
        self.phase1_result: Optional[Phase1Result] = None
        self.phase2_result: Optional[Phase2Result] = None
        self.last_error: Optional[Exception] = None

        # Overrides (restored in reverse order)
        self._listening = ScopedOverride("listening", self._set_listening)
        self._processing = ScopedOverride("probability_processing", self._set_processing)
        self._interruption = ScopedOverride("interruption_enabled", self._set_interruption)

        logger.info("calibration_engine_initialized", config=self.config.to_dict())

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - abnormal teardown restores everything."""
        await self.close()
        return False

    # ========================================
    # PROPERTIES
    # ========================================

    @property
    def state(self) -> CalibrationState:
        """Aktuální stav kalibrace."""
        return self._state

    @property
    def epoch(self) -> int:
        """Generation counter."""
        return self._epoch

    @property
    def playback_task(self) -> Optional[asyncio.Task]:
        """Task of the Phase 2 playback continuation (None before first Phase 2)."""
        return self._playback_task

    @property
    def is_active(self) -> bool:
        """Běží kalibrace?"""
        return self._state != CalibrationState.IDLE or self._starting

    # ========================================
    # SETTERS FOR OVERRIDES
    # ========================================

    def _set_listening(self, listening: bool) -> Any:
        if listening:
            return self.recognizer.start_listening()
        return self.recognizer.stop_listening()

    def _set_processing(self, processing: bool) -> None:
        if processing:
            self.source.resume_processing()
        else:
            self.source.pause_processing()

    def _set_interruption(self, enabled: bool) -> None:
        self.settings.update_parameter(INTERRUPTION_ENABLED, enabled)

    # ========================================
    # PUBLIC OPERATIONS
    # ========================================

    async def start(self) -> bool:
        """
        Start Phase 1 (or retry it from PHASE1_SUMMARY).

        Ensures the recognizer listens and probability processing runs,
        remembering what it had to force.

        Returns:
            True if Phase 1 started, False if rejected

        Raises:
            CalibrationError: If forcing listening/processing failed
                (everything acquired so far is restored, engine stays IDLE)
        """
        retry = self._state == CalibrationState.PHASE1_SUMMARY
        if self._state != CalibrationState.IDLE and not retry:
            logger.warning("calibration_start_rejected", state=self._state.value)
            return False
        if self._starting:
            logger.warning("calibration_start_rejected", reason="already_starting")
            return False

        self._epoch += 1
        epoch = self._epoch
        self.phase1_result = None
        self.phase2_result = None
        self.last_error = None

        if not retry:
            self._starting = True
            try:
                await self._listening.acquire(self.recognizer.is_listening(), True)
                if self._epoch != epoch:
                    # cancel_calibration() ran while we were waiting for the microphone
                    logger.info("calibration_start_aborted", reason="cancelled")
                    self._restore_overrides()
                    return False
                await self._processing.acquire(self.source.is_processing(), True)
            except Exception as e:
                logger.error("calibration_start_failed", error=str(e), exc_info=True)
                self._restore_overrides()
                raise CalibrationError(f"Failed to prepare calibration: {e}") from e
            finally:
                self._starting = False

        self.sampler.start(self.source)
        self._transition(CalibrationState.PHASE1)

        logger.info(
            "calibration_phase1_started",
            epoch=epoch,
            retry=retry,
            forced_listening=self._listening.forced,
            forced_processing=self._processing.forced
        )
        return True

    def finish_phase1(self) -> Optional[Phase1Result]:
        """
        Stop Phase 1 sampling and analyze the speech profile.

        Returns:
            Phase1Result, or None if Phase 1 is not running
        """
        if self._state != CalibrationState.PHASE1:
            logger.warning("finish_phase1_rejected", state=self._state.value)
            return None

        samples = self.sampler.stop()
        self.phase1_result = analyze_speech_profile(samples, self.config)
        self._transition(CalibrationState.PHASE1_SUMMARY)

        if self.phase1_result.no_speech_detected:
            logger.info("calibration_no_speech_detected", samples=len(samples), retry_possible=True)

        return self.phase1_result

    async def start_phase2(self) -> bool:
        """
        Start Phase 2: disable interruption, sample, and play the calibration utterance.

        Returns immediately after playback was scheduled; the playback
        continuation analyzes the samples and moves to PHASE2_SUMMARY.

        Returns:
            True if Phase 2 started, False on precondition violation
        """
        if self.phase1_result is None or not self._state.is_summary:
            logger.warning(
                "start_phase2_rejected",
                state=self._state.value,
                has_phase1_result=self.phase1_result is not None
            )
            return False

        self.phase2_result = None
        self.last_error = None

        # The utterance must not interrupt itself through its own leakage
        try:
            await self._interruption.acquire(
                self.settings.get_parameter(INTERRUPTION_ENABLED, True),
                False
            )
        except Exception as e:
            logger.error("calibration_phase2_failed", error=str(e))
            raise CalibrationError(f"Failed to disable interruption: {e}") from e

        self.sampler.start(self.source)
        self._transition(CalibrationState.PHASE2)

        epoch = self._epoch
        self._playback_task = asyncio.get_running_loop().create_task(self._run_playback(epoch))

        logger.info(
            "calibration_phase2_started",
            epoch=epoch,
            threshold=self.phase1_result.positive_threshold
        )
        return True

    def apply_results(self) -> bool:
        """
        Push calibrated parameters to the settings sink and return to IDLE.

        Accepted from PHASE1_SUMMARY and PHASE2_SUMMARY. Overrides are
        restored even when the settings sink fails.

        Returns:
            True if results were applied, False if rejected
        """
        if not self._state.is_summary:
            logger.warning("apply_results_rejected", state=self._state.value)
            return False

        phase1 = self.phase1_result
        phase2 = self.phase2_result

        try:
            if phase1 is not None:
                self.settings.update_parameter(POSITIVE_THRESHOLD, phase1.positive_threshold)
                self.settings.update_parameter(NEGATIVE_THRESHOLD, phase1.negative_threshold)

            if phase2 is not None:
                self.settings.update_parameter(MIN_SPEECH_START_MS, phase2.recommended_min_speech_start_ms)
                if phase2.recommend_disable_interruption:
                    self.settings.update_parameter(INTERRUPTION_ENABLED, False)

            logger.info(
                "calibration_applied",
                phase1=phase1.to_dict() if phase1 else None,
                phase2=phase2.to_dict() if phase2 else None
            )
        finally:
            self._restore_overrides()
            self._clear_results()
            self._transition(CalibrationState.IDLE)

        return True

    def cancel_calibration(self) -> bool:
        """
        Abort calibration from any state: stop sampling, cancel playback,
        restore every override and discard results.

        Returns:
            True if there was anything to cancel
        """
        if self._state == CalibrationState.IDLE and not self._starting:
            return False

        self._epoch += 1
        previous = self._state

        if self.sampler.is_active:
            discarded = self.sampler.stop()
            logger.debug("calibration_samples_discarded", samples=len(discarded))

        if self._playback_task is not None and not self._playback_task.done():
            self._safe_call("playback_cancel", self.playback.cancel)

        self._restore_overrides()
        self._clear_results()
        self._transition(CalibrationState.IDLE)

        logger.info(
            "calibration_cancelled",
            previous_state=previous.value,
            was_sampling=previous.is_sampling,
            epoch=self._epoch
        )
        return True

    async def close(self) -> None:
        """
        Teardown: cancel any calibration and wait for the playback task to finish.
        """
        self.cancel_calibration()

        task = self._playback_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ========================================
    # PLAYBACK CONTINUATION
    # ========================================

    async def _run_playback(self, epoch: int) -> None:
        """Play calibration utterance, then analyze Phase 2 (unless stale)."""
        error: Optional[Exception] = None

        try:
            await with_timeout(
                self.playback.speak(self.config.calibration_text, self.config.speech_rate),
                timeout=self.config.playback_timeout_s,
                name="calibration_playback",
                on_timeout=lambda: self._safe_call("playback_cancel", self.playback.cancel)
            )
        except asyncio.CancelledError:
            if self._epoch == epoch:
                # Task cancelled from outside the engine - still honour the restore contract
                self.cancel_calibration()
            raise
        except Exception as e:
            error = e

        if self._epoch != epoch or self._state != CalibrationState.PHASE2:
            logger.debug(
                "stale_playback_continuation_dropped",
                scheduled_epoch=epoch,
                current_epoch=self._epoch,
                state=self._state.value
            )
            return

        samples = self.sampler.stop()

        if error is not None:
            self._handle_playback_failure(error, len(samples))
            return

        self.phase2_result = analyze_leakage(
            samples,
            self.phase1_result.positive_threshold,
            self.config
        )
        self._restore(self._interruption)
        self._transition(CalibrationState.PHASE2_SUMMARY)

    def _handle_playback_failure(self, error: Exception, sample_count: int) -> None:
        """Recover from failed playback back to PHASE1_SUMMARY."""
        if isinstance(error, PlaybackError):
            self.last_error = error
        else:
            self.last_error = PlaybackError(f"Calibration playback failed: {error}")
            self.last_error.__cause__ = error

        logger.error(
            "calibration_playback_failed",
            error=str(error),
            error_type=type(error).__name__,
            samples_discarded=sample_count
        )

        self._restore(self._interruption)
        self._transition(CalibrationState.PHASE1_SUMMARY)

    # ========================================
    # HELPERS
    # ========================================

    def _transition(self, new_state: CalibrationState) -> None:
        """Změň stav a notifikuj listenera."""
        old_state = self._state
        self._state = new_state

        if old_state == new_state:
            return

        logger.info(
            "calibration_state_changed",
            old=old_state.value,
            new=new_state.value,
            epoch=self._epoch
        )

        if self.on_state_change:
            try:
                self.on_state_change(old_state, new_state)
            except Exception as e:
                logger.warning("state_change_callback_error", error=str(e))

    def _restore(self, override: ScopedOverride) -> None:
        """Restore single override; a failing collaborator must not block the others."""
        try:
            override.restore()
        except Exception as e:
            logger.error("override_restore_failed", name=override.name, error=str(e))

    def _restore_overrides(self) -> None:
        """Vrať všechna přepsaná nastavení (reverse acquire order)."""
        self._restore(self._interruption)
        self._restore(self._processing)
        self._restore(self._listening)

    def _clear_results(self) -> None:
        self.phase1_result = None
        self.phase2_result = None

    def _safe_call(self, name: str, func: Callable[[], Any]) -> None:
        try:
            func()
        except Exception as e:
            logger.warning("collaborator_call_failed", call=name, error=str(e))

    def get_statistics(self) -> dict:
        """Vrať statistiky kalibrace."""
        return {
            'state': self._state.value,
            'sampling': self._state.is_sampling,
            'epoch': self._epoch,
            'sampler': self.sampler.get_statistics(),
            'overrides': {
                override.name: {'active': override.active, 'forced': override.forced}
                for override in (self._listening, self._processing, self._interruption)
            },
            'phase1': self.phase1_result.to_dict() if self.phase1_result else None,
            'phase2': self.phase2_result.to_dict() if self.phase2_result else None,
            'last_error': str(self.last_error) if self.last_error else None
        }
