import math
import unittest

from pitchfall.calibration.state_machine import (
    QUIET_INPUT_HINT,
    CalibrationStateMachine,
    NoCalibration,
)
from pitchfall.note_types import (
    CalibrationIssue,
    CalibrationResult,
    CalibrationState,
    FrequencySample,
)


def pluck(calibration, frequency, start):
    """Hold a note for the full hold duration, then go quiet."""
    for i in range(5):
        calibration.handle_frequency(FrequencySample(frequency, start + i * 0.125))
    calibration.note_quiet_input()


class TestCalibrationStateMachine(unittest.TestCase):
    def setUp(self):
        self.calibration = CalibrationStateMachine()

    def collect(self, frequencies):
        for freq in frequencies:
            self.calibration.handle_stable_frequency(freq)

    def test_initial_state(self):
        progress = self.calibration.progress
        self.assertEqual(self.calibration.state, CalibrationState.COLLECTING_LOW)
        self.assertEqual(progress.fraction, 0.0)
        self.assertEqual(
            progress.hint, "Calibrating: Play the note at fret 1 repeatedly and steadily."
        )
        self.assertFalse(self.calibration.is_complete())
        self.assertEqual(len(self.calibration.get_calibration_data()), 0)

    def test_consistent_low_anchor_is_accepted(self):
        self.collect([100.0, 101.0, 102.0])

        self.assertEqual(self.calibration.state, CalibrationState.COLLECTING_HIGH)
        self.assertEqual(self.calibration.low_samples, [])
        self.assertEqual(self.calibration.progress.fraction, 0.5)
        self.assertEqual(
            self.calibration.progress.hint,
            "Calibrating: Now play the note at fret 12 repeatedly and steadily.",
        )

    def test_inconsistent_low_anchor_is_rejected(self):
        self.collect([100.0, 105.0, 100.0])

        progress = self.calibration.progress
        self.assertEqual(self.calibration.state, CalibrationState.COLLECTING_LOW)
        self.assertEqual(self.calibration.low_samples, [])
        self.assertEqual(progress.issue, CalibrationIssue.INCONSISTENT_SAMPLES)
        self.assertEqual(
            progress.hint, "Low note samples inconsistent. Please play a steady note."
        )

    def test_inconsistent_high_anchor_is_rejected(self):
        self.collect([110.0] * 3 + [220.0, 230.0, 220.0])

        self.assertEqual(self.calibration.state, CalibrationState.COLLECTING_HIGH)
        self.assertEqual(self.calibration.high_samples, [])
        self.assertEqual(
            self.calibration.progress.issue, CalibrationIssue.INCONSISTENT_SAMPLES
        )

    def test_insufficient_span_resets(self):
        self.collect([110.0] * 3 + [200.0] * 3)

        progress = self.calibration.progress
        self.assertEqual(self.calibration.state, CalibrationState.COLLECTING_LOW)
        self.assertFalse(self.calibration.is_complete())
        self.assertEqual(len(self.calibration.get_calibration_data()), 0)
        self.assertEqual(progress.fraction, 0.0)
        self.assertEqual(progress.issue, CalibrationIssue.INSUFFICIENT_FREQUENCY_SPAN)
        self.assertEqual(
            progress.hint,
            "Frequency difference too small. Ensure clear low and high notes.",
        )

    def test_completes_with_table(self):
        self.collect([110.0] * 3 + [220.0] * 3)

        table = self.calibration.get_calibration_data()
        self.assertTrue(self.calibration.is_complete())
        self.assertEqual(self.calibration.progress.fraction, 1.0)
        self.assertEqual(self.calibration.progress.hint, "Calibration Complete!")
        self.assertAlmostEqual(table[1], 110.0)
        self.assertAlmostEqual(table[12], 220.0)
        self.assertEqual(self.calibration.result, CalibrationResult(110.0, 220.0))

    def test_anchor_means_are_used(self):
        self.collect([109.0, 110.0, 111.0, 219.0, 220.0, 221.0])
        self.assertEqual(self.calibration.result, CalibrationResult(110.0, 220.0))

    def test_progress_fraction(self):
        self.collect([110.0])
        self.assertAlmostEqual(self.calibration.progress.fraction, 1 / 6)
        self.assertEqual(
            self.calibration.progress.hint, "Calibrating low note: 1/3 samples collected."
        )

        self.collect([110.0, 110.0, 220.0, 220.0])
        self.assertAlmostEqual(self.calibration.progress.fraction, 0.5 + 1 / 3)
        self.assertEqual(
            self.calibration.progress.hint,
            "Calibrating high note (fret 12): 2/3 samples collected.",
        )

    def test_reset_is_idempotent(self):
        self.collect([110.0, 110.0, 110.0, 220.0])

        self.calibration.reset()
        once = (
            self.calibration.state,
            self.calibration.low_samples,
            self.calibration.high_samples,
            self.calibration.progress,
        )
        self.calibration.reset()
        twice = (
            self.calibration.state,
            self.calibration.low_samples,
            self.calibration.high_samples,
            self.calibration.progress,
        )

        self.assertEqual(once, twice)
        self.assertEqual(once[0], CalibrationState.COLLECTING_LOW)
        self.assertEqual(once[1], [])
        self.assertEqual(once[2], [])

    def test_reset_cancels_pending_hold(self):
        self.calibration.handle_frequency(FrequencySample(110.0, 0.0))
        self.assertTrue(self.calibration.detector.is_armed)

        self.calibration.reset()
        self.calibration.poll(1.0)
        self.assertFalse(self.calibration.detector.is_armed)
        self.assertEqual(self.calibration.low_samples, [])

    def test_completion_callback_fires_once(self):
        calls = []
        self.calibration.start_calibration(lambda: calls.append(True))

        self.collect([110.0] * 3 + [220.0] * 3)
        self.collect([300.0])  # ignored once complete

        self.assertEqual(calls, [True])

    def test_progress_listeners_are_notified(self):
        seen = []
        self.calibration.events.on_progress(seen.append)

        self.collect([110.0, 110.0])

        self.assertEqual([p.fraction for p in seen], [1 / 6, 2 / 6])
        self.assertTrue(all(p.state is CalibrationState.COLLECTING_LOW for p in seen))

    def test_full_run_through_stability_detection(self):
        for i, freq in enumerate([110.0] * 3 + [220.0] * 3):
            pluck(self.calibration, freq, start=i * 2.0)

        self.assertTrue(self.calibration.is_complete())
        self.assertAlmostEqual(self.calibration.get_calibration_data()[12], 220.0)

    def test_poll_delivers_hold_completed_between_samples(self):
        self.calibration.handle_frequency(FrequencySample(110.0, 0.0))
        self.calibration.poll(0.5)
        self.assertEqual(self.calibration.low_samples, [110.0])

    def test_unstable_input_hint(self):
        self.calibration.handle_frequency(FrequencySample(110.0, 0.0))
        self.calibration.handle_frequency(FrequencySample(140.0, 0.125))

        progress = self.calibration.progress
        self.assertEqual(progress.issue, CalibrationIssue.UNSTABLE_INPUT)
        self.assertEqual(progress.hint, "Calibrating fret 1. Keep it steady.")

    def test_quiet_input_hint(self):
        self.calibration.note_quiet_input()
        self.assertEqual(self.calibration.progress.hint, QUIET_INPUT_HINT)

    def test_quiet_input_keeps_inconsistency_hint(self):
        self.collect([100.0, 105.0, 100.0])
        self.calibration.note_quiet_input()
        self.assertEqual(
            self.calibration.progress.issue, CalibrationIssue.INCONSISTENT_SAMPLES
        )

    def test_restore_from_saved_result(self):
        calibration = CalibrationStateMachine(result=CalibrationResult(110.0, 220.0))

        self.assertTrue(calibration.is_complete())
        self.assertAlmostEqual(calibration.get_calibration_data()[12], 220.0)

    def test_invalid_saved_result_is_sticky_error(self):
        calibration = CalibrationStateMachine(
            result=CalibrationResult(math.nan, 220.0)
        )

        progress = calibration.progress
        self.assertEqual(calibration.state, CalibrationState.ERROR)
        self.assertTrue(calibration.error)
        self.assertEqual(len(calibration.get_calibration_data()), 0)
        self.assertEqual(progress.issue, CalibrationIssue.INVALID_CALIBRATION_INPUT)
        self.assertEqual(
            progress.hint, "Calibration failed. Please ensure proper microphone input."
        )

        calibration.handle_stable_frequency(110.0)
        self.assertEqual(calibration.state, CalibrationState.ERROR)

        calibration.reset()
        self.assertEqual(calibration.state, CalibrationState.COLLECTING_LOW)
        self.assertFalse(calibration.error)

    def test_custom_anchor_positions(self):
        calibration = CalibrationStateMachine(low_index=3, high_index=10)
        for freq in [130.0] * 3 + [260.0] * 3:
            calibration.handle_stable_frequency(freq)

        table = calibration.get_calibration_data()
        self.assertEqual(min(table), 2)
        self.assertEqual(max(table), 11)


class TestNoCalibration(unittest.TestCase):
    def test_always_complete(self):
        calibration = NoCalibration()
        calls = []
        calibration.start_calibration(lambda: calls.append(True))

        self.assertEqual(calls, [True])
        self.assertTrue(calibration.is_complete())
        self.assertEqual(len(calibration.get_calibration_data()), 0)
        self.assertEqual(calibration.progress.state, CalibrationState.COMPLETED)
        self.assertEqual(calibration.progress.fraction, 1.0)


if __name__ == "__main__":
    unittest.main()
