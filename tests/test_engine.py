import unittest

from fakes import FixedTableInstrument

from pitchfall.audio.mock_input import MockPitchInput
from pitchfall.calibration.state_machine import QUIET_INPUT_HINT
from pitchfall.engine import NoiseFloorMeter, PitchEngine
from pitchfall.game.scheduler import SchedulerState
from pitchfall.game.song import Song
from pitchfall.instruments.ukulele import Ukulele
from pitchfall.note_types import CalibrationResult

LOUD = 0.5
QUIET = 0.005
THRESHOLD = 0.01


def make_song(*groups):
    return Song.from_dict({"title": "Test", "data": list(groups)})


class TestPitchEngineGameplay(unittest.TestCase):
    def setUp(self):
        self.instrument = FixedTableInstrument({5: 300.0, 6: 330.0})
        self.engine = PitchEngine(self.instrument, voicing_threshold=THRESHOLD)
        self.now = 0.0

    def tick(self):
        self.now += 1 / 60
        return self.engine.tick(self.now)

    def play_until_paused(self, *groups):
        self.assertTrue(self.engine.start_song(make_song(*groups)))
        while not self.engine.scheduler.is_paused:
            self.tick()

    def test_voiced_reading_is_judged_on_tick(self):
        self.play_until_paused(5)

        self.engine.push_pitch(300.0, LOUD, self.now)
        event = self.tick()

        self.assertIsNotNone(event)
        self.assertEqual(self.engine.scheduler.state, SchedulerState.FINISHED)

    def test_quiet_reading_is_not_judged(self):
        self.play_until_paused(5)

        self.engine.push_pitch(300.0, QUIET, self.now)
        self.assertIsNone(self.tick())
        self.assertTrue(self.engine.scheduler.is_paused)

    def test_unvoiced_frequency_is_not_judged(self):
        self.play_until_paused(5)

        self.engine.push_pitch(0.0, LOUD, self.now)
        self.assertIsNone(self.tick())

    def test_only_latest_reading_is_judged(self):
        self.play_until_paused(5)

        self.engine.push_pitch(300.0, LOUD, self.now)
        self.engine.push_pitch(250.0, LOUD, self.now)
        self.assertIsNone(self.tick())

        self.engine.push_pitch(250.0, LOUD, self.now)
        self.engine.push_pitch(300.0, LOUD, self.now)
        self.assertIsNotNone(self.tick())

    def test_non_finite_frequency_is_unvoiced(self):
        self.play_until_paused(5)

        self.engine.push_pitch(300.0, LOUD, self.now)
        self.engine.push_pitch(float("nan"), LOUD, self.now)
        self.assertIsNone(self.engine.latest_reading)
        self.assertIsNone(self.tick())
        self.assertEqual(self.engine.scheduler.state, SchedulerState.PLAYING)

        self.engine.push_pitch(300.0, float("nan"), self.now)
        self.assertIsNone(self.engine.latest_reading)

    def test_quiet_reading_discards_pending_one(self):
        self.play_until_paused(5)

        self.engine.push_pitch(300.0, LOUD, self.now)
        self.engine.push_pitch(300.0, QUIET, self.now)
        self.assertIsNone(self.tick())

    def test_reading_is_judged_once(self):
        self.play_until_paused(5, 6)

        self.engine.push_pitch(300.0, LOUD, self.now)
        self.assertIsNotNone(self.tick())
        self.assertIsNone(self.engine.latest_reading)
        self.assertIsNone(self.tick())

    def test_pitch_input_feeds_engine(self):
        pitch_input = MockPitchInput()
        self.assertTrue(pitch_input.start(self.engine.push_pitch))
        self.play_until_paused(5)

        pitch_input.emit(300.0, LOUD, self.now)
        self.assertIsNotNone(self.tick())

        pitch_input.stop()
        self.assertFalse(pitch_input.is_running())

    def test_stop(self):
        self.play_until_paused(5)
        self.engine.stop()
        self.assertEqual(self.engine.scheduler.state, SchedulerState.IDLE)


class TestPitchEngineCalibration(unittest.TestCase):
    def setUp(self):
        self.instrument = Ukulele()
        self.engine = PitchEngine(self.instrument, voicing_threshold=THRESHOLD)

    def pluck(self, frequency, start):
        for i in range(5):
            self.engine.push_pitch(frequency, LOUD, start + i * 0.125)
        self.engine.push_pitch(frequency, QUIET, start + 0.75)

    def test_readings_go_to_calibration_until_ready(self):
        self.pluck(110.0, 0.0)

        self.assertEqual(self.instrument.calibration.low_samples, [110.0])
        self.assertIsNone(self.engine.latest_reading)

    def test_quiet_input_sets_hint(self):
        self.engine.push_pitch(110.0, QUIET, 0.0)
        self.assertEqual(self.instrument.calibration.progress.hint, QUIET_INPUT_HINT)

    def test_tick_fires_pending_hold(self):
        self.engine.push_pitch(110.0, LOUD, 0.0)
        self.engine.tick(0.5)
        self.assertEqual(self.instrument.calibration.low_samples, [110.0])

    def test_full_calibration_then_play(self):
        for i, freq in enumerate([110.0] * 3 + [220.0] * 3):
            self.pluck(freq, start=i * 2.0)
        self.assertTrue(self.instrument.is_ready())

        self.assertTrue(self.engine.start_song(make_song(1)))
        self.assertTrue(self.engine.scheduler.is_playing)

    def test_song_waits_for_calibration(self):
        self.assertFalse(self.engine.start_song(make_song(1)))
        self.engine.tick(0.0)
        self.assertFalse(self.engine.scheduler.is_playing)

        self.instrument.calibration.restore(CalibrationResult(110.0, 220.0))
        self.engine.tick(0.1)
        self.assertTrue(self.engine.scheduler.is_playing)

    def test_recalibrate(self):
        self.instrument.calibration.restore(CalibrationResult(110.0, 220.0))
        self.engine.start_song(make_song(1))

        self.engine.recalibrate()
        self.assertFalse(self.instrument.is_ready())
        self.assertFalse(self.engine.scheduler.is_playing)


class TestNoiseFloor(unittest.TestCase):
    def test_threshold_after_measurement(self):
        meter = NoiseFloorMeter(measure_seconds=1.5, multiplier=1.5)

        self.assertIsNone(meter.add(0.01, 0.0))
        self.assertIsNone(meter.add(0.03, 1.0))
        threshold = meter.add(0.02, 1.5)

        self.assertAlmostEqual(threshold, 0.03)
        self.assertTrue(meter.is_measured)
        self.assertEqual(meter.add(1.0, 2.0), threshold)

    def test_reset(self):
        meter = NoiseFloorMeter(measure_seconds=0.0)
        meter.add(0.01, 0.0)
        meter.reset()
        self.assertFalse(meter.is_measured)

    def test_engine_ignores_readings_while_measuring(self):
        engine = PitchEngine(Ukulele(), noise_meter=NoiseFloorMeter(measure_seconds=1.0))

        engine.push_pitch(110.0, 0.01, 0.0)
        self.assertIsNone(engine.voicing_threshold)
        engine.push_pitch(110.0, 0.01, 1.0)
        self.assertAlmostEqual(engine.voicing_threshold, 0.015)

        self.assertEqual(engine.calibration.detector.window, [])
        engine.push_pitch(110.0, 0.5, 1.1)
        self.assertEqual(len(engine.calibration.detector.window), 1)

    def test_default_engine_measures_noise(self):
        engine = PitchEngine(Ukulele())
        self.assertIsNotNone(engine.noise_meter)
        self.assertIsNone(engine.voicing_threshold)


if __name__ == "__main__":
    unittest.main()
