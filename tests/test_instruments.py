import tempfile
import unittest

from pitchfall.calibration.state_machine import CalibrationStateMachine, NoCalibration
from pitchfall.core.config import ConfigManager
from pitchfall.core.factory import ComponentFactory
from pitchfall.engine import PitchEngine
from pitchfall.instruments import Piano, Saxophone, Ukulele
from pitchfall.note_types import CalibrationResult


def calibrated_ukulele(low=110.0, high=220.0):
    return Ukulele(calibration=CalibrationStateMachine(result=CalibrationResult(low, high)))


class TestUkulele(unittest.TestCase):
    def test_not_ready_until_calibrated(self):
        ukulele = Ukulele()
        self.assertFalse(ukulele.is_ready())
        self.assertTrue(ukulele.requires_calibration)
        self.assertIsNone(ukulele.expected_frequency(5))

    def test_frets_follow_calibration(self):
        ukulele = calibrated_ukulele()
        self.assertTrue(ukulele.is_ready())
        self.assertEqual(ukulele.positions(), list(range(0, 14)))
        self.assertAlmostEqual(ukulele.expected_frequency(12), 220.0)

    def test_tolerance_floor(self):
        # Frets at 110 Hz are only ~7 Hz apart
        ukulele = calibrated_ukulele()
        self.assertEqual(ukulele.tolerance_for(1), 15.0)

    def test_tolerance_from_fret_gap(self):
        ukulele = calibrated_ukulele(400.0, 800.0)
        table = ukulele.calibration.get_calibration_data()
        expected = (table[12] - table[11]) * 0.4
        self.assertGreater(expected, 15.0)
        self.assertAlmostEqual(ukulele.tolerance_for(11), expected)

    def test_tolerance_without_neighbour(self):
        ukulele = calibrated_ukulele()
        self.assertEqual(ukulele.tolerance_for(13), 20.0)
        self.assertEqual(Ukulele().tolerance_for(5), 20.0)

    def test_custom_tolerance_floor(self):
        ukulele = Ukulele(tolerance_floor=25.0)
        self.assertEqual(ukulele.tolerance_for(5), 25.0)

    def test_fret_positions(self):
        ukulele = Ukulele(width=1000.0)
        self.assertAlmostEqual(ukulele.position_of(0), 50.0)
        self.assertAlmostEqual(ukulele.position_of(13), 900.0)

        xs = [ukulele.position_of(fret) for fret in range(0, 14)]
        self.assertTrue(all(a < b for a, b in zip(xs, xs[1:])))
        # Frets get closer together up the neck
        self.assertGreater(xs[2] - xs[1], xs[13] - xs[12])

    def test_deck_position(self):
        self.assertEqual(Ukulele(deck_position=300.0).deck_reference_position(), 300.0)


class TestPiano(unittest.TestCase):
    def setUp(self):
        self.piano = Piano()

    def test_ready_without_calibration(self):
        self.assertTrue(self.piano.is_ready())
        self.assertFalse(self.piano.requires_calibration)
        self.assertIsInstance(self.piano.calibration, NoCalibration)

    def test_key_frequencies(self):
        self.assertEqual(len(self.piano.positions()), 44)
        self.assertAlmostEqual(self.piano.expected_frequency(25), 261.63, places=2)
        self.assertAlmostEqual(self.piano.expected_frequency(34), 440.0)
        self.assertAlmostEqual(self.piano.expected_frequency(37), 523.25, places=2)
        self.assertIsNone(self.piano.expected_frequency(0))
        self.assertIsNone(self.piano.expected_frequency(45))

    def test_tolerance(self):
        self.assertEqual(self.piano.tolerance_for(25), 20.0)

    def test_key_positions(self):
        key_width = 1024.0 / 44
        self.assertAlmostEqual(self.piano.position_of(1), key_width / 2)
        self.assertEqual(self.piano.position_of(99), 0.0)


class TestSaxophone(unittest.TestCase):
    def setUp(self):
        self.sax = Saxophone()

    def test_written_octave_sounds_a_sixth_lower(self):
        self.assertEqual(self.sax.positions(), list(range(1, 9)))
        self.assertAlmostEqual(self.sax.expected_frequency(1), 155.56, places=2)
        self.assertAlmostEqual(self.sax.expected_frequency(6), 261.63, places=2)
        self.assertAlmostEqual(self.sax.expected_frequency(8), 311.13, places=2)
        self.assertIsNone(self.sax.expected_frequency(9))

    def test_tolerance_and_layout(self):
        self.assertEqual(self.sax.tolerance_for(1), 30.0)
        spacing = 1024.0 / 9
        self.assertAlmostEqual(self.sax.position_of(1), spacing)
        self.assertAlmostEqual(self.sax.position_of(8), spacing * 8)


class TestComponentFactory(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config = ConfigManager(self.tmp.name)
        self.factory = ComponentFactory(self.config)

    def tearDown(self):
        self.tmp.cleanup()

    def test_create_by_name(self):
        self.assertIsInstance(self.factory.create_instrument("ukulele"), Ukulele)
        self.assertIsInstance(self.factory.create_instrument("Piano"), Piano)
        self.assertIsInstance(self.factory.create_instrument("saxophone"), Saxophone)
        self.assertEqual(self.factory.instrument_names, ["piano", "saxophone", "ukulele"])

    def test_unknown_instrument(self):
        with self.assertRaises(ValueError):
            self.factory.create_instrument("banjo")

    def test_ukulele_restores_saved_calibration(self):
        ukulele = self.factory.create_instrument(
            "ukulele", calibration_result=CalibrationResult(110.0, 220.0)
        )
        self.assertTrue(ukulele.is_ready())

    def test_configuration_is_applied(self):
        self.config.update_config("instrument", {"deck_position": 400.0})
        self.config.update_config("calibration", {"high_index": 10})
        self.config.update_config("gameplay", {"fall_speed": 4.0, "hit_threshold": 30.0})

        ukulele = self.factory.create_instrument("ukulele")
        engine = self.factory.create_engine(ukulele)

        self.assertEqual(ukulele.deck_reference_position(), 400.0)
        self.assertEqual(ukulele.calibration.high_index, 10)
        self.assertEqual(engine.scheduler.fall_speed, 4.0)
        self.assertEqual(engine.judge.hit_threshold, 30.0)

    def test_create_engine(self):
        piano = self.factory.create_instrument("piano")

        engine = self.factory.create_engine(piano)
        self.assertIsInstance(engine, PitchEngine)
        self.assertEqual(engine.noise_meter.measure_seconds, 1.5)
        self.assertEqual(engine.noise_meter.multiplier, 1.5)

        engine = self.factory.create_engine(piano, voicing_threshold=0.02)
        self.assertEqual(engine.voicing_threshold, 0.02)


if __name__ == "__main__":
    unittest.main()
