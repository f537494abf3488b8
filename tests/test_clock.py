import unittest

from aimtrainer.engine.clock import ENDED, IDLE, PAUSED, RUNNING, SessionClock


class SessionClockTests(unittest.TestCase):
    def test_transitions(self) -> None:
        c = SessionClock(10)
        self.assertEqual(c.state, IDLE)
        self.assertFalse(c.pause(0))
        self.assertFalse(c.resume(0))
        self.assertTrue(c.start(1000))
        self.assertEqual(c.state, RUNNING)
        self.assertFalse(c.start(1000))
        self.assertTrue(c.pause(2000))
        self.assertEqual(c.state, PAUSED)
        self.assertFalse(c.pause(2100))
        self.assertTrue(c.resume(5000))
        self.assertEqual(c.state, RUNNING)

    def test_offset_excludes_pauses(self) -> None:
        c = SessionClock(60)
        c.start(1000)
        c.pause(2000)
        # while paused the offset is frozen
        self.assertEqual(c.offset(4000), 1000.0)
        c.resume(5000)
        self.assertEqual(c.paused_accum_ms, 3000.0)
        self.assertEqual(c.offset(6000), 2000.0)

    def test_tick_ends_exactly_once(self) -> None:
        c = SessionClock(1)
        c.start(1000)
        self.assertFalse(c.tick(1999))
        self.assertAlmostEqual(c.remaining_ms, 1.0)
        self.assertTrue(c.tick(2000))
        self.assertEqual(c.state, ENDED)
        self.assertEqual(c.elapsed_ms, 1000.0)
        self.assertFalse(c.tick(3000))

    def test_pause_extends_session(self) -> None:
        c = SessionClock(1)
        c.start(0)
        c.pause(500)
        c.resume(1500)
        self.assertFalse(c.tick(1900))
        self.assertTrue(c.tick(2000))

    def test_exit_returns_to_idle(self) -> None:
        c = SessionClock(5)
        c.start(0)
        c.pause(100)
        c.exit()
        self.assertEqual(c.state, IDLE)
        self.assertIsNone(c.started_at)
        self.assertEqual(c.paused_accum_ms, 0.0)
        self.assertTrue(c.start(200))

    def test_toggle_pause(self) -> None:
        c = SessionClock(5)
        c.start(0)
        self.assertTrue(c.toggle_pause(10))
        self.assertEqual(c.state, PAUSED)
        self.assertTrue(c.toggle_pause(20))
        self.assertEqual(c.state, RUNNING)


if __name__ == "__main__":
    unittest.main()
