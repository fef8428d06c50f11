#!/usr/bin/env python3
"""
Unit tests for the drag-to-reply gesture tracker.
"""

import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chat_client.chat.gestures import DragTracker


class TestDragTracker(unittest.TestCase):
    """Test cases for DragTracker."""

    def setUp(self):
        self.tracker = DragTracker(threshold=100)

    def test_drag_past_threshold_triggers(self):
        self.tracker.start(10)
        self.assertTrue(self.tracker.finish(111))

    def test_drag_exactly_threshold_does_not_trigger(self):
        self.tracker.start(10)
        self.assertFalse(self.tracker.finish(110))

    def test_leftward_drag_does_not_trigger(self):
        self.tracker.start(300)
        self.assertFalse(self.tracker.finish(50))

    def test_finish_without_start(self):
        self.assertFalse(self.tracker.finish(500))

    def test_move_updates_offset(self):
        self.tracker.start(20)
        self.tracker.move(70)
        self.assertEqual(self.tracker.offset, 50)

    def test_move_ignored_when_inactive(self):
        self.tracker.move(70)
        self.assertEqual(self.tracker.offset, 0)

    def test_finish_resets_state(self):
        self.tracker.start(0)
        self.tracker.finish(200)
        self.assertFalse(self.tracker.active)
        self.assertFalse(self.tracker.finish(400))


if __name__ == '__main__':
    unittest.main()
