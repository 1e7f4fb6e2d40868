"""
Tests for the game record shared by the slider and the placer.

Tests cover turn order, action application and the per-kind counters.
"""

from unittest import TestCase, main

from tilegame.core.gamemove import Action, ActionKind
from tilegame.envs.episode import Episode


class _Named:
    """Minimal stand-in that is only compared by identity."""

    def __init__(self, name):
        self.name = name


class TestEpisode(TestCase):
    """Test the Episode bookkeeping."""

    def setUp(self):
        """Initialize a fresh game before each test."""
        self.episode = Episode()
        self.slider = _Named('slider')
        self.placer = _Named('placer')

    def test_turn_order(self):
        """The placer plays twice, then the slider and the placer alternate."""
        expected = [self.placer, self.placer, self.slider, self.placer, self.slider]
        actions = [Action.place(0, 1), Action.place(5, 1), Action.slide(3), Action.place(15, 2)]

        for turn, action in enumerate(actions):
            self.assertIs(self.episode.take_turns(self.slider, self.placer), expected[turn])
            self.assertTrue(self.episode.apply_action(action))
        self.assertIs(self.episode.take_turns(self.slider, self.placer), expected[-1])

    def test_score_accumulates_rewards(self):
        """Rewards of applied moves add up to the score."""
        self.episode.apply_action(Action.place(0, 1))
        self.episode.apply_action(Action.place(1, 1))
        self.episode.apply_action(Action.slide(3))

        self.assertEqual(self.episode.score, 4)
        self.assertEqual(self.episode.state[0], 2)

    def test_missing_or_illegal_action(self):
        """No action, or an illegal one, is rejected and leaves the record unchanged."""
        self.assertFalse(self.episode.apply_action(None))
        self.assertFalse(self.episode.apply_action(Action.slide(0)))
        self.assertFalse(self.episode.apply_action(Action.place(0, 3)))
        self.assertEqual(self.episode.step(), 0)
        self.assertEqual(self.episode.score, 0)

    def test_step_by_kind(self):
        """Moves are counted overall and per kind."""
        self.episode.apply_action(Action.place(0, 1))
        self.episode.apply_action(Action.place(2, 2))
        self.episode.apply_action(Action.slide(1))

        self.assertEqual(self.episode.step(), 3)
        self.assertEqual(self.episode.step(ActionKind.PLACE), 2)
        self.assertEqual(self.episode.step(ActionKind.SLIDE), 1)
        self.assertGreaterEqual(self.episode.time(ActionKind.SLIDE), 0.0)

    def test_tags_and_time(self):
        """Opening and closing tags are kept, the total time is non-negative."""
        self.episode.open_episode('slider:placer')
        self.episode.close_episode('lose')
        self.assertEqual(self.episode.tags, ('slider:placer', 'lose'))
        self.assertGreaterEqual(self.episode.time(), 0.0)


if __name__ == '__main__':
    main()
