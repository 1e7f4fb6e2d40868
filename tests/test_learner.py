"""
Tests for the TD(λ) learner: online updates, eligibility traces, terminal rewards and the backward pass.
"""

from unittest import TestCase, main

import numpy as np

from ntuple.learner import TDLearner, TerminalRewards, TraceMode
from ntuple.metrics import LearningMetrics
from ntuple.network import NTupleNetwork
from ntuple.trajectory import GameStep, Trajectory
from tilegame.core.gameboard import GameBoard
from tilegame.core.gamemove import Action


def make_step(state: GameBoard, reward: int, next_state: GameBoard, evaluation: float) -> GameStep:
    return GameStep(state=state, action=Action.slide(3), reward=reward, next_state=next_state, evaluation=evaluation)


class TestOnlineUpdate(TestCase):
    """Test one online step of the learner."""

    def setUp(self):
        """Uniform weights and a lone tile on cell 1, whose identity index in the first quadrant is 16."""
        self.network = NTupleNetwork.full()
        for table in self.network.tables:
            table.fill(0.5)
        self.learner = TDLearner(self.network, alpha=0.1, discount=0.9, decay=0.8)
        self.learner.open_episode()

        self.state = GameBoard([0, 1] + [0] * 14)
        self.next_state = GameBoard([2] + [0] * 15)

    def test_update_sets_trace(self):
        """A touched trace is exactly 1.0 right after the update."""
        self.learner.update(self.state, 1.0)

        self.assertEqual(self.learner.traces[0][16], 1.0)
        self.assertAlmostEqual(float(self.network.tables[0][16]), 0.6, places=6)
        # ##>: The mirrored and transposed images are updated at one eighth of the error.
        self.assertEqual(self.learner.traces[0][0], 1.0)
        self.assertAlmostEqual(float(self.network.tables[0][256]), 0.5 + 0.1 * 0.125, places=6)

    def test_learn_online(self):
        """The previous step moves towards reward plus discounted next value, then the traces decay."""
        previous = make_step(self.state, 4, self.next_state, self.network.value(self.state))
        current = make_step(self.next_state, 0, self.next_state.copy(), self.network.value(self.next_state))
        trajectory = Trajectory()
        trajectory.append(previous)
        trajectory.append(current)

        expected = 4 + 0.9 * self.network.value(self.next_state) - previous.evaluation
        error = self.learner.learn_online(trajectory, self.next_state)

        self.assertAlmostEqual(error, expected, places=5)
        self.assertAlmostEqual(float(self.network.tables[0][16]), 0.5 + 0.1 * expected, places=5)
        self.assertAlmostEqual(float(self.learner.traces[0][16]), 0.8, places=6)

    def test_learn_online_needs_two_steps(self):
        """With a single step, there is no previous step to learn."""
        trajectory = Trajectory()
        trajectory.append(make_step(self.state, 4, self.next_state, 0.0))
        before = self.network.tables[0].copy()

        self.assertIsNone(self.learner.learn_online(trajectory, self.next_state))
        np.testing.assert_array_equal(self.network.tables[0], before)

    def test_open_episode_resets_traces(self):
        """Traces start every episode at zero."""
        self.learner.update(self.state, 1.0)
        self.learner.open_episode()
        for traces in self.learner.traces:
            self.assertFalse(traces.any())

    def test_update_without_episode(self):
        """An update outside an episode is an error."""
        learner = TDLearner(self.network, alpha=0.1)
        with self.assertRaises(RuntimeError):
            learner.update(self.state, 1.0)

    def test_zero_alpha_keeps_weights(self):
        """A learning rate of zero changes nothing."""
        learner = TDLearner(self.network)
        learner.open_episode()
        before = [table.copy() for table in self.network.tables]
        learner.update(self.state, 123.0)
        for table, copy in zip(self.network.tables, before):
            np.testing.assert_array_equal(table, copy)

    def test_accumulating_traces(self):
        """Accumulated traces grow with every visit and scale the update of every cell."""
        for table in self.network.tables:
            table.fill(0.0)
        learner = TDLearner(self.network, alpha=0.1, trace_mode=TraceMode.ACCUMULATE)
        learner.open_episode()

        learner.update(self.state, 1.0)
        learner.update(self.state, 1.0)

        self.assertAlmostEqual(float(learner.traces[0][16]), 2.0)
        self.assertAlmostEqual(float(self.network.tables[0][16]), 0.1 + 0.2, places=6)
        self.assertAlmostEqual(float(self.network.tables[0][0]), 0.0125 + 0.025, places=6)

    def test_metrics_receive_errors(self):
        """Online errors are reported to the metrics."""
        metrics = LearningMetrics(report_every=1000)
        learner = TDLearner(self.network, alpha=0.1, metrics=metrics)
        learner.open_episode()
        trajectory = Trajectory()
        trajectory.append(make_step(self.state, 4, self.next_state, 0.0))
        trajectory.append(make_step(self.next_state, 0, self.next_state, 0.0))

        error = learner.learn_online(trajectory, self.next_state)

        self.assertEqual(metrics.td_update_count, 1)
        self.assertAlmostEqual(metrics.td_error_total, abs(error))


class TestTerminalRewards(TestCase):
    """Test the reward seeding the backward pass."""

    def setUp(self):
        self.learner = TDLearner(NTupleNetwork())

    def test_win(self):
        self.assertEqual(self.learner.final_reward('win', GameBoard([13, 13] + [0] * 14)), -50000.0)

    def test_lose(self):
        self.assertEqual(self.learner.final_reward('lose', GameBoard([13] + [0] * 15)), 10000.0)
        self.assertEqual(self.learner.final_reward('lose', GameBoard([12] + [0] * 15)), 5000.0)
        self.assertEqual(self.learner.final_reward('lose', GameBoard([11] + [0] * 15)), 1000.0)
        self.assertEqual(self.learner.final_reward('lose', GameBoard([13, 13] + [0] * 14)), 1000.0)

    def test_other_tag(self):
        self.assertEqual(self.learner.final_reward('', GameBoard([13] + [0] * 15)), 0.0)

    def test_custom_rewards(self):
        learner = TDLearner(NTupleNetwork(), rewards=TerminalRewards(win=-1.0, completion=2.0))
        self.assertEqual(learner.final_reward('win', GameBoard()), -1.0)
        self.assertEqual(learner.final_reward('lose', GameBoard()), 2.0)


class TestBackwardPass(TestCase):
    """Test the end-of-episode update."""

    def setUp(self):
        self.network = NTupleNetwork.full()
        self.learner = TDLearner(self.network, alpha=0.01, discount=0.9, update_symmetries=[('identity', 1.0)])
        self.learner.open_episode()

    def test_backward_pass(self):
        """The last step gets the terminal error, earlier steps the discounted rolled-back error."""
        first = GameBoard([1] + [0] * 15)
        second = GameBoard([2] + [0] * 15)
        final = GameBoard([3] + [0] * 15)
        trajectory = Trajectory()
        trajectory.append(make_step(first, 4, second, 0.0))
        trajectory.append(make_step(second, 8, final, 0.0))

        final_reward = self.learner.finalize(trajectory, 'lose')

        # ##>: Last step: 1000. First step: (8 + 0.9 * 1000) * 0.9.
        self.assertEqual(final_reward, 1000.0)
        self.assertAlmostEqual(float(self.network.tables[0][2]), 10.0, places=4)
        self.assertAlmostEqual(float(self.network.tables[0][1]), 0.01 * 908.0 * 0.9, places=4)

    def test_backward_pass_accumulating_traces(self):
        """With accumulating traces, each step of the backward pass only moves the weights of its own state."""
        learner = TDLearner(
            self.network,
            alpha=0.01,
            discount=0.9,
            update_symmetries=[('identity', 1.0)],
            trace_mode=TraceMode.ACCUMULATE,
        )
        learner.open_episode()
        first = GameBoard([1] + [0] * 15)
        second = GameBoard([2] + [0] * 15)
        trajectory = Trajectory()
        trajectory.append(make_step(first, 4, second, 0.0))
        trajectory.append(make_step(second, 8, GameBoard([3] + [0] * 15), 0.0))

        learner.finalize(trajectory, 'lose')

        self.assertAlmostEqual(float(self.network.tables[0][2]), 10.0, places=4)
        self.assertAlmostEqual(float(self.network.tables[0][1]), 0.01 * 908.0 * 0.9, places=4)

    def test_empty_trajectory(self):
        """Nothing to learn from an empty episode, and the learner goes idle."""
        self.assertIsNone(self.learner.finalize(Trajectory(), 'lose'))
        with self.assertRaises(RuntimeError):
            self.learner.update(GameBoard(), 1.0)

    def test_win_lowers_values(self):
        """Reaching the win condition pushes the visited states down."""
        state = GameBoard([12, 12, 13] + [0] * 13)
        trajectory = Trajectory()
        trajectory.append(make_step(state, 8192, GameBoard([13, 13] + [0] * 14), 0.0))

        self.learner.finalize(trajectory, 'win')

        self.assertLess(self.network.value(state), 0.0)


if __name__ == '__main__':
    main()
