"""
Tests for the key=value agent configuration.
"""

from unittest import TestCase, main

from ntuple.config import AgentArgs, AgentConfig, ConfigError
from ntuple.learner import DEFAULT_UPDATE_SYMMETRIES, TraceMode


class TestAgentArgs(TestCase):
    """Test the raw token parser."""

    def test_later_tokens_override(self):
        pairs = AgentArgs.parse('alpha=0.1 name=a alpha=0.2')
        self.assertEqual(pairs['alpha'], '0.2')
        self.assertEqual(pairs['name'], 'a')

    def test_bare_token(self):
        """A token without '=' is its own value."""
        self.assertEqual(AgentArgs.parse('verbose')['verbose'], 'verbose')

    def test_booleans(self):
        pairs = AgentArgs.parse('a=1 b=true c=off d=NO e=maybe')
        self.assertTrue(pairs.get_bool('a', False))
        self.assertTrue(pairs.get_bool('b', False))
        self.assertFalse(pairs.get_bool('c', True))
        self.assertFalse(pairs.get_bool('d', True))
        self.assertTrue(pairs.get_bool('missing', True))
        with self.assertRaises(ConfigError):
            pairs.get_bool('e', True)


class TestAgentConfig(TestCase):
    """Test the typed configuration."""

    def test_defaults(self):
        """An empty configuration has the documented defaults."""
        config = AgentConfig.parse('')
        self.assertEqual(config.name, 'unknown')
        self.assertEqual(config.init, ())
        self.assertIsNone(config.load)
        self.assertIsNone(config.save)
        self.assertEqual(config.alpha, 0.0)
        self.assertEqual(config.discount, 0.9)
        self.assertEqual(config.decay, 0.8)
        self.assertTrue(config.learning)
        self.assertEqual(config.penalty, 0.7)
        self.assertEqual(config.bonus, 1000.0)
        self.assertEqual(config.target, 13)
        self.assertIs(config.traces, TraceMode.REPLACE)
        self.assertEqual(config.update, DEFAULT_UPDATE_SYMMETRIES)
        self.assertEqual(config.rewards.win, -50000.0)

    def test_full_configuration(self):
        config = AgentConfig.parse(
            'init=65536,65536,65536,65536 load=in.w save=out.w alpha=0.1 lambda=0.5 decay=0.7 learning=0 '
            'penalty=0.3 bonus=200 seed=7 traces=accumulate update=identity,transpose:0.5 win_reward=-10 foo=bar'
        )
        self.assertEqual(config.init, (65536,) * 4)
        self.assertEqual((config.load, config.save), ('in.w', 'out.w'))
        self.assertEqual(config.alpha, 0.1)
        self.assertEqual(config.discount, 0.5)
        self.assertEqual(config.decay, 0.7)
        self.assertFalse(config.learning)
        self.assertEqual(config.penalty, 0.3)
        self.assertEqual(config.bonus, 200.0)
        self.assertEqual(config.seed, 7)
        self.assertIs(config.traces, TraceMode.ACCUMULATE)
        self.assertEqual(config.update, (('identity', 1.0), ('transpose', 0.5)))
        self.assertEqual(config.rewards.win, -10.0)
        self.assertEqual(config.rewards.near_win, 10000.0)
        self.assertEqual(config.extras, {'foo': 'bar'})

    def test_defaults_are_overridden_by_args(self):
        config = AgentConfig.parse('name=mine', defaults='name=strategic role=slider')
        self.assertEqual(config.name, 'mine')
        self.assertEqual(config.role, 'slider')

    def test_malformed_values(self):
        """Malformed values of known keys name the key in the error."""
        for args in ('alpha=abc', 'lambda=', 'seed=1.5', 'init=1,x', 'init=-4', 'traces=dutch', 'update=shear'):
            with self.subTest(args=args):
                with self.assertRaises(ConfigError) as context:
                    AgentConfig.parse(args)
                self.assertIn(args.split('=')[0], str(context.exception))

    def test_config_error_is_value_error(self):
        with self.assertRaises(ValueError):
            AgentConfig.parse('learning=maybe')


if __name__ == '__main__':
    main()
