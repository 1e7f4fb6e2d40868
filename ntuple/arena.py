"""
Play episodes between a slider and a placer.
"""

from __future__ import annotations

from ntuple.statistics import Statistics
from tilegame.envs.episode import Agent


def play_episode(slider: Agent, placer: Agent, statistics: Statistics, name: str = 'slider:placer') -> str:
    """
    Play one game to its end.

    The placer opens with two tiles, then the slider and the placer alternate. The game stops when the agent to
    move has no action, when its action is illegal, or when the agent that just moved reports the win condition.

    Parameters
    ----------
    slider : Agent
        The player.
    placer : Agent
        The environment.
    statistics : Statistics
        Collector receiving the episode record.
    name : str, optional
        Tag opening the episode.

    Returns
    -------
    str
        ``"win"`` if the win condition ended the game, ``"lose"`` otherwise.
    """
    episode = statistics.open_episode(name)
    slider.open_episode(name)
    placer.open_episode(name)

    tag = 'lose'
    while True:
        agent = episode.take_turns(slider, placer)
        action = agent.take_action(episode.state.copy())
        if not episode.apply_action(action):
            break
        if agent.check_for_win(episode.state.copy()):
            tag = 'win'
            break

    statistics.close_episode(tag)
    slider.close_episode(tag)
    placer.close_episode(tag)
    return tag
