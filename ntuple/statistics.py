"""
Statistics over the last games played: scores, speed, and how often each tile was reached.
"""

from __future__ import annotations

import logging
from collections import deque

from tilegame.core.gamemove import ActionKind
from tilegame.envs.episode import Episode

logger = logging.getLogger(__name__)


class Statistics:
    """
    Keep the last ``limit`` episodes and report on blocks of ``block`` of them.

    Parameters
    ----------
    total : int
        Number of episodes to play.
    block : int, optional
        Episodes per report, ``total`` by default.
    limit : int, optional
        Episodes kept in memory, ``total`` by default.
    """

    def __init__(self, total: int, block: int = 0, limit: int = 0):
        self.total = total
        self.block = block or total
        self.limit = limit or total
        self.count = 0
        self.data: deque[Episode] = deque()

    def __len__(self) -> int:
        return len(self.data)

    @property
    def is_finished(self) -> bool:
        return self.count >= self.total

    def open_episode(self, tag: str = '') -> Episode:
        """Start recording a new episode, dropping the oldest one beyond the limit."""
        if self.count >= self.limit:
            self.data.popleft()
        self.count += 1
        episode = Episode()
        episode.open_episode(tag)
        self.data.append(episode)
        return episode

    def close_episode(self, tag: str = '') -> None:
        self.data[-1].close_episode(tag)
        if self.count % self.block == 0:
            logger.info('\n%s', self.show())

    def back(self) -> Episode:
        return self.data[-1]

    def show(self, block: int = 0, tile_stats: bool = True) -> str:
        """
        Format the report of the last episodes.

        The first line gives the number of episodes played, the average and maximum scores, and the actions per
        second overall and for the slider and the placer. Each following line gives a tile, the share of episodes
        that reached it, and the share that ended with it as the largest tile.

        Parameters
        ----------
        block : int, optional
            Number of episodes to cover, ``self.block`` by default.
        tile_stats : bool, optional
            Whether to add the per-tile lines.

        Returns
        -------
        str
            The report.
        """
        episodes = list(self.data)[-(block or self.block) :]
        num = len(episodes)
        if num == 0:
            return f'{self.count}\tno episodes'

        ending: dict[int, int] = {}
        for episode in episodes:
            top = episode.state.max_tile()
            ending[top] = ending.get(top, 0) + 1

        scores = [episode.score for episode in episodes]
        lines = [
            f'{self.count}\tavg = {sum(scores) // num}, max = {max(scores)}, '
            f'ops = {_ops(episodes, None):.0f} '
            f'({_ops(episodes, ActionKind.SLIDE):.0f}|{_ops(episodes, ActionKind.PLACE):.0f})'
        ]
        if tile_stats:
            reached = num
            for exponent in sorted(ending):
                tile = (1 << exponent) if exponent else 0
                lines.append(f'\t{tile}\t{reached * 100.0 / num:g}%\t({ending[exponent] * 100.0 / num:g}%)')
                reached -= ending[exponent]
        return '\n'.join(lines)

    def summary(self) -> str:
        return self.show(block=len(self.data))

    def progress(self) -> str:
        """One-line progress over the last hundred episodes."""
        recent = list(self.data)[-100:]
        scores = [episode.score for episode in recent] or [0]
        return (
            f'{self.count}/{self.total} ({self.count / self.total * 100.0:.1f}%) '
            f'avg={sum(scores) // len(scores)} max={max(scores)}'
        )


def _ops(episodes: list[Episode], kind: ActionKind | None) -> float:
    steps = sum(episode.step(kind) for episode in episodes)
    duration = sum(episode.time(kind) for episode in episodes)
    return steps * 1000.0 / duration if duration > 0 else 0.0
