# -*- coding: utf-8 -*-
"""
Script for training and evaluating the learning slider.

Example, a first training stage followed by an evaluation without learning::

    ntuple-train --total=10000 --block=1000 --limit=1000 \\
        --slide="init=65536,65536,65536,65536 alpha=0.1 lambda=0.9 penalty=0.7 bonus=1000 save=stage1.w"
    ntuple-train --total=1000 --block=100 --slide="load=stage1.w alpha=0 learning=0"
"""

from __future__ import annotations

import logging
from argparse import ArgumentParser

from tqdm import trange

from ntuple.agents import RandomPlacer, RandomSlider, StrategicSlider
from ntuple.arena import play_episode
from ntuple.config import ConfigError
from ntuple.metrics import LearningMetrics
from ntuple.persistence import WeightFileError
from ntuple.statistics import Statistics

logger = logging.getLogger(__name__)


def train(
    total: int,
    slide_args: str = '',
    place_args: str = '',
    block: int = 0,
    limit: int = 0,
    baseline: bool = False,
    show_progress: bool = True,
    metrics: LearningMetrics | None = None,
) -> Statistics:
    """
    Play ``total`` games, learning as configured, and save the weights at the end.

    Parameters
    ----------
    total : int
        Number of games.
    slide_args : str, optional
        Configuration of the slider.
    place_args : str, optional
        Configuration of the placer.
    block : int, optional
        Games per statistics report, ``total`` by default.
    limit : int, optional
        Games kept for statistics, ``total`` by default.
    baseline : bool, optional
        Play the random slider instead of the learning one.
    show_progress : bool, optional
        Whether to show a progress bar.
    metrics : LearningMetrics, optional
        Counters shared with the learning slider, reset before the first game; a private instance by default.

    Returns
    -------
    Statistics
        Records of the last games.
    """
    statistics = Statistics(total, block, limit)
    metrics = metrics if metrics is not None else LearningMetrics()
    metrics.reset()
    placer = RandomPlacer(place_args)
    slider = RandomSlider(slide_args) if baseline else StrategicSlider(slide_args, metrics=metrics)
    outcomes = {'win': 0, 'lose': 0}

    try:
        with trange(total, disable=not show_progress) as period:
            for num in period:
                tag = play_episode(slider, placer, statistics, name=f'{slider.config.name}:{placer.config.name}')
                outcomes[tag] += 1

                # ##: Log.
                episode = statistics.back()
                period.set_description(f'Game: {num + 1}')
                period.set_postfix(score=episode.score, max=1 << episode.state.max_tile(), wins=outcomes['win'])
                if statistics.count % statistics.block == 0:
                    logger.info('Progress: %s', statistics.progress())
    finally:
        if isinstance(slider, StrategicSlider):
            slider.close()

    logger.info('Finished %d games: %d reached the win condition', total, outcomes['win'])
    return statistics


def main(argv: list[str] | None = None) -> int:
    parser = ArgumentParser(description='Train an N-tuple TD(lambda) slider on the two-8192 variant of 2048.')
    parser.add_argument('--total', type=int, default=1000, help='number of games')
    parser.add_argument('--block', type=int, default=0, help='games per statistics report')
    parser.add_argument('--limit', type=int, default=0, help='games kept for statistics')
    parser.add_argument('--slide', type=str, default='', help='slider configuration, key=value tokens')
    parser.add_argument('--place', type=str, default='', help='placer configuration, key=value tokens')
    parser.add_argument('--baseline', action='store_true', help='play the random slider')
    parser.add_argument('--log-level', type=str, default='INFO')
    parser.add_argument('--no-progress', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        statistics = train(
            total=args.total,
            slide_args=args.slide,
            place_args=args.place,
            block=args.block,
            limit=args.limit,
            baseline=args.baseline,
            show_progress=not args.no_progress,
        )
    except (ConfigError, WeightFileError) as error:
        logger.error('%s', error)
        return 1

    print(statistics.summary())
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
