# -*- coding: utf-8 -*-
"""
Game records for the 2048 variant.

This module provides the `Episode` class, which holds the board and the move history of one game between a
slider and a placer, and the `Agent` protocol both of them implement.
"""

from .episode import Agent, Episode, Move

__all__ = ["Agent", "Episode", "Move"]
