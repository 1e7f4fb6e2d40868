# -*- coding: utf-8 -*-
"""
Python implementation of the 2048 board over tile exponents.

Submodules
----------
core : Board, actions, legality, win condition and danger heuristic
envs : Episode record and the agent protocol
"""
