"""
Combat stat-resolution engine for Pathfinder-style combat trackers.

Given a creature's raw stat block and its active effects, temporary
adjustments, toggled feats and equipped gear, computes effective AC, saves,
hit points, speed, attacks and skills.
"""

__version__ = "0.1.0"
