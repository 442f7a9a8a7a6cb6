"""Pathfinder combat rules: normalization, modifier stacking, derived stats, attacks and skills."""
