"""
Utilities package for the Dining Philosophers Simulator.
Contains the logger, config loader and random sources.
"""
