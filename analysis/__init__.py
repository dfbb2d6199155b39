"""
Analysis package for the Dining Philosophers Simulator.
Contains the run trace, metrics tracking and strategy comparison.
"""
