"""
Models package for the Dining Philosophers Simulator.
Contains the chopstick, philosopher, event queue, table and snapshot models.
"""
