"""
Algorithms package for the Dining Philosophers Simulator.
Contains the strategy policies, philosopher state machine, conflict resolver
and deadlock detector.
"""
