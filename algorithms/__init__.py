"""
Algorithms package for the Banker's Algorithm Simulator.
Contains the safety check and the request arbiter built on it.
"""
