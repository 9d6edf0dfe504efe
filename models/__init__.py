"""
Models package for the Banker's Algorithm Simulator.
Contains the resource state and the error types.
"""
