"""
Analysis package for the Banker's Algorithm Simulator.
Contains the in-session request log.
"""
