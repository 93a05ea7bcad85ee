"""
State championship bracket simulator.

Monte Carlo estimates of placement probabilities for single-elimination
brackets, driven by Glicko ratings from Matchplay.
"""
__version__ = "0.3.0"
