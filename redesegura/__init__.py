"""
RedeSegura - preventive hazard reporting for the electrical grid.
"""

__version__ = "0.1.0"
