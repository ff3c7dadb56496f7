"""
Central version constant for featureflow.
"""

__version__ = "0.1.0"
