"""
CAFM predictive maintenance analytics.

Failure-risk prediction, maintenance cost forecasting, anomaly detection
and schedule optimization over asset maintenance history.
"""

__version__ = "1.0.0"
