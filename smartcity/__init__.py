"""
SmartCity flow dataset generator.

Scenario scheduling, flow classification and labelling, and ML firewall
queries for a simulated seven-district smart city network.
"""

__version__ = "1.0.0"
