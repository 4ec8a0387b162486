"""
Core application modules: configuration, logging, metrics, resilience.
"""
