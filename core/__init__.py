"""
Core components of the event aggregator.
"""
