"""Session table storage layer.

This module persists sessions and pitches in partitioned tables.
It powers compensated writes, filtered reads, and the SDK client.
"""
