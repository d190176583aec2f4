"""
Test suite for the cycle fund engine

Contains:
- tests/unit/          : Unit tests for individual modules and end-to-end cycles
"""
