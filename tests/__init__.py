"""
Test suite for the Newton-Raphson calculator engine

Contains:
- tests/unit/          : Unit tests for individual modules and the calculator facade
"""
