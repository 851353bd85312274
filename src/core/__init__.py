"""
Core domain models, mathematical primitives, and contracts.

This module contains the foundational building blocks that are independent
of the expression evaluator and the solver: immutable value objects,
numerical safeguards, and boundary validation of calculation requests.
"""
