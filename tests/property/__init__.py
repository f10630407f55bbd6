# tests/property/__init__.py
"""Property-based tests for fieldplan.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of.

Test categories:
- core/: Selector normalization properties
- engine/: Plan determinism, minimality and ordering over random graphs
"""
