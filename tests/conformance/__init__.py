"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the parking marketplace.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Double-entry invariants and exact rental arithmetic
2. atomicity.py - All-or-nothing operations, rollback on hook failure
3. idempotency.py - Duplicate execution handling, monotonic identifiers
4. determinism.py - Reproducible behavior and content-addressed intents
5. temporal.py - Clock handling and rental windows

These tests use hypothesis for property-based testing.
"""
