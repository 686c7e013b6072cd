"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the token ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Sum of balances equals total supply
2. atomicity.py - Rejected operations change nothing
3. allowance.py - Allowances are set absolutely and consumed exactly
4. serialization.py - Concurrent callers observe one operation at a time

These tests use hypothesis for property-based testing.
"""
