"""Fault injection tests for faultsweep.

Sweeps real routines through every early-exit path and checks that each
path releases exactly what it acquired.

Key components:
- invariants.py: Cleanup invariant checks over sweep records
- test_scenarios.py: The three-step and forgetful-cleanup scenarios
- test_properties.py: Property-based tests of counter and sweep semantics
- test_unix_sockets.py: Sweep of a datagram socket exchange
"""
