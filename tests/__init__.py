"""Test suite for jetform.

This package contains tests for:
- FormError values, message tables and failure descriptors
- Error classification (taxonomy, status boundaries, totality)
- The form state machine (submit protocol, reset, stale results)
- Event system (emission, serialization)
- Schema-backed decoding and end-to-end scenarios
"""
