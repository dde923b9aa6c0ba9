"""
Keys module - Activation key lifecycle.

This module handles:
- Key record entity and integrity signing
- Key code generation
- Key store port and adapters
- Create, extend, reset, delete and expiry sweep
"""
