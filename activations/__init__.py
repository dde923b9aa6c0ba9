"""
Activations module - Key verification and device binding.

This module handles:
- Device binding policy and limits
- Key verification against the store
"""
