"""Security tests for the AMP bridge

This module contains security-focused tests including:
- Capability token tampering and forgery
- Cross-chat and cross-user token reuse
- Sender/origin spoofing against the domain allow-list
"""
