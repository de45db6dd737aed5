"""
authflow - two-step (password + TOTP) authentication service
"""

__version__ = "1.0.0"
