"""
Shared helpers: OTP codes, validation, hashing, session tokens, mail, errors
"""
