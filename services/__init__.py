"""
Credential and OTP verification services used by the auth routes
"""
