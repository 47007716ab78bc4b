"""
Integrations with the credential store, password hashing, session tokens
and identity providers.
"""
