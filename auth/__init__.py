"""
auth — User authentication module.

Provides:
  • Bearer token signing & decoding (PyJWT)
  • Password hashing (bcrypt)
  • Token issuing, revocation and credential checks against the user store
  • ``get_auth_context`` FastAPI dependency
"""
