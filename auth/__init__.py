"""
auth — User account and credential module.

Provides:
  • Signed access-token creation & verification
  • Password hashing (bcrypt)
  • ``CredentialHandler`` — login, signup, read, update, delete
  • Account API routes and FastAPI dependencies
"""
