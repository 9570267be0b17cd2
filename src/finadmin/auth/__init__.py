"""Admin authentication: password hashing and signed bearer tokens."""
