"""Authentication: bcrypt passwords, JWT bearer tokens, FastAPI dependencies."""
