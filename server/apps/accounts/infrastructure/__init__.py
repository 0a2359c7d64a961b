"""Infrastructure layer for accounts app.

Password hashing is wrapped here so the business logic receives it as
an injected capability instead of calling a hashing library directly.
"""
