"""Business logic layer for accounts app.

Registration, lookup, account updates, role changes and account
deletion. Role checks go through the table in ``permissions``.
"""
