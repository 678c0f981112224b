# Services package init
"""
Snippetbox — Services Layer (Credential Store)
===============================================

What:  Business logic between routes (HTTP) and the database (persistence).
Why:   Handlers only see insert/get/latest/authenticate; SQL stays here.

    - snippet_service.py:  insert, get, latest
    - user_service.py:     insert, authenticate
    - passwords.py:        bcrypt hashing run off the event loop
"""
