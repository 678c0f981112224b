# Routes package init
"""
Snippetbox — Routes Package
============================

What:  HTTP route handlers, grouped by the middleware chain they run behind.

Route Inventory:
    - snippets.py:  GET  /                        (latest snippets)
                    GET  /snippet/view/{id}       (single snippet)
                    GET  /snippet/create          (protected: form)
                    POST /snippet/create          (protected: submit)
    - users.py:     GET  /user/signup, POST /user/signup
                    GET  /user/login,  POST /user/login
                    POST /user/logout             (protected)
    - health.py:    GET  /health                  (service health check)
    - groups.py:    the dynamic and protected route classes

Design Principle:
    Routes are THIN: read the form, call a service, render a page or
    redirect. Session, CSRF and authentication are already settled by the
    route-group chain before a handler runs.
"""
