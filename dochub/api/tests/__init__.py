"""
DocHub API Test Suite

End-to-end tests over HTTP against an isolated SQLite database.

Test Files:
- conftest.py: Shared fixtures (settings, app, roles, actors, tokens)
- test_auth_flow.py: Token creation, refresh and logout
- test_rbac_routes.py: Role and actor administration
- test_document_routes.py: Document access, redaction and audit

Run Commands:
    # All API tests
    pytest dochub/api/tests/ -v
"""
