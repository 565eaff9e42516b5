# DocHub - Document Management Backend
"""
DocHub: document management backend with role-based access control.

Components:
    - RBAC: Scopes, access levels, super and scoped roles
    - Access Resolver: Scope and field level access decisions
    - Tokens: Stateless JWT issuance and refresh
    - Audit: Fire-and-forget audit trail

Example:
    from dochub.api.main import create_app
    from dochub.api.config import Settings

    app = create_app(Settings(DATABASE_URL="sqlite+aiosqlite:///dochub.db"))
"""

__version__ = "1.0.0"
