# ============================================================================
# shared/__init__.py - Database, logging and auth used by every app
# ============================================================================
