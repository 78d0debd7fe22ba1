# ============================================================================
# apps/__init__.py - Feature apps mounted by main.py
# ============================================================================
