# apps/system/__init__.py - System package
