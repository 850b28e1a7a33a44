# raid/content/__init__.py
