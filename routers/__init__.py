# routers/__init__.py
#
# Each module exposes its own `router`; main.create_app() includes them.
