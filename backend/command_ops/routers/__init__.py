# backend/command_ops/routers/__init__.py
