# backend/command_ops/__init__.py
