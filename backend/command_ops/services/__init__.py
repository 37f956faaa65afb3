# backend/command_ops/services/__init__.py
