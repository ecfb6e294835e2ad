"""
Sirius Kernel - shared infrastructure for the wizard engine.

Provides:
- Declarative ORM base and engine/session management
- Structured JSON logging with request-scoped context
- Typed exception hierarchy
- Injectable clock
- SSN and birth date normalization shared by feeds and worker storage
"""

__version__ = "0.1.0"
