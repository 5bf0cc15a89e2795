"""
SALT Runtime Package (saltkit)

A small runtime for keeping variables and commands inside narrative text
that a host re-reads on every turn.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - How the host stores the state between turns
    - Editors, CLIs or scenario tooling
    - What registered commands actually do

This package defines the TEXT PROTOCOL only:
    - DSV blocks bound to variables
    - Variables split into structured records
    - Commands stored as plain text and invoked from prose

Everything the host persists is plain data (see serialization.py).
"""

__version__ = "0.1.0"
