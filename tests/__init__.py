"""Test package marker.

What:
  Marks ``tests`` as a package so pytest resolves ``tests.*`` module names
  deterministically.

Invariants & Safety:
  - The file must remain side-effect free.
"""
