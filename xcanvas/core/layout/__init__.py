"""
Layout Module
=============

Size resolution and the constraint-based layout solver.

Components:
- size: length resolution for numbers, percentages, rem units and auto
- solver: node tree to absolute position tree
"""
