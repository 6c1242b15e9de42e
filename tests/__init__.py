"""
Test Suite
==========

Test suite matching the xcanvas/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: Document to PNG rendering through the engine and CLI
"""
