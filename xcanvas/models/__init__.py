"""
Data Models
===========

Pydantic data models for layout trees, engine options and render requests.

Models:
- schemas: node, props, options and message models plus layout results
- elements: ``div`` and ``img`` node constructors
"""
