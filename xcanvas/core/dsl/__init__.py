"""
Document Loading Module
======================

JSON and YAML render documents parsed into render requests.

Components:
- parser: format detection, parsing and cerberus schema validation
"""
