"""
Loading Module
==============

Process-wide resource cache and the asynchronous resource loader.
"""
