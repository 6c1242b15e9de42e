"""
Core Engine
==========

Core modules for layout, resource loading and raster painting.

Modules:
- layout: size resolution and the constraint-based layout solver
- loading: resource cache and asynchronous resource loader
- rendering: raster surface, drawing context, filters and painter
- dsl: JSON/YAML render document loading and validation
- engine: the render engine driving the pipeline
"""
