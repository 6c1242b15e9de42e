"""
Rendering Module
===============

Raster surface, drawing context, pixel filters and the tree painter.

Components:
- surface: resizable RGBA surface with PNG encoding
- context: canvas-style drawing context with clips and blend modes
- fonts: font lookup and text measurement
- filters: blur, unsharp mask, alpha gradient, crop and object-fit math
- painter: depth-first paint of a structure tree
"""
