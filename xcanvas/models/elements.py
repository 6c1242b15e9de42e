"""
Element Constructors
====================

Shorthand builders for layout trees::

    root = div({"display": "flex", "w": 200},
               div({"w": "50%"}, "left"),
               img({"w": "50%", "objectFit": "cover"}, "photo.png"))
"""

from typing import Any, Dict, Optional, Union

from xcanvas.models.schemas import ContainerNode, ContainerProps, ImageNode, ImageProps, ImageSource


def div(props: Optional[Union[Dict[str, Any], ContainerProps]] = None, *children: Any) -> ContainerNode:
    """Build a container node from props and children."""
    if isinstance(props, ContainerProps):
        return ContainerNode(props=props, children=list(children))
    return ContainerNode(props=ContainerProps.model_validate(props or {}), children=list(children))


def img(props: Optional[Union[Dict[str, Any], ImageProps]], src: ImageSource) -> ImageNode:
    """Build an image node from props and a source (path/URL, bitmap or generator)."""
    if not isinstance(props, ImageProps):
        props = ImageProps.model_validate(props or {})
    return ImageNode(props=props, src=src)
