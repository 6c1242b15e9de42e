"""
Document Parser
===============

Loads render documents, an ``options`` object plus a ``root`` node tree,
from JSON or YAML text. Documents are validated with Cerberus schemas and
then converted into a :class:`RenderRequest`.

Example document (YAML)::

    options:
      canvasWidth: 400
      canvasHeight: 200
    root:
      type: div
      props: {display: flex, p: 10}
      children:
        - {type: div, props: {w: "50%"}, children: [Hello]}
        - {type: img, props: {w: "50%", objectFit: cover}, src: photo.png}
"""

from typing import Dict, List, Any, Optional, Tuple
import json
import yaml  # type: ignore[import-untyped]
import time
from abc import ABC, abstractmethod
from cerberus import Validator  # type: ignore[import-untyped]
from pydantic import ValidationError

from xcanvas.config.logging import get_logger
from xcanvas.core.errors import DocumentParseError, InvalidSize
from xcanvas.core.layout.size import validate_size
from xcanvas.models.schemas import ParseResult, RenderRequest

logger = get_logger(__name__)

SIZE_FIELDS = ("w", "h", "m", "mt", "mr", "mb", "ml", "p", "pt", "pr", "pb", "pl", "fontSize", "borderRadius")
BLEND_MODES = [
    "source-over",
    "normal",
    "multiply",
    "screen",
    "overlay",
    "darken",
    "lighten",
    "difference",
    "lighter",
    "soft-light",
    "hard-light",
]


class DocumentValidator:
    """Render document validation using Cerberus schemas."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="validator")
        self._setup_schemas()

    def _setup_schemas(self) -> None:
        """Setup validation schemas."""
        size = {"type": ["number", "string"], "nullable": True}
        border = {
            "type": "dict",
            "schema": {
                "width": {"type": "number", "min": 0, "required": True},
                "color": {"type": "string", "required": True},
                "offset": {"type": "number"},
            },
        }

        self.options_schema = {
            "canvasWidth": {"type": "integer", "min": 1, "max": 8192},
            "canvasHeight": {"type": "integer", "min": 1, "max": 8192},
            "fontFace": {"type": "list", "minlength": 2, "maxlength": 2, "schema": {"type": "string"}},
            "fontSize": {"type": "number", "min": 1},
            "fontColor": {"type": "string"},
            "debugMode": {"type": "boolean"},
        }

        self.props_schema: Dict[str, Any] = {field: dict(size) for field in SIZE_FIELDS}
        self.props_schema.update(
            {
                "display": {"type": "string", "allowed": ["block", "flex"]},
                "position": {"type": "string", "allowed": ["absolute"], "nullable": True},
                "z": {"type": "number"},
                "color": {"type": "string"},
                "backgroundColor": {"type": "string"},
                "backgroundImage": {"type": "string"},
                "backgroundBlendMode": {"type": "string", "allowed": BLEND_MODES},
                "overflow": {"type": "string", "allowed": ["hidden"], "nullable": True},
                "border": {"anyof": [border, {"type": "list", "schema": border}]},
                "shadow": {
                    "type": "dict",
                    "schema": {
                        "size": {"type": "number", "min": 0, "required": True},
                        "color": {"type": "string"},
                        "for": {"type": "integer", "min": 1},
                    },
                },
                "clipPathLine": {"type": "list", "schema": size},
                "opacity": {"type": "number", "min": 0.0, "max": 1.0},
                "objectFit": {"type": "string", "allowed": ["contain", "cover"]},
                "textAlign": {"type": "string", "allowed": ["left", "right", "center"]},
                "id": {"type": "string"},
                "refresh": {"type": "boolean"},
                "clipImgRect": {"type": "list", "minlength": 4, "maxlength": 4, "schema": size},
                "opacityGradient": {"type": ["list", "dict"]},
                "unsharpMask": {"type": ["list", "dict"]},
            }
        )

        self.node_schema = {
            "type": {"type": "string", "required": True, "allowed": ["div", "img"]},
            "props": {"type": "dict", "schema": self.props_schema, "nullable": True},
            "children": {"type": "list", "nullable": True},
            "src": {"type": "string", "nullable": True},
        }

        self.document_schema: Dict[str, Any] = {
            "options": {"type": "dict", "schema": self.options_schema, "nullable": True},
            "root": {"type": "dict", "required": True},
        }

    def validate_document(self, data: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """
        Validate render document structure.

        Args:
            data: Document data to validate

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        validator = Validator(self.document_schema)  # type: ignore[misc]
        validator.allow_unknown = True  # type: ignore[attr-defined]

        is_valid = validator.validate(data)  # type: ignore[misc]
        errors: List[str] = []
        warnings: List[str] = []

        if not is_valid:
            errors.extend(self._format_validation_errors(validator.errors))  # type: ignore[attr-defined]

        if isinstance(data.get("root"), dict):
            node_errors, node_warnings = self._validate_node(data["root"], "root")
            errors.extend(node_errors)
            warnings.extend(node_warnings)
            if data["root"].get("type") != "div":
                errors.append("root: The root node must be a div")

        options = data.get("options") or {}
        width = options.get("canvasWidth", 0) if isinstance(options, dict) else 0
        height = options.get("canvasHeight", 0) if isinstance(options, dict) else 0
        if isinstance(width, int) and isinstance(height, int) and (width > 4096 or height > 4096):
            warnings.append(f"Large canvas size ({width}x{height}) may impact performance")

        return is_valid and len(errors) == 0, errors, warnings

    def _format_validation_errors(self, errors: Any, path: str = "") -> List[str]:
        """Format Cerberus validation errors into readable messages."""
        formatted_errors: List[str] = []

        for field, error_info in errors.items():
            current_path = f"{path}.{field}" if path else str(field)

            if isinstance(error_info, list):
                for error in error_info:
                    if isinstance(error, dict):
                        formatted_errors.extend(self._format_validation_errors(error, current_path))
                    else:
                        formatted_errors.append(f"{current_path}: {error}")
            elif isinstance(error_info, dict):
                formatted_errors.extend(self._format_validation_errors(error_info, current_path))

        return formatted_errors

    def _validate_node(self, node: Dict[str, Any], path: str) -> Tuple[List[str], List[str]]:
        """Validate one node and, recursively, its children."""
        errors: List[str] = []
        warnings: List[str] = []

        validator = Validator(self.node_schema)  # type: ignore[misc]
        validator.allow_unknown = False  # type: ignore[attr-defined]
        if not validator.validate(node):  # type: ignore[misc]
            errors.extend(self._format_validation_errors(validator.errors, path))  # type: ignore[attr-defined]
            return errors, warnings

        props = node.get("props") or {}
        for field in SIZE_FIELDS:
            if field in props:
                try:
                    validate_size(props[field])
                except InvalidSize as e:
                    warnings.append(f"{path}.props.{field}: {e}; it resolves to the default")

        if node["type"] == "img":
            if not node.get("src"):
                errors.append(f"{path}: Image node requires a 'src'")
            if node.get("children"):
                errors.append(f"{path}: Image node cannot have children")
            return errors, warnings

        if node.get("src"):
            warnings.append(f"{path}: 'src' is ignored on div nodes")

        for i, child in enumerate(node.get("children") or []):
            child_path = f"{path}.children[{i}]"
            if isinstance(child, dict):
                child_errors, child_warnings = self._validate_node(child, child_path)
                errors.extend(child_errors)
                warnings.extend(child_warnings)
            elif child is not None and (isinstance(child, bool) or not isinstance(child, (str, int, float))):
                errors.append(f"{child_path}: Child must be a node, string, number or null, got {type(child).__name__}")
            elif i > 0 and isinstance(child, (str, int, float)):
                warnings.append(f"{child_path}: Only a leading text child is drawn")

        return errors, warnings


class BaseDocumentParser(ABC):
    """Abstract base class for render document parsers."""

    format_name = ""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(parser=self.format_name)
        self.validator = DocumentValidator()

    @abstractmethod
    def load(self, content: str) -> Any:
        """Decode raw text into Python data."""
        pass

    async def parse(self, content: str) -> ParseResult:
        """
        Parse document content into a render request.

        Args:
            content: Raw document content as string

        Returns:
            ParseResult containing the parsed request or errors
        """
        start_time = time.time()

        try:
            self.logger.info("Parsing render document")
            raw_data = self.load(content)
        except DocumentParseError as e:
            self.logger.error("Document parsing failed", error=str(e))
            return ParseResult(success=False, errors=[str(e)], processing_time=time.time() - start_time)

        if not isinstance(raw_data, dict):
            return ParseResult(
                success=False,
                errors=[f"Document must be an object, got {type(raw_data).__name__}"],
                processing_time=time.time() - start_time,
            )

        is_valid, errors, warnings = self.validator.validate_document(raw_data)
        if not is_valid:
            return ParseResult(
                success=False,
                errors=errors,
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        try:
            request = RenderRequest.model_validate(raw_data)
        except ValidationError as e:
            return ParseResult(
                success=False,
                errors=[
                    f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
                ],
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        return ParseResult(
            success=True,
            request=request,
            warnings=warnings,
            processing_time=time.time() - start_time,
        )

    async def validate_syntax(self, content: str) -> bool:
        """
        Check that the content decodes, without schema validation.

        Returns:
            True if syntax is valid, False otherwise
        """
        try:
            self.load(content)
            return True
        except DocumentParseError:
            return False


class JSONDocumentParser(BaseDocumentParser):
    """JSON render document parser."""

    format_name = "json"

    def load(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise DocumentParseError(
                f"Invalid JSON syntax at line {e.lineno}, column {e.colno}: {e.msg}"
            ) from e


class YAMLDocumentParser(BaseDocumentParser):
    """YAML render document parser."""

    format_name = "yaml"

    def load(self, content: str) -> Any:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DocumentParseError(f"Invalid YAML syntax: {e}") from e
        if data is None:
            raise DocumentParseError("Empty YAML document")
        return data


class DocumentParserFactory:
    """Factory for creating document parsers based on content type."""

    _parsers = {
        "json": JSONDocumentParser,
        "yaml": YAMLDocumentParser,
    }

    @classmethod
    def create_parser(cls, parser_type: str) -> BaseDocumentParser:
        """
        Create a document parser instance.

        Raises:
            ValueError: If parser type is not supported
        """
        if parser_type not in cls._parsers:
            raise ValueError(f"Unsupported parser type: {parser_type}")

        return cls._parsers[parser_type]()

    @classmethod
    def detect_parser_type(cls, content: str) -> str:
        """Detect the document format from its content."""
        content = content.strip()
        if content.startswith(("{", "[")):
            return "json"
        try:
            json.loads(content)
            return "json"
        except json.JSONDecodeError:
            return "yaml"

    @classmethod
    def parser_type_for_path(cls, path: str) -> Optional[str]:
        """Format implied by a file extension, None when unknown."""
        suffix = path.rsplit(".", 1)[-1].lower() if "." in path else ""
        if suffix == "json":
            return "json"
        if suffix in ("yaml", "yml"):
            return "yaml"
        return None


async def parse_document(content: str, parser_type: Optional[str] = None) -> ParseResult:
    """
    Parse a render document using the appropriate parser.

    Args:
        content: Raw document content
        parser_type: Optional parser type override

    Returns:
        ParseResult containing the parsed request or errors
    """
    if not content or not content.strip():
        return ParseResult(success=False, errors=["Empty document provided"], processing_time=0.0)

    if not parser_type:
        parser_type = DocumentParserFactory.detect_parser_type(content)

    try:
        parser = DocumentParserFactory.create_parser(parser_type)
    except ValueError as e:
        return ParseResult(success=False, errors=[str(e)], processing_time=0.0)
    return await parser.parse(content)


async def validate_document_syntax(content: str, parser_type: Optional[str] = None) -> bool:
    """
    Validate document syntax without full parsing.

    Returns:
        True if syntax is valid, False otherwise
    """
    if not content or not content.strip():
        return False

    if not parser_type:
        parser_type = DocumentParserFactory.detect_parser_type(content)

    try:
        parser = DocumentParserFactory.create_parser(parser_type)
    except ValueError:
        return False
    return await parser.validate_syntax(content)
