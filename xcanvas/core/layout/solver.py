"""
Layout Solver
=============

Turns a node tree plus a container size into a position tree with absolute
pixel rectangles for every node.

Each container lays out its children along one flow axis (vertical for block
containers, horizontal for flex containers) with a one-dimensional
distribution that runs in one of three regimes:

- overflow: fixed lengths exceed the space, children keep natural sizes
- compression: percentages do not fit, they shrink together
- grow: leftover space goes to auto lengths, else to auto margins

The cross axis is laid out as if every child were absolutely positioned.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from xcanvas.config.logging import get_logger
from xcanvas.core.layout.size import AUTO, fix_number, fix_size, is_auto, percent_fraction
from xcanvas.models.schemas import (
    ContainerNode,
    Display,
    Element,
    ImageNode,
    Position,
    PositionMode,
    Structure,
)

logger = get_logger(__name__)

TextMeasurer = Callable[[str, float], float]


class Regime(str, Enum):
    """Distribution strategy chosen for one axis of one container."""
    OVERFLOW = "overflow"
    COMPRESSION = "compression"
    GROW = "grow"


@dataclass
class ContentBox:
    """A container rectangle with its resolved padding."""
    x: float
    y: float
    z: float
    w: float
    h: float
    pt: float = 0
    pr: float = 0
    pb: float = 0
    pl: float = 0


@dataclass
class SizingRecord:
    """Unresolved sizing of one child, both axes."""
    z: float = 0
    w: Any = AUTO
    h: Any = AUTO
    mt: Any = AUTO
    mr: Any = AUTO
    mb: Any = AUTO
    ml: Any = AUTO
    absolute: bool = False


@dataclass
class AxisRecord:
    """Unresolved sizing of one child along one axis."""
    length: Any
    ms: Any
    me: Any
    absolute: bool = False


@dataclass
class Span:
    """Resolved start and length along one axis."""
    start: float
    length: float


def classify(w: float, sum_num: float, sum_per: float) -> Regime:
    """Pick the distribution regime for an axis of length ``w``."""
    if w < sum_num or (w == sum_num and sum_per > 0):
        return Regime.OVERFLOW
    remaining = (w - sum_num) / w if w else 0.0
    if remaining < sum_per:
        return Regime.COMPRESSION
    return Regime.GROW


class LayoutSolver:
    """Constraint-based flow/flex layout over a node tree."""

    def __init__(
        self,
        measure_text: TextMeasurer,
        font_size: float = 16,
        line_height_ratio: float = 1.5,
    ):
        self.measure_text = measure_text
        self.font_size = font_size
        self.line_height_ratio = line_height_ratio
        self.logger: Any = logger.bind(component="layout_solver")

    def build(self, root: ContainerNode, width: float, height: float) -> Structure:
        """
        Lay out a whole tree inside a ``width`` x ``height`` surface.

        Args:
            root: Root container
            width: Available width in pixels
            height: Available height in pixels

        Returns:
            Structure tree rooted at the surface rectangle
        """
        pos = Position(x=0, y=0, z=0, w=width, h=height)
        structure = Structure(pos=pos, elem=root, inner=self.resolve_children(pos, root))
        self.logger.debug("Structure built", width=width, height=height)
        return structure

    def resolve_children(self, pos: Position, elem: Element) -> Optional[List[Structure]]:
        """Recursively position the children of ``elem``; None for leaves."""
        if not isinstance(elem, ContainerNode) or not elem.children:
            return None
        positions = self.children_positions(pos, elem)
        inner = [Structure(pos=p, elem=child) for p, child in zip(positions, elem.children)]
        for structure in inner:
            structure.inner = self.resolve_children(structure.pos, structure.elem)
        return inner

    def children_positions(self, pos: Position, elem: ContainerNode) -> List[Position]:
        """Absolute rectangles of the direct children of a container."""
        props = elem.props
        fs = self.font_size
        px = fix_number(props.p, pos.w, 0, font_size=fs)
        py = fix_number(props.p, pos.h, 0, font_size=fs)
        box = ContentBox(
            x=pos.x,
            y=pos.y,
            z=pos.z,
            w=pos.w,
            h=pos.h,
            pt=fix_number(props.pt, pos.h, py, font_size=fs),
            pr=fix_number(props.pr, pos.w, px, font_size=fs),
            pb=fix_number(props.pb, pos.h, py, font_size=fs),
            pl=fix_number(props.pl, pos.w, px, font_size=fs),
        )
        records = [self.sizing_record(child) for child in elem.children]
        return self.place(box, records, row=props.display == Display.FLEX)

    def sizing_record(self, child: Element) -> SizingRecord:
        """Derive the unresolved sizing of one child."""
        if not isinstance(child, (ContainerNode, ImageNode)):
            return SizingRecord()
        props = child.props
        m = props.m if props.m is not None else AUTO
        w = props.w
        h = props.h
        text = child.text if isinstance(child, ContainerNode) else None
        if text is not None:
            font_size = resolved_font_size(props.font_size, self.font_size)
            if w is None:
                w = self.measure_text(text, font_size)
            if h is None:
                h = font_size * self.line_height_ratio
        return SizingRecord(
            z=props.z,
            w=AUTO if w is None else w,
            h=AUTO if h is None else h,
            mt=props.mt if props.mt is not None else m,
            mr=props.mr if props.mr is not None else m,
            mb=props.mb if props.mb is not None else m,
            ml=props.ml if props.ml is not None else m,
            absolute=props.position == PositionMode.ABSOLUTE,
        )

    def place(self, box: ContentBox, records: List[SizingRecord], row: bool = False) -> List[Position]:
        """Resolve both axes inside the content box of ``box``."""
        x = box.x + box.pl
        y = box.y + box.pt
        w = box.w - box.pl - box.pr
        h = box.h - box.pt - box.pb
        xs = self.distribute(
            x, w, [AxisRecord(r.w, r.ml, r.mr, r.absolute if row else True) for r in records]
        )
        ys = self.distribute(
            y, h, [AxisRecord(r.h, r.mt, r.mb, True if row else r.absolute) for r in records]
        )
        return [
            Position(x=xs[i].start, y=ys[i].start, z=r.z, w=xs[i].length, h=ys[i].length)
            for i, r in enumerate(records)
        ]

    def distribute(self, origin: float, w: float, records: List[AxisRecord]) -> List[Span]:
        """
        One-dimensional distribution of ``records`` over ``[origin, origin + w]``.

        Absolutely positioned records never consume space; flow records are
        placed one after another with a running cursor.
        """
        fs = self.font_size
        sum_num = 0.0
        sum_per = 0.0
        for record in records:
            if record.absolute:
                continue
            for size in (record.length, record.ms, record.me):
                sum_num += fix_number(size, None, 0, font_size=fs)
                sum_per += percent_fraction(size) or 0

        regime = classify(w, sum_num, sum_per)
        basis = w
        default_len: Optional[float] = None
        default_margin = 0.0

        if regime == Regime.COMPRESSION:
            basis = (w - sum_num) / sum_per
        elif regime == Regime.GROW:
            flow = [r for r in records if not r.absolute]
            len_auto = sum(1 for r in flow if is_auto(r.length))
            margin_auto = sum(is_auto(r.ms) + is_auto(r.me) for r in flow)
            leftover = w - sum_num - sum_per * w
            if len_auto > 0:
                default_len = leftover / len_auto
            elif margin_auto > 0:
                default_margin = leftover / margin_auto

        cursor = origin
        spans: List[Span] = []
        for record in records:
            if record.absolute:
                spans.append(self.place_absolute(origin, w, record))
                continue
            span, cursor = self.place_static(cursor, basis, record, default_len, default_margin)
            spans.append(span)
        return spans

    def place_static(
        self,
        cursor: float,
        w: float,
        record: AxisRecord,
        default_len: Optional[float] = None,
        default_margin: float = 0.0,
    ) -> Tuple[Span, float]:
        """Place a flow record at ``cursor``; returns the span and the next cursor."""
        fs = self.font_size
        length = fix_number(record.length, w, w if default_len is None else default_len, font_size=fs)
        ms = fix_number(record.ms, w, default_margin, font_size=fs)
        me = fix_number(record.me, w, default_margin, font_size=fs)
        start = cursor + ms
        return Span(start=start, length=length), start + length + me

    def place_absolute(self, origin: float, w: float, record: AxisRecord) -> Span:
        """Place an absolutely positioned record against the container origin."""
        fs = self.font_size
        if is_auto(record.length):
            ms = fix_number(record.ms, w, 0, font_size=fs)
            me = fix_number(record.me, w, 0, font_size=fs)
            return Span(start=origin + ms, length=w - ms - me)
        length = fix_number(record.length, w, w, font_size=fs)
        ms_auto = is_auto(record.ms)
        me_auto = is_auto(record.me)
        me = 0.0 if me_auto else fix_number(record.me, w, 0, font_size=fs)
        if ms_auto:
            ms = (w - length - me) / (2 if me_auto else 1)
        else:
            ms = fix_number(record.ms, w, 0, font_size=fs)
        return Span(start=origin + ms, length=length)


def resolved_font_size(size: Any, base: float) -> float:
    """Font size of a node, percentages and rem relative to ``base``."""
    value = fix_size(size, base, base, font_size=base)
    return base if value == AUTO else float(value)
