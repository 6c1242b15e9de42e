"""
Unit Tests for the Layout Solver
================================

Tests for regime selection, one-dimensional distribution and full tree layout.
"""

import pytest

from xcanvas.core.layout.size import AUTO
from xcanvas.core.layout.solver import AxisRecord, LayoutSolver, Regime, classify
from xcanvas.models.elements import div, img

from tests.utils.assertions import assert_position


class TestClassify:
    """Test regime selection."""

    def test_overflow_when_fixed_lengths_exceed_space(self):
        assert classify(100, 130, 0) == Regime.OVERFLOW

    def test_overflow_when_fixed_lengths_fill_space_and_percentages_remain(self):
        assert classify(100, 100, 0.1) == Regime.OVERFLOW

    def test_compression_when_percentages_do_not_fit(self):
        assert classify(200, 100, 1.2) == Regime.COMPRESSION

    def test_grow_when_everything_fits(self):
        assert classify(200, 50, 0.5) == Regime.GROW
        assert classify(200, 0, 1.0) == Regime.GROW

    def test_zero_length_axis(self):
        assert classify(0, 0, 0) == Regime.GROW


class TestDistribute:
    """Test one-dimensional distribution along a flow axis."""

    def test_overflow_keeps_natural_lengths(self, solver):
        spans = solver.distribute(0, 100, [AxisRecord(60, 0, 0), AxisRecord(70, 0, 0)])
        assert [(s.start, s.length) for s in spans] == [(0, 60), (60, 70)]

    def test_compression_shrinks_percentages_together(self, solver):
        records = [AxisRecord(100, 0, 0), AxisRecord("60%", 0, 0), AxisRecord("60%", 0, 0)]
        spans = solver.distribute(0, 200, records)
        assert [s.start for s in spans] == pytest.approx([0, 100, 150])
        assert [s.length for s in spans] == pytest.approx([100, 50, 50])

    def test_grow_gives_leftover_to_auto_lengths(self, solver):
        spans = solver.distribute(0, 200, [AxisRecord(50, 0, 0), AxisRecord(AUTO, 0, 0), AxisRecord(AUTO, 0, 0)])
        assert [(s.start, s.length) for s in spans] == [(0, 50), (50, 75), (125, 75)]

    def test_grow_gives_leftover_to_auto_margins(self, solver):
        spans = solver.distribute(0, 200, [AxisRecord(100, AUTO, AUTO)])
        assert (spans[0].start, spans[0].length) == (50, 100)

    def test_sequential_placement_honours_margins(self, solver):
        spans = solver.distribute(10, 200, [AxisRecord(20, 5, 5), AxisRecord(20, 5, 0)])
        assert [(s.start, s.length) for s in spans] == [(15, 20), (45, 20)]

    def test_absolute_records_do_not_consume_space(self, solver):
        records = [AxisRecord(30, 10, AUTO, absolute=True), AxisRecord(40, 0, 0)]
        spans = solver.distribute(0, 100, records)
        assert (spans[0].start, spans[0].length) == (10, 30)
        assert (spans[1].start, spans[1].length) == (0, 40)

    def test_absolute_auto_length_spans_between_margins(self, solver):
        span = solver.place_absolute(5, 100, AxisRecord(AUTO, 10, 20, absolute=True))
        assert (span.start, span.length) == (15, 70)

    def test_absolute_auto_start_margin_absorbs_leftover(self, solver):
        span = solver.place_absolute(0, 200, AxisRecord(50, AUTO, 10, absolute=True))
        assert (span.start, span.length) == (140, 50)

    def test_absolute_two_auto_margins_center(self, solver):
        span = solver.place_absolute(0, 200, AxisRecord("25%", AUTO, AUTO, absolute=True))
        assert (span.start, span.length) == (75, 50)


class TestLayoutSolver:
    """Test full tree layout."""

    def test_flex_percentages_split_the_row(self, solver):
        root = div({"display": "flex"}, div({"w": "50%"}), div({"w": "50%"}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.pos, 0, 0, 200, 100)
        assert_position(structure.inner[0].pos, 0, 0, 100, 100)
        assert_position(structure.inner[1].pos, 100, 0, 100, 100)

    def test_fixed_plus_auto_in_flex(self, solver):
        root = div({"display": "flex"}, div({"w": 50}), div({}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 50, 100)
        assert_position(structure.inner[1].pos, 50, 0, 150, 100)

    def test_block_children_stack_vertically(self, solver):
        root = div({}, div({"h": 30, "m": 0}), div({"h": "50%", "m": 0}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 200, 30)
        assert_position(structure.inner[1].pos, 0, 30, 200, 50)

    def test_block_child_with_fixed_width_is_centered(self, solver):
        root = div({}, div({"w": 100, "h": 20, "mt": 0, "mb": 0}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 50, 0, 100, 20)

    def test_padding_shrinks_the_content_box(self, solver):
        root = div({"p": "10%"}, div({}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 20, 10, 160, 80)

    def test_per_side_padding_overrides_shorthand(self, solver):
        root = div({"p": 10, "pl": 0}, div({}))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 10, 190, 80)

    def test_nested_percentages_resolve_against_parent(self, solver):
        root = div({"display": "flex"}, div({"w": "50%", "m": 0, "display": "flex"}, div({"w": "50%", "m": 0})))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].inner[0].pos, 0, 0, 50, 100)

    def test_text_child_is_sized_by_measurement(self, solver):
        root = div({}, div({"m": 0}, "Hi"))
        structure = solver.build(root, 200, 100)

        # 2 characters at 16px, half the font size each; height 16 * 1.5
        assert_position(structure.inner[0].pos, 0, 0, 16, 24)

    def test_text_child_uses_its_own_font_size(self, solver):
        root = div({}, div({"m": 0, "fontSize": "2rem"}, "Hi"))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 32, 48)

    def test_explicit_size_wins_over_measured_text(self, solver):
        root = div({}, div({"m": 0, "w": 120, "h": 40}, "Hi"))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 120, 40)

    def test_absolute_child_is_anchored_at_container_origin(self, solver):
        root = div(
            {"p": 10},
            div({"h": 40, "m": 0}),
            div({"position": "absolute", "w": 20, "h": 20, "mt": 5, "ml": 5}),
        )
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 10, 10, 180, 40)
        assert_position(structure.inner[1].pos, 15, 15, 20, 20)

    def test_z_is_carried_but_order_is_declaration_order(self, solver):
        root = div({"display": "flex"}, div({"w": 10, "z": 5}), div({"w": 10, "z": 1}))
        structure = solver.build(root, 200, 100)

        assert [s.pos.z for s in structure.inner] == [5, 1]
        assert structure.inner[0].pos.x < structure.inner[1].pos.x

    def test_leaves_and_raw_children_have_no_inner(self, solver):
        root = div({}, "label", None, div({}), img({}, "a.png"))
        structure = solver.build(root, 200, 100)

        assert len(structure.inner) == 4
        assert structure.inner[0].elem == "label"
        assert structure.inner[1].elem is None
        assert all(s.inner is None for s in structure.inner)

    def test_empty_root_has_no_inner(self, solver):
        structure = solver.build(div({}), 200, 100)
        assert structure.inner is None

    def test_image_node_fills_flex_cell(self, solver):
        root = div({"display": "flex"}, img({"w": "25%", "m": 0}, "a.png"))
        structure = solver.build(root, 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 50, 100)

    def test_solver_with_custom_base_font(self):
        solver = LayoutSolver(lambda text, size: 10.0, font_size=20)
        structure = solver.build(div({"display": "flex"}, div({"w": "1rem", "m": 0})), 200, 100)

        assert_position(structure.inner[0].pos, 0, 0, 20, 100)
