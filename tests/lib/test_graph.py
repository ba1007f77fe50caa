import pytest

from qrouting.lib.graph import CapacityGraph


class TestCapacityGraph:
    def test_from_weights_sizes_vertices_by_largest_id(self):
        g = CapacityGraph.from_weights([(0, 1, 1.0), (3, 2, 2.0)])
        assert g.num_nodes() == 4
        assert g.num_edges() == 2
        assert g.has_node(2)
        assert not g.has_node(4)

    def test_empty(self):
        g = CapacityGraph.from_weights([])
        assert g.num_nodes() == 0
        assert g.num_edges() == 0
        assert g.in_degree() == (0, 0)
        assert g.out_degree() == (0, 0)
        assert g.total_capacity() == 0

    def test_degrees(self, square1):
        assert square1.out_degree() == (0, 2)
        assert square1.in_degree() == (0, 2)

    def test_total_capacity_and_weights(self, square1):
        assert square1.total_capacity() == 6.0
        assert square1.weights() == [
            (0, 1, 1.0),
            (0, 2, 2.0),
            (1, 3, 1.0),
            (2, 3, 2.0),
        ]

    def test_weights_is_a_snapshot(self, line1):
        snapshot = line1.weights()
        line1.remove_capacity_from_path(0, [1], 1.0)
        assert snapshot == [(0, 1, 5.0), (1, 2, 3.0)]

    @pytest.mark.parametrize(
        "src,dst,capacity,match",
        [
            (0, 1, 1.0, "already exists"),
            (0, 0, 1.0, "Self-loop"),
            (1, 0, -1.0, "negative capacity"),
            (0, 7, 1.0, "does not exist"),
        ],
    )
    def test_add_edge_errors(self, single_edge, src, dst, capacity, match):
        with pytest.raises(ValueError, match=match):
            single_edge.add_edge(src, dst, capacity)

    def test_negative_vertex_rejected(self):
        with pytest.raises(ValueError, match="Invalid vertex"):
            CapacityGraph.from_weights([(-1, 0, 1.0)])

    def test_remove_missing_edge(self, single_edge):
        with pytest.raises(ValueError, match="No edge"):
            single_edge.remove_edge(1, 0)

    def test_bottleneck(self, line1):
        assert line1.bottleneck(0, [1, 2]) == 3.0
        assert line1.bottleneck(0, [1]) == 5.0
        assert line1.bottleneck(0, []) == 0.0
        assert line1.bottleneck(0, [2]) == 0.0

    def test_check_capacity(self, line1):
        assert line1.check_capacity(0, [1, 2], 3.0)
        assert not line1.check_capacity(0, [1, 2], 3.5)
        assert not line1.check_capacity(0, [2], 0.0)
        assert not line1.check_capacity(0, [], 0.0)

    def test_remove_capacity_prunes_zero_edges(self, line1):
        line1.remove_capacity_from_path(0, [1, 2], 3.0)
        assert line1.weights() == [(0, 1, 2.0)]
        assert line1.num_edges() == 1
        assert line1.in_degree() == (0, 1)

    def test_remove_capacity_is_all_or_nothing(self, line1):
        with pytest.raises(ValueError, match="cannot carry"):
            line1.remove_capacity_from_path(0, [1, 2], 4.0)
        assert line1.weights() == [(0, 1, 5.0), (1, 2, 3.0)]

    def test_remove_negative_capacity(self, line1):
        with pytest.raises(ValueError, match="negative"):
            line1.remove_capacity_from_path(0, [1], -1.0)

    def test_remove_smallest_capacity_edge(self, line1):
        line1.remove_smallest_capacity_edge(0, [1, 2])
        assert line1.weights() == [(0, 1, 5.0)]

    def test_remove_smallest_capacity_edge_tie_goes_to_first_hop(self, square1):
        square1.remove_smallest_capacity_edge(0, [1, 3])
        assert not square1.has_edge(0, 1)
        assert square1.has_edge(1, 3)

    def test_remove_smallest_capacity_edge_empty_path(self, line1):
        with pytest.raises(ValueError):
            line1.remove_smallest_capacity_edge(0, [])

    def test_copy_is_independent(self, line1):
        other = line1.copy()
        other.remove_capacity_from_path(0, [1, 2], 3.0)
        assert line1.weights() == [(0, 1, 5.0), (1, 2, 3.0)]
        assert other.weights() == [(0, 1, 2.0)]
        assert other.num_nodes() == line1.num_nodes()
