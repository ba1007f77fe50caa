import random

import pytest

from qrouting.exceptions import ConfigurationError, MalformedRequestError
from qrouting.lib.app import AppAllocation, AppDescriptor, route_apps
from qrouting.lib.graph import CapacityGraph


class TestAppDescriptor:
    def test_initialization(self):
        app = AppDescriptor(0, [1, 2], priority=2.0)
        assert app.peers == (1, 2)
        assert app.allocations == []
        assert app.yen == 0
        assert app.deficit == 0.0
        assert app.net_rate == 0.0
        assert app.gross_rate == 0.0

    def test_allocate_merges_same_path(self):
        app = AppDescriptor(0, [2])
        app.allocate(1.0, 2.0, [1, 2])
        app.allocate(0.5, 1.0, [2])
        app.allocate(1.0, 2.0, [1, 2])
        assert app.allocations == [
            AppAllocation(2.0, 4.0, (1, 2)),
            AppAllocation(0.5, 1.0, (2,)),
        ]
        assert app.net_rate == 2.5
        assert app.gross_rate == 5.0

    def test_str(self):
        app = AppDescriptor(0, [1, 2])
        app.allocate(1.0, 1.0, [1])
        assert "peers {1,2}" in str(app)
        assert "[1] net 1.0 gross 1.0" in str(app)


class TestRouteApps:
    def test_single_app_drains_edge(self, single_edge):
        app = AppDescriptor(0, [1])
        allocated = route_apps(single_edge, [app], 1.0, quantum=1.0, k=1)
        assert allocated == 10.0
        assert app.allocations == [AppAllocation(10.0, 10.0, (1,))]
        assert app.yen == 2
        assert app.deficit == 1.0
        assert single_edge.num_edges() == 0

    def test_priority_proportional_share(self):
        g = CapacityGraph.from_weights([(0, 1, 12.0)])
        high = AppDescriptor(0, [1], priority=2.0)
        low = AppDescriptor(0, [1], priority=1.0)
        route_apps(g, [high, low], 1.0, quantum=1.0, k=1)
        assert high.gross_rate == 8.0
        assert low.gross_rate == 4.0
        assert g.num_edges() == 0

    def test_split_over_multiple_paths(self, triangle1):
        app = AppDescriptor(0, [2])
        allocated = route_apps(triangle1, [app], 1.0, quantum=10.0, k=2)
        assert app.allocations == [
            AppAllocation(1.0, 1.0, (2,)),
            AppAllocation(3.0, 3.0, (1, 2)),
        ]
        assert allocated == 4.0
        assert app.yen == 2
        assert app.deficit == 6.0
        assert triangle1.num_edges() == 0

    def test_multiple_peers(self):
        g = CapacityGraph.from_weights([(0, 1, 2.0), (0, 2, 5.0)])
        app = AppDescriptor(0, [1, 2])
        route_apps(g, [app], 1.0, quantum=100.0, k=1)
        assert app.allocations == [
            AppAllocation(2.0, 2.0, (1,)),
            AppAllocation(5.0, 5.0, (2,)),
        ]
        assert app.yen == 4

    def test_lossy_swaps_reduce_net_rate(self):
        g = CapacityGraph.from_weights([(0, 1, 4.0), (1, 2, 4.0)])
        app = AppDescriptor(0, [2])
        route_apps(g, [app], 0.5, quantum=4.0, k=1)
        assert app.allocations == [AppAllocation(2.0, 4.0, (1, 2))]

    def test_zero_probability_skips_multi_hop_paths(self):
        g = CapacityGraph.from_weights([(0, 1, 4.0), (1, 2, 4.0)])
        app = AppDescriptor(0, [2])
        assert route_apps(g, [app], 0.0, quantum=1.0, k=1) == 0.0
        assert app.allocations == []
        assert app.yen == 1
        assert g.weights() == [(0, 1, 4.0), (1, 2, 4.0)]

    def test_later_apps_see_consumed_capacity(self, single_edge):
        first = AppDescriptor(0, [1])
        route_apps(single_edge, [first], 1.0, quantum=1.0, k=1)
        second = AppDescriptor(0, [1])
        assert route_apps(single_edge, [second], 1.0, quantum=1.0, k=1) == 0.0
        assert second.allocations == []
        assert second.yen == 1

    def test_outputs_accumulate_over_calls(self, single_edge):
        app = AppDescriptor(0, [1])
        route_apps(single_edge, [app], 1.0, quantum=1.0, k=1)
        route_apps(single_edge, [app], 1.0, quantum=1.0, k=1)
        assert app.gross_rate == 10.0
        assert app.yen == 3
        assert app.deficit == 1.0

    def test_searches_do_not_grow_with_capacity(self):
        #      [20000]     [20000]
        #  0 ─────────► 1 ─────────► 2
        #  └──────────[20000]────────▲
        g = CapacityGraph.from_weights(
            [(0, 1, 20000.0), (1, 2, 20000.0), (0, 2, 20000.0)]
        )
        app = AppDescriptor(0, [2])
        allocated = route_apps(g, [app], 1.0, quantum=1.0, k=3)
        assert allocated == 40000.0
        assert app.allocations == [
            AppAllocation(20000.0, 20000.0, (2,)),
            AppAllocation(20000.0, 20000.0, (1, 2)),
        ]
        assert app.yen == 3
        assert app.deficit == 1.0
        assert g.num_edges() == 0

    def test_priority_share_on_large_capacity(self):
        g = CapacityGraph.from_weights([(0, 1, 30000.0)])
        high = AppDescriptor(0, [1], priority=2.0)
        low = AppDescriptor(0, [1], priority=1.0)
        route_apps(g, [high, low], 1.0, quantum=1.0, k=1)
        assert high.gross_rate == 20000.0
        assert low.gross_rate == 10000.0
        assert high.yen + low.yen <= 6

    def test_empty_batch(self, line1):
        assert route_apps(line1, [], 1.0, quantum=1.0, k=1) == 0.0
        assert line1.weights() == [(0, 1, 5.0), (1, 2, 3.0)]

    @pytest.mark.parametrize(
        "bad_app,match",
        [
            (AppDescriptor(9, [1]), "invalid host"),
            (AppDescriptor(0, [9]), "invalid peer"),
            (AppDescriptor(0, [0, 1]), "among the peers"),
            (AppDescriptor(0, []), "no peers"),
            (AppDescriptor(0, [1], priority=0.0), "invalid priority"),
        ],
    )
    def test_malformed_app_leaves_graph_untouched(self, line1, bad_app, match):
        good = AppDescriptor(0, [1])
        with pytest.raises(MalformedRequestError, match=match):
            route_apps(line1, [good, bad_app], 1.0, quantum=1.0, k=1)
        assert line1.weights() == [(0, 1, 5.0), (1, 2, 3.0)]
        assert good.allocations == []

    @pytest.mark.parametrize("quantum,k", [(0.0, 1), (-1.0, 1), (1.0, 0)])
    def test_invalid_parameters(self, line1, quantum, k):
        with pytest.raises(ConfigurationError):
            route_apps(line1, [AppDescriptor(0, [1])], 1.0, quantum=quantum, k=k)

    def test_gross_rates_fit_in_capacity(self, random_graph):
        rng = random.Random(3)
        total_before = random_graph.total_capacity()
        apps = []
        for _ in range(5):
            host, *peers = rng.sample(range(random_graph.num_nodes()), 3)
            apps.append(AppDescriptor(host, peers, priority=rng.choice([1.0, 2.0])))

        allocated = route_apps(random_graph, apps, 1.0, quantum=2.0, k=2)

        assert all(capacity > 0 for _, _, capacity in random_graph.weights())
        consumed = sum(
            alloc.gross_rate * len(alloc.path)
            for app in apps
            for alloc in app.allocations
        )
        assert total_before - random_graph.total_capacity() == pytest.approx(consumed)
        assert allocated == pytest.approx(sum(app.gross_rate for app in apps))
        for app in apps:
            assert app.deficit <= 2.0 * app.priority
            for alloc in app.allocations:
                assert alloc.path[-1] in app.peers
