"""
Tests for the module dependency graph.

Tests construction-time validation (unknown references, self-loops, cycles)
and the dependents queries used by impact analysis.
"""

import pytest

from remediation_planner.execution.graph import (
    DependencyGraph, build_graph, default_dependency_graph, graph_from_config
)
from remediation_planner.utils.config import _load_config_defaults
from remediation_planner.utils.constants import MODULE_CATALOG
from remediation_planner.utils.exceptions import (
    ConfigurationError, InvalidGraphError, UnknownModuleError
)


@pytest.mark.unit
class TestGraphValidation:
    """Test that invalid graphs are rejected at construction."""

    def test_unknown_dependency_target(self):
        with pytest.raises(InvalidGraphError, match="unknown module"):
            DependencyGraph(['A', 'B'], {'A': ['Ghost']})

    def test_unknown_dependency_source(self):
        with pytest.raises(InvalidGraphError, match="unknown module 'Ghost'"):
            DependencyGraph(['A', 'B'], {'Ghost': ['A']})

    def test_self_loop(self):
        with pytest.raises(InvalidGraphError, match="depends on itself"):
            DependencyGraph(['A'], {'A': ['A']})

    def test_two_node_cycle(self):
        with pytest.raises(InvalidGraphError, match="cycle") as exc_info:
            DependencyGraph(['A', 'B', 'C'], {'A': ['B'], 'B': ['A']})

        assert 'A' in str(exc_info.value)
        assert 'B' in str(exc_info.value)
        assert 'C' not in str(exc_info.value).split(':')[-1]

    def test_long_cycle(self):
        with pytest.raises(InvalidGraphError, match="cycle"):
            DependencyGraph(['A', 'B', 'C', 'D'], {'A': ['B'], 'B': ['C'], 'C': ['D'], 'D': ['A']})

    def test_empty_graph(self):
        graph = DependencyGraph([])
        assert len(graph) == 0

    def test_build_graph_validates(self):
        with pytest.raises(InvalidGraphError):
            build_graph(['A'], {'A': ['A']})

    def test_diamond_is_valid(self):
        graph = DependencyGraph(['Base', 'L', 'R', 'Top'],
                                {'L': ['Base'], 'R': ['Base'], 'Top': ['L', 'R']})
        assert graph.dependencies('Top') == frozenset({'L', 'R'})


@pytest.mark.unit
class TestGraphQueries:
    """Test dependency and dependents lookups."""

    def test_default_graph_nodes(self, default_graph):
        assert default_graph.nodes == frozenset(MODULE_CATALOG)
        assert 'BloatwareRemoval' in default_graph
        assert 'Defrag' not in default_graph

    def test_nodes_without_edges_have_no_dependencies(self, wide_graph):
        assert wide_graph.dependencies('Lonely') == frozenset()
        assert wide_graph.direct_dependents('Lonely') == frozenset()

    def test_direct_dependents(self, default_graph):
        assert default_graph.direct_dependents('BloatwareRemoval') == frozenset(
            {'SystemOptimization', 'TelemetryDisable', 'EssentialApps'}
        )
        assert default_graph.direct_dependents('SecurityEnhancement') == frozenset({'WindowsUpdates'})
        assert default_graph.direct_dependents('AppUpgrade') == frozenset()

    def test_transitive_dependents(self, wide_graph):
        assert wide_graph.transitive_dependents('Core') == {'A', 'B', 'C', 'D', 'E'}
        assert wide_graph.transitive_dependents('A') == {'D', 'E'}
        assert wide_graph.transitive_dependents('E') == set()

    def test_transitive_excludes_start(self, default_graph):
        for name in MODULE_CATALOG:
            assert name not in default_graph.transitive_dependents(name)

    def test_diamond_visits_once(self):
        graph = DependencyGraph(['Base', 'L', 'R', 'Top'],
                                {'L': ['Base'], 'R': ['Base'], 'Top': ['L', 'R']})
        assert graph.transitive_dependents('Base') == {'L', 'R', 'Top'}

    @pytest.mark.parametrize("method", ['dependencies', 'direct_dependents', 'transitive_dependents'])
    def test_unknown_module_raises(self, default_graph, method):
        with pytest.raises(UnknownModuleError) as exc_info:
            getattr(default_graph, method)('Defrag')
        assert exc_info.value.module_name == 'Defrag'
        assert str(exc_info.value) == "Unknown module: 'Defrag'"

    def test_to_dict_sorted(self, default_graph):
        data = default_graph.to_dict()

        assert list(data) == sorted(MODULE_CATALOG)
        assert data['AppUpgrade'] == ['EssentialApps']
        assert data['BloatwareRemoval'] == []

    def test_queries_do_not_mutate(self, wide_graph):
        before = wide_graph.to_dict()
        wide_graph.transitive_dependents('Core')
        wide_graph.direct_dependents('A')
        assert wide_graph.to_dict() == before


@pytest.mark.unit
class TestGraphFromConfig:
    """Test building the graph from the modules.dependencies section."""

    def test_defaults_match_default_graph(self):
        config = _load_config_defaults({})
        assert graph_from_config(config).to_dict() == default_dependency_graph().to_dict()

    def test_custom_edges(self):
        config = _load_config_defaults({
            'modules': {'dependencies': {'AppUpgrade': ['EssentialApps', 'WindowsUpdates']}}
        })
        graph = graph_from_config(config)

        assert graph.dependencies('AppUpgrade') == frozenset({'EssentialApps', 'WindowsUpdates'})
        assert graph.nodes == frozenset(MODULE_CATALOG)

    def test_cycle_in_config(self):
        config = _load_config_defaults({
            'modules': {'dependencies': {
                'BloatwareRemoval': ['AppUpgrade'],
                'AppUpgrade': ['EssentialApps'],
                'EssentialApps': ['BloatwareRemoval'],
            }}
        })
        with pytest.raises(InvalidGraphError, match="cycle"):
            graph_from_config(config)

    def test_bad_shape_in_config(self):
        config = _load_config_defaults({'modules': {'dependencies': ['BloatwareRemoval']}})
        with pytest.raises(ConfigurationError):
            graph_from_config(config)
