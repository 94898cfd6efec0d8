"""Tests for cycle detection."""

from cascade.cycles import find_cycle
from cascade.graph import build_graph
from cascade.models import DependencyEdge


def edges(*pairs: str) -> list[DependencyEdge]:
    """Build FS edges from "A->B" strings."""
    return [DependencyEdge(*pair.split("->")) for pair in pairs]


class TestFindCycle:
    """Test cycle detection over dependency graphs."""

    def test_three_node_cycle_path(self) -> None:
        graph = build_graph(edges("A->B", "B->C", "C->A"))
        assert find_cycle(graph) == ["A", "B", "C", "A"]

    def test_two_node_cycle(self) -> None:
        assert find_cycle(build_graph(edges("A->B", "B->A"))) == ["A", "B", "A"]

    def test_chain_is_acyclic(self) -> None:
        assert find_cycle(build_graph(edges("A->B", "B->C", "C->D"))) is None

    def test_diamond_is_not_a_cycle(self) -> None:
        """A node reached twice through different branches is not a cycle."""
        graph = build_graph(edges("A->B", "A->C", "B->D", "C->D"))
        assert find_cycle(graph) is None

    def test_cycle_away_from_first_node(self) -> None:
        graph = build_graph(edges("X->Y", "P->Q", "Q->R", "R->Q"))
        assert find_cycle(graph) == ["Q", "R", "Q"]

    def test_empty_graph(self) -> None:
        assert find_cycle(build_graph([])) is None

    def test_long_chain_does_not_recurse(self) -> None:
        chain = [DependencyEdge(f"t{i}", f"t{i + 1}") for i in range(1500)]
        assert find_cycle(build_graph(chain)) is None
