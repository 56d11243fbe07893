import unittest
import networkx as nx
from pydantic import ValidationError
from commanlp.core.data_structures import Span, TreeNode
from commanlp.core.views import AnnotationBundle, SpanLabelView, TokenLabelView, TreeView


class TestSpan(unittest.TestCase):
    def test_invalid_span(self):
        with self.assertRaises(ValidationError):
            Span(label="NP", start=3, end=3)
        with self.assertRaises(ValidationError):
            Span(label="NP", start=-1, end=2)

    def test_covers_token(self):
        span = Span(label="NP", start=2, end=4)
        self.assertTrue(span.covers_token(3))
        self.assertFalse(span.covers_token(4))
        self.assertEqual(len(span), 2)


class TestTreeView(unittest.TestCase):
    def setUp(self):
        self.tree = TreeView.from_bracketed(
            "( (S (NP (DT The) (NN dog)) (VP (VBD barked)) (. .)) )"
        )

    def test_outer_bracket_removed(self):
        root = self.tree.root
        self.assertEqual(root.label, "S")
        self.assertEqual(root.span, (0, 4))
        self.assertIsNone(self.tree.parent(root))

    def test_leaves_and_phrases(self):
        leaf = self.tree.leaf(1)
        self.assertTrue(leaf.is_leaf)
        self.assertEqual(leaf.label, "dog")

        phrase = self.tree.get_parse_phrase(leaf)
        self.assertEqual(phrase.label, "NN")
        self.assertEqual(self.tree.parent(phrase).label, "NP")
        self.assertIsNone(self.tree.leaf(4))

    def test_children_order(self):
        labels = [c.label for c in self.tree.children(self.tree.root)]
        self.assertEqual(labels, ["NP", "VP", "."])

    def test_leaf_count(self):
        self.assertEqual(self.tree.n_leaves, 4)

    def test_sibling_walk(self):
        np = self.tree.children(self.tree.root)[0]
        self.assertEqual(self.tree.sibling(np, 1, 1).label, "VP")
        self.assertEqual(self.tree.sibling(np, 2, 1).label, ".")
        self.assertIsNone(self.tree.sibling(np, 3, 1))
        self.assertIsNone(self.tree.sibling(np, 1, -1))
        # Нулевое расстояние - сам узел
        self.assertEqual(self.tree.sibling(np, 0, 1), np)

    def test_sibling_walk_stops_at_gap(self):
        # Братья с разрывом (токен 2 не покрыт): шаг должен попадать в соседний узел
        graph = nx.DiGraph()
        nodes = [
            TreeNode(label="S", start=0, end=4, node_id=0),
            TreeNode(label="A", start=0, end=1, node_id=1),
            TreeNode(label="B", start=1, end=2, node_id=2),
            TreeNode(label="C", start=3, end=4, node_id=3),
        ]
        for node in nodes:
            graph.add_node(node.node_id, node=node)
        for child_id in (1, 2, 3):
            graph.add_edge(0, child_id)
        tree = TreeView(graph, 0)

        a, b, c = tree.children(tree.root)
        self.assertEqual(tree.sibling(a, 1, 1), b)
        self.assertIsNone(tree.sibling(a, 2, 1))
        self.assertIsNone(tree.sibling(c, 1, -1))

    def test_malformed(self):
        with self.assertRaises(ValueError):
            TreeView.from_bracketed("(S (NP (NN dog))")
        with self.assertRaises(ValueError):
            TreeView.from_bracketed("dog")
        with self.assertRaises(ValueError):
            TreeView.from_bracketed("(S (NP) (NN dog))")


class TestSpanLabelView(unittest.TestCase):
    def setUp(self):
        self.view = SpanLabelView([
            Span(label="PER", start=0, end=2),
            Span(label="LOC", start=4, end=5),
            Span(label="MISC", start=1, end=3),
        ])

    def test_starting_in(self):
        labels = [c.label for c in self.view.starting_in(1, 5)]
        self.assertEqual(labels, ["LOC", "MISC"])

    def test_labels_covering(self):
        # Порядок по токенам, каждая сущность один раз
        self.assertEqual(self.view.get_labels_covering(Span(label="NP", start=0, end=3)), ["PER", "MISC"])
        self.assertEqual(self.view.get_labels_covering(Span(label="NP", start=3, end=4)), [])


class TestTokenLabelViewAndBundle(unittest.TestCase):
    def test_bounds(self):
        view = TokenLabelView(["DT", "NN"])
        self.assertEqual(view.get_label(1), "NN")
        with self.assertRaises(IndexError):
            view.get_label(-1)
        with self.assertRaises(IndexError):
            view.get_label(2)

    def test_missing_view(self):
        bundle = AnnotationBundle(tokens=["a"], pos=TokenLabelView(["DT"]))
        self.assertTrue(bundle.has_view("pos"))
        self.assertFalse(bundle.has_view("parse"))
        with self.assertRaises(ValueError):
            bundle.get_view("parse")


if __name__ == '__main__':
    unittest.main()
