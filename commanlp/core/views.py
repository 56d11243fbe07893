# commanlp/core/views.py
import re
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Sequence

import networkx as nx

from .data_structures import Span, TreeNode

logger = logging.getLogger(__name__)

# Названия представлений внутри AnnotationBundle
POS = "pos"
SHALLOW_PARSE = "chunks"
PARSE = "parse"
NER = "ner"
SRL_VERB = "srl_verb"
SRL_NOM = "srl_nom"
SRL_PREP = "srl_prep"

_BRACKET_TOKEN_RE = re.compile(r"\(|\)|[^\s()]+")


class TokenLabelView:
    """Одна метка на токен (POS-теги)."""

    def __init__(self, labels: Sequence[str]):
        self.labels = list(labels)

    def get_label(self, token_id: int) -> str:
        # Отрицательные индексы в Python "заворачиваются" - здесь это ошибка вызывающего
        if token_id < 0 or token_id >= len(self.labels):
            raise IndexError(f"Token {token_id} out of range for view of {len(self.labels)} tokens")
        return self.labels[token_id]

    def __len__(self):
        return len(self.labels)


class SpanLabelView:
    """
    Набор размеченных отрезков (чанки, NER).
    Отрезки могут быть вложенными; порядок хранения - порядок добавления.
    """

    def __init__(self, spans: Sequence[Span] = ()):
        self.constituents: List[Span] = list(spans)

    def starting_in(self, start: int, end: int) -> List[Span]:
        """Отрезки, начало которых лежит в [start, end)."""
        return [c for c in self.constituents if start <= c.start < end]

    def get_constituents_covering(self, span: Span) -> List[Span]:
        """
        Отрезки, покрывающие хотя бы один токен span.
        Каждый отрезок попадает в результат один раз, в порядке токенов.
        """
        output: List[Span] = []
        for token_id in range(span.start, span.end):
            for c in self.constituents:
                if c.covers_token(token_id) and c not in output:
                    output.append(c)
        return output

    def get_labels_covering(self, span: Span) -> List[str]:
        return [c.label for c in self.get_constituents_covering(span)]

    def __len__(self):
        return len(self.constituents)


@dataclass
class Predicate:
    span: Span
    lemma: str
    arguments: List[Span] = field(default_factory=list)


class PredicateArgumentView:
    """Структуры предикат-аргумент (SRL). Метка аргумента - название роли (A0, AM-TMP...)."""

    def __init__(self, predicates: Sequence[Predicate] = ()):
        self._predicates = list(predicates)

    def iter_arguments(self):
        """Пары (лемма предиката, аргумент) в порядке перечисления предикатов."""
        for pred in self._predicates:
            for arg in pred.arguments:
                yield pred.lemma, arg

    def __len__(self):
        return len(self._predicates)


class TreeView:
    """
    Дерево составляющих поверх токенов предложения.
    Хранится как nx.DiGraph (родитель -> ребёнок), порядок детей - порядок вставки рёбер,
    то есть исходный порядок слева направо.
    """

    def __init__(self, graph: nx.DiGraph, root_id: int):
        self.graph = graph
        self.root_id = root_id

        # Предвычисленные индексы: лист по токену и позиция узла среди братьев
        self._leaves: Dict[int, TreeNode] = {}
        self._child_index: Dict[int, int] = {}
        for node_id in graph.nodes:
            node = self.node(node_id)
            if node.is_leaf:
                self._leaves[node.start] = node
            for i, child_id in enumerate(graph.successors(node_id)):
                self._child_index[child_id] = i

    @classmethod
    def from_bracketed(cls, text: str, tokens: Optional[Sequence[str]] = None) -> "TreeView":
        """
        Строит дерево из скобочной записи Penn Treebank: (S (NP (PRP I)) (VP (VBD left)) ...).
        Пустая внешняя скобка "( (S ...) )" снимается.
        """
        items = _BRACKET_TOKEN_RE.findall(text)
        if not items or items[0] != "(":
            raise ValueError(f"Not a bracketed tree: {text[:50]!r}")

        graph = nx.DiGraph()
        stack = []  # (node_id, label, start)
        pending_children: Dict[int, List[int]] = {}
        next_id = 0
        token_pos = 0
        root_id = None

        i = 0
        while i < len(items):
            item = items[i]
            if item == "(":
                # Метка может отсутствовать (внешняя скобка PTB)
                label = ""
                if i + 1 < len(items) and items[i + 1] not in ("(", ")"):
                    label = items[i + 1]
                    i += 1
                stack.append((next_id, label, token_pos))
                pending_children[next_id] = []
                next_id += 1
            elif item == ")":
                if not stack:
                    raise ValueError(f"Unbalanced brackets in tree: {text[:50]!r}")
                node_id, label, start = stack.pop()
                if token_pos == start:
                    raise ValueError(f"Empty constituent '{label}' in tree: {text[:50]!r}")
                graph.add_node(node_id, node=TreeNode(label=label, start=start, end=token_pos, node_id=node_id))
                for child_id in pending_children.pop(node_id):
                    graph.add_edge(node_id, child_id)
                if stack:
                    pending_children[stack[-1][0]].append(node_id)
                else:
                    root_id = node_id
            else:
                # Терминал - слово
                if not stack:
                    raise ValueError(f"Word outside of brackets in tree: {text[:50]!r}")
                leaf_id = next_id
                next_id += 1
                graph.add_node(leaf_id, node=TreeNode(
                    label=item, start=token_pos, end=token_pos + 1, node_id=leaf_id, is_leaf=True
                ))
                pending_children[stack[-1][0]].append(leaf_id)
                token_pos += 1
            i += 1

        if stack or root_id is None:
            raise ValueError(f"Unbalanced brackets in tree: {text[:50]!r}")

        # Снимаем безымянную внешнюю скобку
        root_children = list(graph.successors(root_id))
        if graph.nodes[root_id]["node"].label == "" and len(root_children) == 1:
            graph.remove_node(root_id)
            root_id = root_children[0]

        if tokens is not None and len(tokens) != token_pos:
            logger.warning(
                f"Token mismatch: sentence has {len(tokens)} tokens, parse tree has {token_pos} leaves"
            )

        return cls(graph, root_id)

    def node(self, node_id: int) -> TreeNode:
        return self.graph.nodes[node_id]["node"]

    @property
    def root(self) -> TreeNode:
        return self.node(self.root_id)

    @property
    def n_leaves(self) -> int:
        return len(self._leaves)

    def leaf(self, token_id: int) -> Optional[TreeNode]:
        return self._leaves.get(token_id)

    def parent(self, node: TreeNode) -> Optional[TreeNode]:
        for parent_id in self.graph.predecessors(node.node_id):
            return self.node(parent_id)
        return None

    def children(self, node: TreeNode) -> List[TreeNode]:
        return [self.node(c) for c in self.graph.successors(node.node_id)]

    def get_parse_phrase(self, leaf: TreeNode) -> Optional[TreeNode]:
        """Фраза непосредственно над листом (препретерминал)."""
        return self.parent(leaf)

    def sibling(self, node: TreeNode, distance: int, direction: int) -> Optional[TreeNode]:
        """
        Идёт на distance шагов по соседним братьям узла (direction = -1 влево, +1 вправо).
        Каждый шаг обязан попасть в непосредственно примыкающий узел, иначе None.
        """
        current = node
        if distance <= 0:
            return current

        parent = self.parent(node)
        if parent is None:
            return None
        siblings = self.children(parent)
        index = self._child_index[node.node_id]

        for _ in range(distance):
            index += direction
            if index < 0 or index >= len(siblings):
                return None
            candidate = siblings[index]
            adjacent = candidate.end == current.start if direction < 0 else candidate.start == current.end
            if not adjacent:
                return None
            current = candidate
        return current


@dataclass
class AnnotationBundle:
    """
    Все представления одного предложения (аналог TextAnnotation).
    Отсутствующее представление - None; обращение к нему через get_view() даёт ошибку.
    """
    tokens: List[str]
    pos: Optional[TokenLabelView] = None
    chunks: Optional[SpanLabelView] = None
    parse: Optional[TreeView] = None
    ner: Optional[SpanLabelView] = None
    srl_verb: Optional[PredicateArgumentView] = None
    srl_nom: Optional[PredicateArgumentView] = None
    srl_prep: Optional[PredicateArgumentView] = None

    def get_view(self, name: str):
        view = getattr(self, name, None)
        if view is None:
            raise ValueError(f"View '{name}' is not available in this annotation bundle")
        return view

    def has_view(self, name: str) -> bool:
        return getattr(self, name, None) is not None
