import logging
from typing import List, Optional

from commanlp.config import CommaConfig
from commanlp.core.data_structures import Span, TreeNode
from commanlp.core import views
from commanlp.core.views import AnnotationBundle, TreeView

logger = logging.getLogger(__name__)

# Заглушки для слов за границами предложения
SENTENCE_START = "$$$"
SENTENCE_END = "###"
NULL = "NULL"

# Синонимы золотых ролей
ROLE_SYNONYMS = {
    "Entity attribute": "Attribute",
    "Entity substitute": "Substitute",
}


class AnnotationMismatchError(RuntimeError):
    """Разметка не согласована с предложением (в дереве нет узла для запятой)."""


def normalize_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    return ROLE_SYNONYMS.get(role, role)


class Comma:
    """
    Одно вхождение запятой в предложении и все направленные запросы к разметке вокруг неё.
    Позиция и токены неизменяемы; разметка только читается.
    """

    def __init__(
            self,
            position: int,
            sentence: str,
            annotations: AnnotationBundle,
            role: Optional[str] = None,
            gold_annotations: Optional[AnnotationBundle] = None,
            config: Optional[CommaConfig] = None
    ):
        self.tokens = tuple(sentence.split())
        if position < 0 or position >= len(self.tokens):
            raise ValueError(f"Comma position {position} is out of range for {len(self.tokens)} tokens")

        self.position = position
        self.role = normalize_role(role)
        self.annotations = annotations
        self.gold_annotations = gold_annotations
        self.config = config or CommaConfig()

        if self.config.use_gold and gold_annotations is None:
            raise ValueError("use_gold is enabled but no gold annotations were given")

        # Разметка должна относиться к этому же предложению
        for bundle in (annotations, gold_annotations):
            if bundle is not None and tuple(bundle.tokens) != self.tokens:
                raise ValueError(
                    f"Annotation tokens {bundle.tokens} do not match sentence tokens {list(self.tokens)}"
                )

    @classmethod
    def for_prediction(
            cls,
            position: int,
            sentence: str,
            annotations: AnnotationBundle,
            config: Optional[CommaConfig] = None
    ) -> "Comma":
        """Конструктор для предсказания: роли нет, золотой разметки заведомо нет."""
        config = (config or CommaConfig()).model_copy(update={"use_gold": False})
        return cls(position, sentence, annotations, config=config)

    def __repr__(self):
        return f"Comma({self.position}, role={self.role!r}, '{' '.join(self.tokens)}')"

    @property
    def _source(self) -> AnnotationBundle:
        """Разметка, из которой берутся POS, чанки, дерево и SRL."""
        return self.gold_annotations if self.config.use_gold else self.annotations

    def has_view(self, name: str) -> bool:
        # NER и предложный SRL всегда берутся из предсказанной разметки
        if name in (views.NER, views.SRL_PREP):
            return self.annotations.has_view(name)
        return self._source.has_view(name)

    # --- Слова ---

    def word_to_right(self, distance: int) -> str:
        if self.position + distance >= len(self.tokens):
            return SENTENCE_END
        return self.tokens[self.position + distance]

    def word_to_left(self, distance: int) -> str:
        if self.position - distance < 0:
            return SENTENCE_START
        return self.tokens[self.position - distance]

    # --- POS-теги ---
    # За границей предложения IndexError: в отличие от слов, заглушки здесь нет.

    def pos_to_left(self, distance: int) -> str:
        return self._source.get_view(views.POS).get_label(self.position - distance)

    def pos_to_right(self, distance: int) -> str:
        return self._source.get_view(views.POS).get_label(self.position + distance)

    # --- Чанки ---

    def chunk_to_right(self, distance: int) -> Optional[Span]:
        chunk_view = self._source.get_view(views.SHALLOW_PARSE)
        chunks = chunk_view.starting_in(self.position + 1, len(self.tokens))
        chunks.sort(key=lambda c: c.start)
        return self._nth(chunks, distance)

    def chunk_to_left(self, distance: int) -> Optional[Span]:
        chunk_view = self._source.get_view(views.SHALLOW_PARSE)
        chunks = chunk_view.starting_in(0, self.position + 1)
        chunks.sort(key=lambda c: c.start, reverse=True)
        return self._nth(chunks, distance)

    @staticmethod
    def _nth(items: list, distance: int):
        if distance <= 0 or distance > len(items):
            return None
        return items[distance - 1]

    # --- Фразы дерева составляющих ---

    def _parse_view(self) -> TreeView:
        return self._source.get_view(views.PARSE)

    def get_comma_constituent(self, parse_view: TreeView) -> TreeNode:
        """
        Узел дерева над запятой (препретерминал, покрывающий [position, position + 1)).
        Если его нет, разметка испорчена и продолжать нельзя.
        """
        sentence = ' '.join(self.tokens)
        if parse_view.n_leaves != len(self.tokens):
            logger.error(f"Parse tree has {parse_view.n_leaves} leaves for {len(self.tokens)} tokens: {sentence}")
            raise AnnotationMismatchError(
                f"Parse tree has {parse_view.n_leaves} leaves, sentence has {len(self.tokens)} tokens: '{sentence}'"
            )

        leaf = parse_view.leaf(self.position)
        if leaf is None or leaf.label != self.tokens[self.position]:
            found = leaf.label if leaf is not None else None
            logger.error(f"Parse tree leaf {self.position} is {found!r}, expected {self.tokens[self.position]!r}")
            raise AnnotationMismatchError(
                f"Parse tree leaf {self.position} is {found!r}, not {self.tokens[self.position]!r} in '{sentence}'"
            )

        phrase = parse_view.get_parse_phrase(leaf)
        if phrase is None or phrase.span != (self.position, self.position + 1):
            logger.error(f"No parse tree node covers comma at token {self.position}: {sentence}")
            raise AnnotationMismatchError(
                f"Parse tree has no phrase for token {self.position} in '{sentence}'"
            )
        return phrase

    def comma_parent(self) -> Optional[TreeNode]:
        parse_view = self._parse_view()
        return parse_view.parent(self.get_comma_constituent(parse_view))

    def phrase_to_left_of_comma(self, distance: int) -> Optional[TreeNode]:
        parse_view = self._parse_view()
        comma = self.get_comma_constituent(parse_view)
        return parse_view.sibling(comma, distance, -1)

    def phrase_to_right_of_comma(self, distance: int) -> Optional[TreeNode]:
        parse_view = self._parse_view()
        comma = self.get_comma_constituent(parse_view)
        return parse_view.sibling(comma, distance, 1)

    def phrase_to_left_of_parent(self, distance: int) -> Optional[TreeNode]:
        parse_view = self._parse_view()
        parent = parse_view.parent(self.get_comma_constituent(parse_view))
        if parent is None:
            return None
        return parse_view.sibling(parent, distance, -1)

    def phrase_to_right_of_parent(self, distance: int) -> Optional[TreeNode]:
        parse_view = self._parse_view()
        parent = parse_view.parent(self.get_comma_constituent(parse_view))
        if parent is None:
            return None
        return parse_view.sibling(parent, distance, 1)

    # --- SRL ---

    def containing_srls(self) -> List[str]:
        """
        Роли (лемма предиката + метка), аргументы которых начинаются не раньше запятой
        и заканчиваются после неё. Дубликаты между структурами не удаляются.
        """
        srl_source = self._source
        # Золотой разметки предложных предикатов нет - всегда предсказанная
        structures = [
            srl_source.get_view(views.SRL_VERB),
            srl_source.get_view(views.SRL_NOM),
            self.annotations.get_view(views.SRL_PREP),
        ]

        roles = []
        for pav in structures:
            for lemma, arg in pav.iter_arguments():
                if arg.end > self.position and arg.start >= self.position:
                    roles.append(lemma + arg.label)
        return roles

    # --- Нотация ---

    def named_entity_tag(self, node: Span) -> str:
        """NER-метки, покрывающие узел. Всегда из предсказанной разметки."""
        tags = self.annotations.get_view(views.NER).get_labels_covering(node)
        if not tags:
            return NULL
        return " ".join(tags)

    def notation(self, node: Optional[Span]) -> str:
        if node is None:
            return NULL

        notation = node.label
        if self.config.lexicalise_ner:
            notation += " -" + self.named_entity_tag(node)

        if self.config.lexicalise_pos:
            pos_view = self._source.get_view(views.POS)
            notation += " -"
            for token_id in range(node.start, node.end):
                notation += " " + pos_view.get_label(token_id)

        return notation
