# commanlp/ingestion/schema.py
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from commanlp.core.data_structures import Span
from commanlp.core.views import (
    AnnotationBundle, TokenLabelView, SpanLabelView, TreeView, PredicateArgumentView, Predicate
)


class SpanRecord(BaseModel):
    label: str
    start: int
    end: int

    def to_span(self) -> Span:
        return Span(label=self.label, start=self.start, end=self.end)


class PredicateRecord(BaseModel):
    """Предикат SRL: лемма, его позиция и аргументы (label = название роли)."""
    lemma: str
    start: int
    end: int
    arguments: List[SpanRecord] = Field(default_factory=list)

    def to_predicate(self) -> Predicate:
        return Predicate(
            span=Span(label=self.lemma, start=self.start, end=self.end),
            lemma=self.lemma,
            arguments=[a.to_span() for a in self.arguments]
        )


class AnnotationRecord(BaseModel):
    """
    Сериализованная разметка предложения (формат JSONL).
    Любое представление может отсутствовать.
    """
    pos: Optional[List[str]] = None
    chunks: Optional[List[SpanRecord]] = None
    parse: Optional[str] = None  # Скобочная запись PTB
    ner: Optional[List[SpanRecord]] = None
    srl_verb: Optional[List[PredicateRecord]] = None
    srl_nom: Optional[List[PredicateRecord]] = None
    srl_prep: Optional[List[PredicateRecord]] = None

    def to_bundle(self, tokens: List[str]) -> AnnotationBundle:
        if self.pos is not None and len(self.pos) != len(tokens):
            raise ValueError(f"POS view has {len(self.pos)} tags for {len(tokens)} tokens")

        def spans(records):
            return None if records is None else SpanLabelView([r.to_span() for r in records])

        def predicates(records):
            return None if records is None else PredicateArgumentView([r.to_predicate() for r in records])

        return AnnotationBundle(
            tokens=list(tokens),
            pos=TokenLabelView(self.pos) if self.pos is not None else None,
            chunks=spans(self.chunks),
            parse=TreeView.from_bracketed(self.parse, tokens) if self.parse else None,
            ner=spans(self.ner),
            srl_verb=predicates(self.srl_verb),
            srl_nom=predicates(self.srl_nom),
            srl_prep=predicates(self.srl_prep),
        )


class CommaRecord(BaseModel):
    position: int
    role: Optional[str] = None


class SentenceRecord(BaseModel):
    """Одно предложение корпуса: текст, запятые и разметка (предсказанная и, возможно, золотая)."""
    id: Optional[str] = None
    text: str
    commas: List[CommaRecord] = Field(default_factory=list)
    annotations: AnnotationRecord = Field(default_factory=AnnotationRecord)
    gold_annotations: Optional[AnnotationRecord] = None

    @model_validator(mode='after')
    def check_positions(self):
        n_tokens = len(self.text.split())
        for c in self.commas:
            if c.position < 0 or c.position >= n_tokens:
                raise ValueError(f"Comma position {c.position} out of range ({n_tokens} tokens)")
        return self

    @property
    def tokens(self) -> List[str]:
        return self.text.split()
