# commanlp/core/data_structures.py
from pydantic import BaseModel, ConfigDict, model_validator
from typing import Tuple


class Span(BaseModel):
    """
    Размеченный отрезок предложения (чанк, именованная сущность, аргумент SRL).
    Координаты - индексы токенов, end не включается.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    start: int
    end: int

    @model_validator(mode='after')
    def check_span(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid span for '{self.label}': {self.start}-{self.end}")
        return self

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end

    def covers_token(self, token_id: int) -> bool:
        return self.start <= token_id < self.end

    def __len__(self):
        return self.end - self.start


class TreeNode(Span):
    """
    Узел дерева составляющих. Лист (is_leaf) - это само слово,
    его родитель - препретерминал с POS-меткой.
    """
    node_id: int
    is_leaf: bool = False
