import logging
from typing import Any, Dict, Iterable, List

from tqdm import tqdm

from commanlp.comma import Comma, SENTENCE_START, SENTENCE_END
from commanlp.core import views

logger = logging.getLogger(__name__)


class CommaFeatureExtractor:
    """
    Собирает символьные признаки одной запятой в плоский словарь:
    окна слов, POS-тегов, чанков и фраз дерева, плюс роли SRL.
    Группы, для которых в разметке нет представления, пропускаются.
    """

    def __init__(self, window: int = 2):
        if window < 1:
            raise ValueError(f"Window must be positive, got {window}")
        self.window = window

    def extract(self, comma: Comma) -> Dict[str, Any]:
        features: Dict[str, Any] = {"position": comma.position}
        distances = range(1, self.window + 1)

        for d in distances:
            features[f"word_l{d}"] = comma.word_to_left(d)
            features[f"word_r{d}"] = comma.word_to_right(d)

        if comma.has_view(views.POS):
            n_tokens = len(comma.tokens)
            for d in distances:
                # Тег за границей предложения - та же заглушка, что и для слов
                left = comma.position - d
                right = comma.position + d
                features[f"pos_l{d}"] = comma.pos_to_left(d) if left >= 0 else SENTENCE_START
                features[f"pos_r{d}"] = comma.pos_to_right(d) if right < n_tokens else SENTENCE_END

        if comma.has_view(views.SHALLOW_PARSE):
            for d in distances:
                features[f"chunk_l{d}"] = comma.notation(comma.chunk_to_left(d))
                features[f"chunk_r{d}"] = comma.notation(comma.chunk_to_right(d))

        if comma.has_view(views.PARSE):
            features["parent"] = comma.notation(comma.comma_parent())
            for d in distances:
                features[f"phrase_l{d}"] = comma.notation(comma.phrase_to_left_of_comma(d))
                features[f"phrase_r{d}"] = comma.notation(comma.phrase_to_right_of_comma(d))
                features[f"parent_phrase_l{d}"] = comma.notation(comma.phrase_to_left_of_parent(d))
                features[f"parent_phrase_r{d}"] = comma.notation(comma.phrase_to_right_of_parent(d))

        if all(comma.has_view(v) for v in (views.SRL_VERB, views.SRL_NOM, views.SRL_PREP)):
            features["srl"] = comma.containing_srls()

        if comma.role is not None:
            features["role"] = comma.role

        return features

    def extract_many(self, commas: Iterable[Comma], progress: bool = True) -> List[Dict[str, Any]]:
        rows = []
        for comma in tqdm(commas, desc="Commas", unit="comma", disable=not progress):
            rows.append(self.extract(comma))
        logger.info(f"Extracted features for {len(rows)} commas")
        return rows
