# commanlp/ingestion/conllu_reader.py
import re
import logging
from pathlib import Path
from typing import Dict, Generator, List, Union

from conllu import parse_incr
from conllu.models import TokenList

from commanlp.ingestion.bio import decode_bio
from commanlp.ingestion.schema import AnnotationRecord, CommaRecord, SentenceRecord, SpanRecord

logger = logging.getLogger(__name__)

CHUNK_KEY = "Chunk"
NE_KEY = "NE"

_WHITESPACE_RE = re.compile(r"\s+")


def parse_comma_roles(value: str) -> List[CommaRecord]:
    """
    Разбор метаполя `# comma_roles = 2:Attribute;7:List`.
    Позиции - 0-based индексы токенов предложения, а не 1-based ID из колонки CoNLL-U
    (запятая с ID 2 записывается как `1:`).
    Роль может содержать пробелы ("Entity attribute").
    """
    records = []
    for item in value.split(";"):
        item = item.strip()
        if not item:
            continue
        position, _, role = item.partition(":")
        records.append(CommaRecord(position=int(position), role=role.strip() or None))
    return records


def _misc_column(tokens: List[dict], key: str) -> List[str]:
    column = []
    for t in tokens:
        misc = t.get("misc") or {}
        column.append(misc.get(key) or "O")
    return column


def sentence_from_tokenlist(token_list: TokenList) -> SentenceRecord:
    """
    Преобразует предложение CoNLL-U в SentenceRecord:
    FORM - токены, XPOS (или UPOS) - POS, MISC Chunk=/NE= - BIO-отрезки,
    `# parse` - дерево, `# comma_roles` - золотые роли. SRL в CoNLL-U нет.
    """
    # Пропуск мульти-словных токенов (1-2) и пустых узлов (1.1)
    tokens = [t for t in token_list if isinstance(t['id'], int)]

    # CoNLL-U v2 допускает пробелы в FORM ("10 000"); предложение же делится по пробелам
    forms = []
    for t in tokens:
        form = _WHITESPACE_RE.sub("_", t['form'])
        if form != t['form']:
            logger.warning(f"Sentence {token_list.metadata.get('sent_id')}: form {t['form']!r} -> {form!r}")
        forms.append(form)
    pos = [t.get('xpos') or t.get('upos') or "_" for t in tokens]

    chunks = [SpanRecord(**s.model_dump()) for s in decode_bio(_misc_column(tokens, CHUNK_KEY))]
    entities = [SpanRecord(**s.model_dump()) for s in decode_bio(_misc_column(tokens, NE_KEY))]

    metadata: Dict[str, str] = token_list.metadata
    roles_value = metadata.get("comma_roles")
    commas = parse_comma_roles(roles_value) if roles_value else []

    return SentenceRecord(
        id=metadata.get("sent_id"),
        text=" ".join(forms),
        commas=commas,
        annotations=AnnotationRecord(
            pos=pos,
            chunks=chunks,
            parse=metadata.get("parse"),
            ner=entities,
            srl_verb=[],
            srl_nom=[],
            srl_prep=[],
        )
    )


def read_conllu(path: Union[str, Path]) -> Generator[SentenceRecord, None, None]:
    """Потоковое чтение CoNLL-U файла."""
    path = Path(path)
    logger.info(f"Парсинг файла: {path.name}")

    with open(path, 'r', encoding='utf-8') as f:
        for token_list in parse_incr(f):
            sid = token_list.metadata.get('sent_id', 'UNKNOWN')
            try:
                record = sentence_from_tokenlist(token_list)
            except ValueError as e:
                logger.error(f"Invalid sentence {sid} in {path.name}: {e}")
                raise

            if record.annotations.parse is None:
                logger.warning(f"Sentence {sid} has no '# parse' metadata; phrase features unavailable")
            yield record
