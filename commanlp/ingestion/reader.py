# commanlp/ingestion/reader.py
import json
import logging
from pathlib import Path
from typing import Generator, List, Optional, Sequence, Union

from pydantic import ValidationError

from commanlp.comma import Comma
from commanlp.config import CommaConfig
from commanlp.ingestion.schema import SentenceRecord

logger = logging.getLogger(__name__)


def find_comma_positions(tokens: Sequence[str]) -> List[int]:
    """Индексы всех токенов-запятых."""
    return [i for i, t in enumerate(tokens) if t == ","]


def read_jsonl(path: Union[str, Path]) -> Generator[SentenceRecord, None, None]:
    """
    Потоковое чтение корпуса: один JSON-объект (SentenceRecord) на строку.
    Некорректная запись - ошибка данных, падаем с указанием строки.
    """
    path = Path(path)
    logger.info(f"Reading {path.name}")

    with open(path, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield SentenceRecord(**json.loads(line))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.error(f"Invalid record at {path.name}:{line_no}: {e}")
                raise


def build_commas(record: SentenceRecord, config: Optional[CommaConfig] = None) -> List[Comma]:
    """
    Создаёт Comma для каждой запятой записи.
    Если запятые не перечислены, берутся все токены ',' (режим предсказания).
    Запятые без роли и без золотой разметки строятся конструктором для предсказания.
    """
    config = config or CommaConfig()
    tokens = record.tokens

    try:
        bundle = record.annotations.to_bundle(tokens)
        gold_bundle = record.gold_annotations.to_bundle(tokens) if record.gold_annotations else None
    except ValueError as e:
        logger.error(f"Cannot build annotations for sentence {record.id}: {e}")
        raise

    comma_records = record.commas
    if not comma_records:
        positions = find_comma_positions(tokens)
        logger.debug(f"Sentence {record.id}: no comma records, found {len(positions)} commas")
        return [Comma.for_prediction(p, record.text, bundle, config) for p in positions]

    commas = []
    for c in comma_records:
        if tokens[c.position] != ",":
            logger.warning(f"Sentence {record.id}: token {c.position} is '{tokens[c.position]}', not a comma")

        if c.role is None and gold_bundle is None:
            commas.append(Comma.for_prediction(c.position, record.text, bundle, config))
        else:
            commas.append(Comma(
                c.position, record.text, bundle,
                role=c.role, gold_annotations=gold_bundle, config=config
            ))
    return commas
