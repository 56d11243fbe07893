import logging
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Определение базовых путей относительно корня проекта
BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = BASE_DIR / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "comma.yaml"


class CommaConfig(BaseModel):
    """
    Переключатели извлечения признаков запятой.
    Неизменяемый объект: задаётся один раз и передаётся в каждый Comma.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    use_gold: bool = False  # Брать золотые представления (POS, чанки, дерево, SRL) вместо предсказанных
    lexicalise_ner: bool = False  # Добавлять NER-теги к меткам фраз
    lexicalise_pos: bool = False  # Добавлять POS-теги покрытых токенов к меткам фраз


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> CommaConfig:
    """
    Читает секцию `comma:` из YAML-файла.
    Если файла нет, возвращает настройки по умолчанию.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Config file {path} not found. Using defaults.")
        return CommaConfig()

    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    section = raw.get("comma", {}) or {}
    config = CommaConfig(**section)
    logger.info(f"Loaded comma config from {path}: {config.model_dump()}")
    return config
