import sys
import json
import logging
import argparse
from collections import Counter
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from commanlp.comma import AnnotationMismatchError
from commanlp.config import load_config, DEFAULT_CONFIG_PATH
from commanlp.features import CommaFeatureExtractor
from commanlp.ingestion.reader import read_jsonl, build_commas
from commanlp.ingestion.conllu_reader import read_conllu

# Настройка логирования
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

console = Console()


def read_records(path: Path):
    if path.suffix == ".conllu":
        return read_conllu(path)
    return read_jsonl(path)


def write_rows(rows, output: Path, fmt: str):
    output.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "csv":
        df = pd.DataFrame(rows)
        if "srl" in df.columns:
            df["srl"] = df["srl"].apply(lambda roles: " ".join(roles) if isinstance(roles, list) else roles)
        df.to_csv(output, index=False)
    else:
        with open(output, 'w', encoding='utf-8') as f:
            for row in rows:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")


def print_role_table(rows):
    counts = Counter(row.get("role", "(unlabeled)") for row in rows)
    table = Table(title="Comma roles")
    table.add_column("Role")
    table.add_column("Count", justify="right")
    for role, count in counts.most_common():
        table.add_row(role, str(count))
    console.print(table)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Извлечение признаков запятых из размеченного корпуса.")
    parser.add_argument("--input", required=True, help="Путь к .jsonl или .conllu файлу")
    parser.add_argument("--output", default="data/processed/comma_features.jsonl", help="Файл вывода")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="YAML с секцией comma")
    parser.add_argument("--format", choices=["jsonl", "csv"], default="jsonl", help="Формат вывода")
    parser.add_argument("--window", type=int, default=2, help="Размер окна признаков")
    args = parser.parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        console.print(f"[bold red]Файл {input_path} не найден![/]")
        return 1

    config = load_config(args.config)
    extractor = CommaFeatureExtractor(window=args.window)

    commas = []
    try:
        for record in read_records(input_path):
            commas.extend(build_commas(record, config))
    except ValueError as e:
        # Некорректная запись корпуса (схема, длины представлений, дерево)
        console.print(f"[bold red]Invalid input in {input_path.name}: {e}[/]")
        return 1
    logger.info(f"Built {len(commas)} commas from {input_path.name}")

    try:
        rows = extractor.extract_many(commas)
    except AnnotationMismatchError as e:
        # Разметка не согласована с текстом - дальше считать нельзя
        console.print(f"[bold red]Annotation mismatch: {e}[/]")
        return 1

    write_rows(rows, Path(args.output), args.format)
    console.print(f"Признаки сохранены в {args.output}")
    print_role_table(rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
