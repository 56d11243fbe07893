from typing import List, Optional, Sequence

from commanlp.core.data_structures import Span

OUTSIDE_TAGS = {"O", "_", ""}


def decode_bio(tags: Sequence[Optional[str]]) -> List[Span]:
    """
    Превращает BIO/IOB-теги (B-NP, I-NP, O) в отрезки.
    I- без предшествующего B- с той же меткой открывает новый отрезок (IOB1).
    """
    spans = []
    label, start = None, None

    def close(end):
        if label is not None:
            spans.append(Span(label=label, start=start, end=end))

    for i, tag in enumerate(tags):
        tag = tag or "O"
        if tag in OUTSIDE_TAGS:
            close(i)
            label, start = None, None
            continue

        prefix, _, tag_label = tag.partition("-")
        if not tag_label:
            # Тег без префикса считаем началом отрезка
            prefix, tag_label = "B", tag

        if prefix == "I" and tag_label == label:
            continue

        close(i)
        label, start = tag_label, i

    close(len(tags))
    return spans
