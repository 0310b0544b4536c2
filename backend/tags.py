"""The work_done micro-format.

A report's work_done text is zero or more ``[label]`` markers followed by
free text, e.g. ``[PCR] [数据分析] ran gel``. A backslash escapes ``[``, ``]``
and ``\\`` so free text can carry literal brackets. Labels themselves may not
contain brackets or backslashes. An unmatched bracket is kept as text.
"""
from typing import NamedTuple

ACTIVITY_TAGS = [
    "细胞培养",
    "PCR",
    "Western Blot",
    "数据分析",
    "文献阅读",
    "写论文",
    "动物实验",
    "样本处理",
    "组会/汇报",
    "仪器调试",
    "试剂配制",
    "其他",
]

_ESCAPABLE = "[]\\"


class ParsedWork(NamedTuple):
    tags: list[str]
    supplement: str


def _find_label_end(text: str, start: int) -> int | None:
    """Index of the ``]`` closing a label that begins at ``start``, or None."""
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "]":
            return i if i > start else None
        if ch in "[\\":
            return None
    return None


def parse_work_done(text: str | None) -> ParsedWork:
    tags: list[str] = []
    rest: list[str] = []
    text = text or ""
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text) and text[i + 1] in _ESCAPABLE:
            rest.append(text[i + 1])
            i += 2
            continue
        if ch == "[":
            end = _find_label_end(text, i + 1)
            if end is not None:
                tags.append(text[i + 1:end])
                i = end + 1
                continue
        rest.append(ch)
        i += 1
    return ParsedWork(tags, "".join(rest).strip())


def escape_text(text: str) -> str:
    return "".join("\\" + ch if ch in _ESCAPABLE else ch for ch in text)


def build_work_done(tags: list[str], supplement: str) -> str:
    """Inverse of parse_work_done for well-formed labels."""
    for tag in tags:
        if not tag or any(ch in tag for ch in _ESCAPABLE):
            raise ValueError(f"Invalid tag label: {tag!r}")
    tag_str = " ".join(f"[{t}]" for t in tags)
    text = escape_text(supplement.strip())
    if tag_str and text:
        return f"{tag_str} {text}"
    return tag_str or text


def extract_tags(text: str | None) -> list[str]:
    return parse_work_done(text).tags
