"""텍스트 정규화 / 결과 중복 제거 유틸."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

from scholar_search.engine.result import ScholarResult

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")


def normalize_title(title: str) -> str:
    """비교용 제목 정규화 (소문자, 악센트/구두점 제거)"""
    if not title:
        return ""
    text = unicodedata.normalize("NFKD", title)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub(" ", text.lower()).strip()


def dedupe_results(results: Iterable[ScholarResult]) -> list[ScholarResult]:
    """정규화된 제목 / DOI 기준 중복 제거 (먼저 나온 항목 유지, 순서 보존)"""
    seen_titles: set[str] = set()
    seen_dois: set[str] = set()
    unique: list[ScholarResult] = []

    for result in results:
        key = normalize_title(result.title)
        doi = (result.doi or "").lower()
        if (key and key in seen_titles) or (doi and doi in seen_dois):
            continue
        if key:
            seen_titles.add(key)
        if doi:
            seen_dois.add(doi)
        unique.append(result)

    return unique
