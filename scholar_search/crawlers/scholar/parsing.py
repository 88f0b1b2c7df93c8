"""Google Scholar - HTML 파싱/검증 유틸.

이 모듈은 네트워크(fetch)와 분리된 순수 파싱/검증 로직을 담습니다.

파서 체인:
1. PrimaryBlockParser: div.gs_r 결과 블록에서 구조화 추출
2. HeuristicLinkParser: 1차가 비었을 때 링크 텍스트로 논문 제목 추정 (confidence 0.2)

체인은 어떤 입력에도 예외를 던지지 않습니다.
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Protocol
from urllib.parse import parse_qs, urlparse

from selectolax.parser import HTMLParser, Node

from scholar_search.core.logging import logger
from scholar_search.engine.result import (
    HEURISTIC_CONFIDENCE,
    ResultSource,
    ScholarResult,
)


_BLOCK_KEYWORDS = (
    # 결과 지문이 없을 때만 검사하는 차단/챌린지 문구
    "unusual traffic",
    "automated queries",
    "not a robot",
    "captcha",
    "gs_captcha",
    "/sorry/index",
    "access denied",
)


_NO_RESULTS_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"did not match any articles",
        r"no results found",
        r"your search.*did not match",
        r"try different keywords",
        r"no articles found",
    )
)


_NAVIGATION_TEXTS = frozenset({
    "home", "search", "about", "help", "settings", "login", "log in", "sign in",
    "sign out", "next", "previous", "privacy", "terms", "advanced search",
    "my library", "my profile", "metrics", "alerts", "create alert",
    "cited by", "related articles", "all versions", "cite", "save",
    "[pdf]", "[html]", "pdf", "html",
})

_NAVIGATION_PREFIX_RE = re.compile(
    r"^(cited by \d+|all \d+ versions|related articles|import into |web of science)",
    re.IGNORECASE,
)

_ACADEMIC_WORDS = (
    "study", "analysis", "research", "investigation", "approach", "method",
    "theory", "model", "learning", "review", "survey", "evaluation",
)

_TITLE_TAG_RE = re.compile(r"^\s*(\[[A-Z]+\]\s*)+")
_WHITESPACE_RE = re.compile(r"\s+")
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_CITED_BY_RE = re.compile(r"(?:Cited by|Citations:)\s*(\d+)", re.IGNORECASE)
_DOI_PATTERNS = (
    re.compile(r"(?:doi\.org/|DOI:\s*)(10\.\d+/[^\s<>\"'&]+)", re.IGNORECASE),
    re.compile(r"\bdoi:\s*(10\.\d+/[^\s<>\"'&]+)", re.IGNORECASE),
    re.compile(r"\b(10\.\d{4,}/[^\s<>\"'&]+)"),
)
_VALID_DOI_RE = re.compile(r"^10\.\d{4,}/\S+$")
_LAST_NAME_RE = re.compile(r"^[A-Z][a-z]*(?:[-'\s][A-Z]?[a-z]*)*$")
_INITIALS_RE = re.compile(r"^[A-Z]\.?(?:\s*[A-Z]\.?)*$")
_INVALID_AUTHOR_RES = (
    re.compile(r"^\d+$"),
    re.compile(r"^[^a-zA-Z]*$"),
    re.compile(r"^(and|et|al|etc|vol|pp|page|pages)\.?$", re.IGNORECASE),
    re.compile(r"^(doi|isbn|issn|url|http|www)\.?", re.IGNORECASE),
)
_INVALID_ABSTRACT_RES = (
    re.compile(r"^(pdf|html|full text|download|view|access)$", re.IGNORECASE),
    re.compile(r"^[^a-zA-Z]*$"),
    re.compile(r"^\d+\s*(pages?|pp\.)", re.IGNORECASE),
    re.compile(r"^(abstract|summary):\s*$", re.IGNORECASE),
    re.compile(r"^see\s+(full|complete)\s+", re.IGNORECASE),
)

MAX_AUTHORS = 10


# ---------------------------------------------------------------------------
# 페이지 수준 판별
# ---------------------------------------------------------------------------


def is_empty_body(html: str) -> bool:
    return not html or not html.strip()


def is_no_results_html(html: str) -> bool:
    if not html:
        return False
    return any(p.search(html) for p in _NO_RESULTS_PATTERNS)


def has_result_fingerprint(html: str) -> bool:
    if not html:
        return False
    tree = HTMLParser(html)
    return bool(tree.css_first("div.gs_r .gs_rt") or tree.css_first("div.gs_r .gs_a"))


def get_blocked_keyword(html: str) -> Optional[str]:
    """결과 지문이 없고 차단 문구가 있으면 그 문구를 반환."""
    if not html:
        return None
    lowered = html.lower()
    for kw in _BLOCK_KEYWORDS:
        if kw in lowered:
            return kw
    return None


def is_blocked_html(html: str) -> bool:
    if not html or has_result_fingerprint(html):
        return False
    return get_blocked_keyword(html) is not None


# ---------------------------------------------------------------------------
# 필드 추출 헬퍼
# ---------------------------------------------------------------------------


def clean_text(text: Optional[str]) -> str:
    """HTML 엔티티 해제 + 공백 정규화"""
    if not text:
        return ""
    text = html_lib.unescape(text).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return clean_text(node.text(separator=" "))


def clean_title(text: str) -> str:
    """"[PDF] [HTML] [CITATION]" 접두 태그 제거"""
    return _TITLE_TAG_RE.sub("", clean_text(text)).strip()


def looks_like_last_name(text: str) -> bool:
    return len(text) > 1 and bool(_LAST_NAME_RE.match(text)) and not looks_like_initials(text)


def looks_like_initials(text: str) -> bool:
    return len(text) <= 10 and bool(_INITIALS_RE.match(text))


def is_valid_author_name(author: str) -> bool:
    author = author.strip()
    if len(author) < 2 or len(author) > 100:
        return False
    if any(p.search(author) for p in _INVALID_AUTHOR_RES):
        return False
    return bool(re.search(r"[a-zA-Z]", author))


def split_author_names(authors_text: str) -> list[str]:
    """쉼표/세미콜론 분리 ("Smith, J." 처럼 성+이니셜 쌍은 다시 합침)"""
    if ";" in authors_text:
        return [a.strip() for a in authors_text.split(";")]

    parts = [p.strip() for p in authors_text.split(",")]
    authors: list[str] = []
    i = 0
    while i < len(parts):
        part = parts[i]
        if i + 1 < len(parts) and looks_like_last_name(part) and looks_like_initials(parts[i + 1]):
            authors.append(f"{part}, {parts[i + 1]}")
            i += 2
            continue
        if part:
            authors.append(part)
        i += 1
    return authors


def parse_authors(author_line: str) -> list[str]:
    """"A Author, B Author - Journal, 2020 - site.com" → ["A Author", "B Author"]"""
    author_line = clean_text(author_line)
    if not author_line:
        return []

    head = author_line.split(" - ", 1)[0].strip()
    if not head:
        return []

    authors = [a.replace("…", "").strip() for a in split_author_names(head)]
    return [a for a in authors if is_valid_author_name(a)][:MAX_AUTHORS]


def extract_venue(author_line: str) -> Optional[str]:
    """저자 줄의 두 번째 구간에서 저널명 추출 (연도/도메인 제거)"""
    parts = clean_text(author_line).split(" - ")
    if len(parts) < 2:
        return None
    match = re.match(r"^([^,]+?)(?:,\s*\d{4}|$)", parts[1].strip())
    if not match:
        return None
    venue = match.group(1).strip().lstrip("…").strip()
    if len(venue) <= 3 or venue.isdigit() or venue.lower() in {"and", "et", "al"}:
        return None
    # "2020" 만 남은 경우 / 도메인만 있는 경우
    if _YEAR_RE.fullmatch(venue) or re.fullmatch(r"[\w.-]+\.(com|org|net|edu|gov)", venue):
        return None
    return venue


def extract_year(text: str, *, now: Optional[datetime] = None) -> Optional[int]:
    max_year = (now or datetime.now()).year + 1
    for match in _YEAR_RE.finditer(text or ""):
        year = int(match.group(0))
        if 1900 <= year <= max_year:
            return year
    return None


def extract_citation_count(text: str) -> Optional[int]:
    match = _CITED_BY_RE.search(text or "")
    return int(match.group(1)) if match else None


def is_valid_doi(doi: str) -> bool:
    if not _VALID_DOI_RE.match(doi):
        return False
    suffix = doi.split("/", 1)[1]
    if not suffix or re.fullmatch(r"[\s.]+", suffix) or "<" in suffix or ">" in suffix:
        return False
    return True


def extract_doi(raw_html: str) -> Optional[str]:
    for pattern in _DOI_PATTERNS:
        for match in pattern.finditer(raw_html or ""):
            doi = match.group(1).strip().rstrip(".,;)")
            if is_valid_doi(doi):
                return doi
    return None


def resolve_scholar_url(href: Optional[str]) -> Optional[str]:
    """/scholar_url?url=... 리다이렉트는 실제 URL로 풀어줌"""
    if not href:
        return None
    href = href.strip()
    if href.startswith("/scholar_url?") or ("scholar.google." in href and "/scholar_url?" in href):
        target = parse_qs(urlparse(href).query).get("url")
        if target:
            return target[0]
    if href.startswith("/"):
        return f"https://scholar.google.com{href}"
    return href


def is_valid_abstract(text: str) -> bool:
    text = (text or "").strip()
    if len(text) < 20:
        return False
    if any(p.search(text) for p in _INVALID_ABSTRACT_RES):
        return False
    return len(text.split()) >= 3


def calculate_confidence(
    title: str,
    authors: list[str],
    venue: Optional[str] = None,
    year: Optional[int] = None,
) -> float:
    """메타데이터 충실도 기반 신뢰도 (0.3 기본, 최대 1.0)"""
    confidence = 0.3
    if title and len(title) > 10:
        confidence += 0.2
    if authors:
        confidence += 0.2
    if venue and len(venue) > 3:
        confidence += 0.2
    if year and year > 1900:
        confidence += 0.1
    return min(round(confidence, 2), 1.0)


def looks_like_paper_title(text: str, *, min_words: int = 3) -> bool:
    """링크 텍스트가 논문 제목처럼 보이는가"""
    if len(text) < 10 or len(text) > 200:
        return False

    lowered = text.lower().strip()
    if lowered in _NAVIGATION_TEXTS:
        return False
    if _NAVIGATION_PREFIX_RE.match(lowered):
        return False

    word_count = len(text.split())
    if word_count < min_words:
        return False
    if word_count <= 20:
        return True
    return any(w in lowered for w in _ACADEMIC_WORDS)


# ---------------------------------------------------------------------------
# 파서 체인
# ---------------------------------------------------------------------------


class ParseStatus(str, Enum):
    """파싱 결과 상태"""

    PARSED = "parsed"  # 결과 있음
    EMPTY = "empty"  # 빈 본문 / "검색 결과 없음" 문구 (정상)
    UNPARSEABLE = "unparseable"  # 두 단계 모두 실패


@dataclass
class ParseResult:
    status: ParseStatus
    results: list[ScholarResult] = field(default_factory=list)
    tier: Optional[str] = None
    reason: str = ""

    @property
    def is_unparseable(self) -> bool:
        return self.status is ParseStatus.UNPARSEABLE


class ResultParser(Protocol):
    """파서 전략 인터페이스

    결과가 없으면 None 또는 빈 목록을 반환합니다.
    """

    name: str

    def try_parse(self, html: str, tree: HTMLParser) -> Optional[list[ScholarResult]]:
        ...


class PrimaryBlockParser:
    """div.gs_r 결과 블록 구조화 파서

    - 제목이 없는 블록만 건너뛰고 나머지는 문서 순서대로 반환 (부분 성공 보존)
    """

    name = "primary"

    def try_parse(self, html: str, tree: HTMLParser) -> Optional[list[ScholarResult]]:
        results: list[ScholarResult] = []
        skipped = 0
        for block in self._result_blocks(tree):
            parsed = self.parse_block(block)
            if parsed is None:
                skipped += 1
                continue
            results.append(parsed)

        if skipped:
            logger.debug(f"[PARSER] primary skipped {skipped} malformed blocks")
        return results or None

    @staticmethod
    def _result_blocks(tree: HTMLParser) -> Iterable[Node]:
        for block in tree.css("div.gs_r"):
            if block.css_first(".gs_rt") is not None or block.css_first(".gs_a") is not None:
                yield block

    def parse_block(self, block: Node) -> Optional[ScholarResult]:
        title_node = block.css_first("h3.gs_rt a") or block.css_first(".gs_rt a")
        title = clean_title(node_text(title_node)) or clean_title(node_text(block.css_first(".gs_rt")))
        if not title:
            return None

        author_line = node_text(block.css_first(".gs_a"))
        authors = parse_authors(author_line)
        venue = extract_venue(author_line)

        block_text = node_text(block)
        year = extract_year(author_line) or extract_year(block_text)
        citation_count = extract_citation_count(node_text(block.css_first(".gs_fl")) or block_text)

        url = None
        if title_node is not None:
            url = resolve_scholar_url(title_node.attributes.get("href"))

        abstract = node_text(block.css_first(".gs_rs"))
        if not is_valid_abstract(abstract):
            abstract = None

        return ScholarResult(
            title=title,
            authors=authors,
            venue=venue,
            year=year,
            citation_count=citation_count,
            url=url,
            doi=extract_doi(block.html or ""),
            abstract=abstract,
            confidence=calculate_confidence(title, authors, venue, year),
            source=ResultSource.GOOGLE_SCHOLAR.value,
        )


class HeuristicLinkParser:
    """링크 텍스트 휴리스틱 파서 (저신뢰)"""

    name = "heuristic"

    def __init__(self, min_words: int = 3, max_results: int = 5) -> None:
        self.min_words = min_words
        self.max_results = max_results

    def try_parse(self, html: str, tree: HTMLParser) -> Optional[list[ScholarResult]]:
        results: list[ScholarResult] = []
        seen: set[str] = set()

        for anchor in tree.css("a"):
            if len(results) >= self.max_results:
                break
            text = clean_title(node_text(anchor))
            key = text.lower()
            if not text or key in seen:
                continue
            if not looks_like_paper_title(text, min_words=self.min_words):
                continue
            seen.add(key)
            results.append(
                ScholarResult(
                    title=text,
                    url=resolve_scholar_url(anchor.attributes.get("href")),
                    confidence=HEURISTIC_CONFIDENCE,
                    source=ResultSource.GOOGLE_SCHOLAR_HEURISTIC.value,
                )
            )

        return results or None


class ParserChain:
    """파서 전략을 순서대로 시도 (절대 예외를 던지지 않음)

    Usage:
        chain = ParserChain()
        parsed = chain.parse(html)
        if parsed.is_unparseable:
            ...
    """

    def __init__(self, parsers: Optional[list[ResultParser]] = None) -> None:
        self.parsers: list[ResultParser] = parsers or [PrimaryBlockParser(), HeuristicLinkParser()]

    def parse(self, html: str) -> ParseResult:
        if is_empty_body(html):
            return ParseResult(ParseStatus.EMPTY, reason="empty body")
        if is_no_results_html(html):
            return ParseResult(ParseStatus.EMPTY, reason="no results marker")

        try:
            tree = HTMLParser(html)
        except Exception as e:
            logger.warning(f"[PARSER] HTML tree build failed: {type(e).__name__}: {e}")
            return ParseResult(ParseStatus.UNPARSEABLE, reason=f"tree build failed: {e}")

        for parser in self.parsers:
            try:
                results = parser.try_parse(html, tree)
            except Exception as e:
                logger.warning(f"[PARSER] {parser.name} tier raised {type(e).__name__}: {e}")
                continue
            if results:
                logger.info(f"[PARSER] {parser.name} tier extracted {len(results)} results")
                return ParseResult(ParseStatus.PARSED, results=results, tier=parser.name)

        logger.warning(f"[PARSER] no tier produced results (html_len={len(html)})")
        return ParseResult(ParseStatus.UNPARSEABLE, reason="no result blocks or title-like links")
