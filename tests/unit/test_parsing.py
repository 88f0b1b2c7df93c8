"""Google Scholar HTML 파싱 단위 테스트."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pytest
from selectolax.parser import HTMLParser

from scholar_search.crawlers.scholar.parsing import (
    HeuristicLinkParser,
    ParserChain,
    ParseStatus,
    calculate_confidence,
    clean_title,
    extract_citation_count,
    extract_doi,
    extract_venue,
    extract_year,
    is_blocked_html,
    is_valid_abstract,
    looks_like_paper_title,
    parse_authors,
    resolve_scholar_url,
)
from scholar_search.engine.result import ScholarResult
from tests.fixtures import (
    BLOCK_PAGE,
    HEURISTIC_PAGE,
    NO_RESULTS_PAGE,
    PARTIAL_PAGE,
    RESULTS_PAGE,
    UNPARSEABLE_PAGE,
)


@pytest.fixture
def chain() -> ParserChain:
    return ParserChain()


class TestParserChain:
    """2단계 파서 체인"""

    def test_primary_tier_extracts_all_fields(self, chain: ParserChain) -> None:
        parsed = chain.parse(RESULTS_PAGE)

        assert parsed.status is ParseStatus.PARSED
        assert parsed.tier == "primary"
        assert len(parsed.results) == 3

        first = parsed.results[0]
        assert first.title == "Attention is all you need"
        assert first.authors == ["A Vaswani", "N Shazeer", "N Parmar"]
        assert first.venue == "Advances in neural information processing systems"
        assert first.year == 2017
        assert first.citation_count == 120000
        assert first.url == "https://arxiv.org/abs/1706.03762"
        assert first.abstract.startswith("The dominant sequence transduction models")
        assert first.confidence == 1.0
        assert first.source == "google_scholar"

    def test_doi_from_result_link(self, chain: ParserChain) -> None:
        resnet = chain.parse(RESULTS_PAGE).results[1]

        assert resnet.doi == "10.1109/CVPR.2016.90"
        assert resnet.authors == ["K He", "X Zhang", "S Ren", "J Sun"]
        assert resnet.year == 2016

    def test_missing_snippet_leaves_abstract_empty(self, chain: ParserChain) -> None:
        gnn = chain.parse(RESULTS_PAGE).results[2]

        assert gnn.venue == "AI open"
        assert gnn.abstract is None

    def test_partial_page_keeps_good_blocks_in_order(self, chain: ParserChain) -> None:
        """제목 없는 블록만 건너뛰고 나머지는 순서대로."""
        parsed = chain.parse(PARTIAL_PAGE)

        assert [r.title for r in parsed.results] == [
            "Attention is all you need",
            "Graph neural networks: A review of methods and applications",
        ]

    def test_heuristic_tier_filters_navigation(self, chain: ParserChain) -> None:
        """결과 블록이 없으면 링크 텍스트 휴리스틱 (confidence 0.2)."""
        parsed = chain.parse(HEURISTIC_PAGE)

        assert parsed.tier == "heuristic"
        assert [r.title for r in parsed.results] == [
            "Deep residual learning for image recognition",
            "Graph neural networks in practice",
        ]
        assert all(r.confidence == 0.2 for r in parsed.results)
        assert all(r.source == "google_scholar_heuristic" for r in parsed.results)
        assert parsed.results[0].url == "https://example.org/resnet"

    @pytest.mark.parametrize("body", ["", "   \n  ", NO_RESULTS_PAGE])
    def test_empty_and_no_results_pages(self, chain: ParserChain, body: str) -> None:
        """빈 본문 / "결과 없음" 문구 → 정상적인 빈 결과."""
        parsed = chain.parse(body)

        assert parsed.status is ParseStatus.EMPTY
        assert parsed.results == []
        assert parsed.is_unparseable is False

    def test_unparseable_page(self, chain: ParserChain) -> None:
        parsed = chain.parse(UNPARSEABLE_PAGE)

        assert parsed.status is ParseStatus.UNPARSEABLE
        assert parsed.is_unparseable is True

    def test_tier_exception_does_not_escape(self) -> None:
        """한 단계가 예외를 던져도 다음 단계로 진행."""

        class ExplodingParser:
            name = "exploding"

            def try_parse(self, html: str, tree: HTMLParser) -> Optional[list[ScholarResult]]:
                raise RuntimeError("selector drift")

        parsed = ParserChain([ExplodingParser(), HeuristicLinkParser()]).parse(HEURISTIC_PAGE)

        assert parsed.tier == "heuristic"

    def test_heuristic_result_cap(self) -> None:
        links = "".join(
            f'<a href="/p{i}">A study of graph neural network variant {i}</a>' for i in range(10)
        )
        parsed = ParserChain([HeuristicLinkParser(max_results=5)]).parse(f"<html><body>{links}</body></html>")

        assert len(parsed.results) == 5


class TestFieldHelpers:
    """필드 추출 헬퍼"""

    def test_clean_title_strips_type_tags(self) -> None:
        assert clean_title("[PDF] [HTML] Attention is all you need") == "Attention is all you need"
        assert clean_title("Attention&nbsp;is   all you need") == "Attention is all you need"

    def test_parse_authors_rejoins_last_name_and_initials(self) -> None:
        assert parse_authors("Smith, J., Doe, A. - Journal of Things, 2019") == ["Smith, J.", "Doe, A."]

    def test_parse_authors_strips_ellipsis(self) -> None:
        assert parse_authors("A Author, B Author… - Nature, 2020 - nature.com") == ["A Author", "B Author"]

    def test_parse_authors_caps_at_ten(self) -> None:
        line = ", ".join(f"Author{chr(65 + i)} Name" for i in range(15)) + " - Venue, 2020"

        assert len(parse_authors(line)) == 10

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("A Author - Nature, 2020 - nature.com", "Nature"),
            ("A Author - 2020 - site.com", None),
            ("A Author", None),
        ],
    )
    def test_extract_venue(self, line: str, expected: Optional[str]) -> None:
        assert extract_venue(line) == expected

    def test_extract_year_ignores_future(self) -> None:
        now = datetime(2024, 1, 1)

        assert extract_year("A Author - Nature, 2020", now=now) == 2020
        assert extract_year("Report 2035", now=now) is None

    def test_extract_citation_count(self) -> None:
        assert extract_citation_count("Cited by 42 Related articles") == 42
        assert extract_citation_count("Related articles") is None

    def test_extract_doi(self) -> None:
        assert extract_doi("see https://doi.org/10.1000/xyz123.") == "10.1000/xyz123"
        assert extract_doi("no identifier here") is None

    def test_resolve_scholar_url(self) -> None:
        assert resolve_scholar_url("/scholar_url?url=https://example.org/paper.pdf&hl=en") == (
            "https://example.org/paper.pdf"
        )
        assert resolve_scholar_url("/citations?user=1") == "https://scholar.google.com/citations?user=1"
        assert resolve_scholar_url("https://example.org/a") == "https://example.org/a"
        assert resolve_scholar_url(None) is None

    def test_is_valid_abstract(self) -> None:
        assert is_valid_abstract("We propose a new simple network architecture.")
        assert not is_valid_abstract("PDF")
        assert not is_valid_abstract("12 pages")
        # 최소 20자
        assert not is_valid_abstract("Short abstract text")
        assert is_valid_abstract("Short abstract texts")

    def test_calculate_confidence(self) -> None:
        assert calculate_confidence("Short", []) == 0.3
        assert calculate_confidence("A long enough title", ["A Author"], "Nature", 2020) == 1.0

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Home", False),
            ("Cited by 12", False),
            ("All 5 versions", False),
            ("All you need is attention today", True),
            ("Two words", False),
            ("Deep residual learning for image recognition", True),
        ],
    )
    def test_looks_like_paper_title(self, text: str, expected: bool) -> None:
        assert looks_like_paper_title(text) is expected

    def test_long_link_needs_academic_word(self) -> None:
        filler = " ".join(["word"] * 25)

        assert looks_like_paper_title(filler) is False
        assert looks_like_paper_title(filler + " survey") is True


def test_block_page_detection() -> None:
    assert is_blocked_html(BLOCK_PAGE) is True
    assert is_blocked_html(RESULTS_PAGE) is False
