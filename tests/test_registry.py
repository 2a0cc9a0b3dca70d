# tests/test_registry.py
from epd_parser.core.types import NormalizedEpd, ParserMatch, ParserResult
from epd_parser.parsers.base import EpdParser
from epd_parser.pipeline.registry import (
    DEFAULT_PARSER,
    PARSERS,
    parse_with_registry,
    select_parser,
)


class StubParser(EpdParser):
    def __init__(self, parser_id, score, fail=None):
        self.parser_id = parser_id
        self.score = score
        self.fail = fail

    def match(self, text, meta=None):
        if self.fail == "match":
            raise RuntimeError("boom")
        return ParserMatch(score=self.score, reason=f"{self.parser_id} signals" if self.score else None)

    def parse(self, text, meta=None):
        if self.fail == "parse":
            raise ValueError("bad table")
        normalized = NormalizedEpd(product_name=self.parser_id, raw_extract={"seen": True})
        return ParserResult(normalized=normalized, parser_id=self.parser_id)


def test_registered_parsers():
    assert [p.parser_id for p in PARSERS] == ["pvc_ecochain_v1", "asphalt_ecochain_v1"]
    assert DEFAULT_PARSER.parser_id == "asphalt_ecochain_v1"


def test_highest_score_wins_and_trace_lists_all():
    asphalt = StubParser("asphalt", 0.6)
    pvc = StubParser("pvc", 0.3)

    result = parse_with_registry("doc", parsers=[pvc, asphalt])

    assert result.parser_id == "asphalt"
    assert result.normalized.product_name == "asphalt"
    extract = result.normalized.raw_extract
    assert extract["seen"] is True
    assert extract["parserId"] == "asphalt"
    assert "asphalt=0.60:asphalt signals" in extract["parserScores"]
    assert "pvc=0.30:pvc signals" in extract["parserScores"]
    assert extract["parserScores"].startswith("pvc=")


def test_ties_go_to_first_registered():
    first = StubParser("first", 0.5)
    second = StubParser("second", 0.5)
    assert select_parser("doc", parsers=[first, second]).parser is first


def test_all_zero_scores_use_default():
    default = StubParser("fallback", 0.0)
    selection = select_parser("doc", parsers=[StubParser("a", 0.0), StubParser("b", 0.0)], default=default)

    assert selection.parser is default
    assert selection.trace == "a=0.00:n/a | b=0.00:n/a"


def test_scores_are_clamped():
    assert ParserMatch(score=1.7).score == 1.0
    assert ParserMatch(score=-0.2).score == 0.0


def test_failing_match_counts_as_zero():
    broken = StubParser("broken", 0.9, fail="match")
    ok = StubParser("ok", 0.1)

    selection = select_parser("doc", parsers=[broken, ok])

    assert selection.parser is ok
    assert "broken=0.00:match error: boom" in selection.trace


def test_failing_parse_yields_empty_record_with_error():
    broken = StubParser("broken", 0.9, fail="parse")

    result = parse_with_registry("doc", parsers=[broken])

    assert result.parser_id == "broken"
    assert result.normalized.results == []
    assert result.normalized.raw_extract["error"] == "ValueError: bad table"
    assert result.normalized.raw_extract["parserId"] == "broken"
    assert "broken=0.90" in result.normalized.raw_extract["parserScores"]


def test_none_text_is_accepted():
    result = parse_with_registry(None, parsers=[StubParser("only", 0.0)], default=StubParser("dflt", 0.0))
    assert result.parser_id == "dflt"
