"""Rule-based intent detection.

Intent detection is a fixed, ordered list of pattern rules evaluated over the
normalized message text. The first rule that matches wins, so the order of
``DEFAULT_RULES`` is the tie-break between overlapping categories (a message
that mentions both the clock and the weather is a time query).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

CREATOR = "creator"
ORIGIN_DATE = "origin_date"
TIME = "time"
WEATHER = "weather"
REALTIME = "realtime"
MATH = "math"
SEARCH = "search"
CHAT = "chat"


@dataclass(frozen=True, slots=True)
class Intent:
    """Classification result. ``slots`` carries named regex groups (``expr``, ``query``)."""

    name: str
    rule: str = ""
    evidence: list[str] = field(default_factory=list)
    slots: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class IntentRule:
    category: str
    pattern: re.Pattern[str]

    def match(self, text: str) -> re.Match[str] | None:
        return self.pattern.search(text)


def _rule(category: str, pattern: str) -> IntentRule:
    return IntentRule(category, re.compile(pattern, re.IGNORECASE))


_OPERATOR = r"[+\-*/x×÷^%]"
_EXPR_CHARS = r"[\d\s.,()+\-*/x×÷^%]"

DEFAULT_RULES: tuple[IntentRule, ...] = (
    _rule(
        CREATOR,
        r"siapa\s+(?:penciptamu|pencipta\s*kamu|pembuatmu|pembuat\s*kamu|yang\s+(?:buat|bikin|membuat|menciptakan)\s*(?:kamu|mu))"
        r"|pengembangmu|\bdevelopermu\b|\bdeveloper\b"
        r"|who\s+(?:made|created|built)\s+you",
    ),
    _rule(
        ORIGIN_DATE,
        r"kapan\b.*\b(?:diciptakan|dibuat|dibikin|lahir)\b"
        r"|when\s+were\s+you\s+(?:made|created|born)",
    ),
    _rule(
        TIME,
        r"\b(?:jam|pukul)\s*(?:berapa|brp)\b|\bsekarang\s+jam\b|\bjam\s+sekarang\b"
        r"|\bwaktu\s+sekarang\b|\bhari\s+ini\s+tanggal\b|\btanggal\s+berapa\b"
        r"|\bhari\s+apa\b|\bwhat\s+time\b|\bcurrent\s+time\b",
    ),
    _rule(
        WEATHER,
        r"\b(?:cuaca|suhu|hujan|panas|dingin|gerah|prakiraan|weather|temperature|forecast)\b",
    ),
    _rule(
        REALTIME,
        r"\b(?:kurs|dolar|dollar|usd|idr|rupiah|euro|harga|emas|gold|bitcoin|btc|kripto|crypto"
        r"|saham|ihsg|bbm|bensin|berita|news|terbaru|terkini|hari\s+ini|today|breaking"
        r"|skor|score)\b",
    ),
    _rule(
        MATH,
        rf"^(?:berapa|hitung(?:kan)?|hasil(?:\s+dari)?|calculate|calc)?\s*"
        rf"(?P<expr>{_EXPR_CHARS}*\d\s*{_OPERATOR}\s*[\d(]{_EXPR_CHARS}*)\s*=?\s*\??$",
    ),
    _rule(
        SEARCH,
        r"^(?:cari(?:kan)?|search|googling|google)\s+(?P<query>.+)$",
    ),
)


def normalize(text: str) -> str:
    """Trim, lower-case and collapse inner whitespace."""
    return re.sub(r"\s+", " ", (text or "").strip().lower())


class IntentEngine:
    """Ordered first-match classifier. Stateless and total: the fallback is ``chat``."""

    def __init__(self, rules: tuple[IntentRule, ...] = DEFAULT_RULES) -> None:
        self.rules = rules

    def detect(self, text: str) -> Intent:
        normalized = normalize(text)
        for rule in self.rules:
            m = rule.match(normalized)
            if m is None:
                continue
            slots = {k: v.strip() for k, v in m.groupdict().items() if v}
            return Intent(
                name=rule.category,
                rule=rule.pattern.pattern,
                evidence=[m.group(0)],
                slots=slots,
            )
        return Intent(name=CHAT, slots={"raw_text": normalized})

    def matches(self, category: str, text: str) -> bool:
        """True if the rule for *category* matches, ignoring rule order."""
        normalized = normalize(text)
        return any(r.category == category and r.match(normalized) for r in self.rules)
