"""
PONTUAÇÃO DE LEADS
===================

Três notas de 0 a 100 calculadas só com as mensagens do lead:

- interest: urgência e intenção de compra, por palavras-chave em faixas
- sentiment: tom positivo ou negativo (50 = neutro)
- overall: 70% interesse + 30% sentimento

Cada mensagem vale a faixa mais alta que ela atinge. Mensagem sem nenhum
sinal ainda conta como engajamento (nota base + bônus).
"""

import re
from dataclasses import dataclass
from typing import Iterable

from leadnurture.domain.entities import Message, MessageSender

HIGH_INTEREST = 90
MEDIUM_INTEREST = 50
LOW_INTEREST = 20
BASE_REPLY_INTEREST = 30
REPLY_BONUS = 5
MAX_REPLY_BONUS = 20

NEUTRAL_SENTIMENT = 50
POSITIVE_WEIGHT = 40
NEGATIVE_WEIGHT = 35

INTEREST_WEIGHT = 0.7
SENTIMENT_WEIGHT = 0.3

INTEREST_KEYWORDS: dict[int, list[str]] = {
    HIGH_INTEREST: [
        # urgência
        "asap", "immediately", "urgent", "now", "today", "this week",
        "ready to buy", "ready to move", "need to find", "must find",
        "closing soon", "pre-approved", "cash buyer", "approved for",
        # prazo curto
        "within 30 days", "this month", "next month", "by the end of",
        "looking to close", "ready to make an offer", "want to see",
        "schedule a showing", "book a viewing", "set up appointment",
        # busca ativa
        "actively looking", "seriously considering", "definitely interested",
        "very interested", "love this property", "perfect for us",
        "fits our budget", "meets our needs", "exactly what we want",
    ],
    MEDIUM_INTEREST: [
        "within 60 days", "within 90 days", "next few months",
        "spring", "summer", "fall", "winter",
        "thinking about", "considering", "might be interested", "could work",
        "looks good", "nice property", "tell me more", "more information",
        "learn more", "details",
    ],
    LOW_INTEREST: [
        "just browsing", "just looking", "not ready yet", "maybe next year",
        "in the future", "eventually", "someday", "just curious",
        "getting ideas", "exploring options", "no rush", "taking our time",
    ],
}

POSITIVE_KEYWORDS = [
    "love", "perfect", "amazing", "excellent", "great", "fantastic",
    "wonderful", "beautiful", "interested", "excited", "yes", "definitely",
    "sounds good", "looks good", "thank you", "appreciate", "helpful",
]

NEGATIVE_KEYWORDS = [
    "not interested", "not for us", "too expensive", "can't afford",
    "don't like", "not what we want", "wrong area", "too far", "no",
    "not suitable", "disappointing", "waste of time", "unhappy",
]


def _keyword_pattern(keywords: list[str]) -> re.Pattern:
    # palavra inteira: "now" não casa com "know"
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_INTEREST_PATTERNS = [(value, _keyword_pattern(words)) for value, words in INTEREST_KEYWORDS.items()]
_POSITIVE_PATTERN = _keyword_pattern(POSITIVE_KEYWORDS)
_NEGATIVE_PATTERN = _keyword_pattern(NEGATIVE_KEYWORDS)


@dataclass
class LeadScores:
    interest: int
    sentiment: int
    overall: int

    def to_dict(self) -> dict:
        return {
            "interest_score": self.interest,
            "sentiment_score": self.sentiment,
            "overall_score": self.overall,
        }


def _lead_texts(messages: Iterable[Message]) -> list[str]:
    return [
        m.text for m in messages
        if m.sender == MessageSender.LEAD.value and (m.text or "").strip()
    ]


def interest_score(messages: Iterable[Message]) -> float:
    texts = _lead_texts(messages)
    if not texts:
        return 0.0

    total = 0
    plain_replies = 0
    for text in texts:
        score = max((value for value, pattern in _INTEREST_PATTERNS if pattern.search(text)), default=0)
        if not score:
            plain_replies += 1
            score = BASE_REPLY_INTEREST
        total += score

    bonus = min(plain_replies * REPLY_BONUS, MAX_REPLY_BONUS)
    return min(total / len(texts) + bonus, 100.0)


def sentiment_score(messages: Iterable[Message]) -> float:
    """
    Proporção de mensagens positivas e negativas.

    Negativo tem prioridade: "not interested" não conta como "interested".
    """
    texts = _lead_texts(messages)
    if not texts:
        return float(NEUTRAL_SENTIMENT)

    positive = negative = 0
    for text in texts:
        if _NEGATIVE_PATTERN.search(text):
            negative += 1
        elif _POSITIVE_PATTERN.search(text):
            positive += 1

    score = (
        NEUTRAL_SENTIMENT
        + positive / len(texts) * POSITIVE_WEIGHT
        - negative / len(texts) * NEGATIVE_WEIGHT
    )
    return max(0.0, min(100.0, score))


def overall_score(interest: float, sentiment: float) -> int:
    overall = interest * INTEREST_WEIGHT + sentiment * SENTIMENT_WEIGHT
    return round(max(0.0, min(100.0, overall)))


def calculate_scores(messages: Iterable[Message]) -> LeadScores:
    messages = list(messages)
    interest = interest_score(messages)
    sentiment = sentiment_score(messages)
    return LeadScores(
        interest=round(interest),
        sentiment=round(sentiment),
        overall=overall_score(interest, sentiment),
    )


def score_explanation(scores: LeadScores) -> str:
    lines = [
        f"Overall Score: {scores.overall}/100",
        f"- Interest Level: {scores.interest}/100 (70% weight)",
        f"- Sentiment: {scores.sentiment}/100 (30% weight)",
        "",
    ]
    if scores.interest >= 80:
        lines.append("High Interest: lead shows strong buying intent")
    elif scores.interest >= 50:
        lines.append("Moderate Interest: lead is engaged but not urgent")
    else:
        lines.append("Low Interest: lead needs nurturing")
    return "\n".join(lines)
