"""퍼지 키워드 매처

자유 형식의 다국어(키릴/라틴 혼용) 입력에서 오타와 형태 변화를 허용하는 키워드 매칭.
정확한 부분 문자열 일치는 1.0, 퍼지 일치는 최대 0.6으로 항상 정확 일치보다 낮게 평가합니다.
"""

import re
from typing import Iterable

from rapidfuzz.distance import Levenshtein

EXACT_MATCH_SCORE = 1.0
MAX_FUZZY_SCORE = 0.6
MIN_TOKEN_LENGTH = 3
MAX_EDIT_DISTANCE = 2

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """소문자화, 구두점 제거, 공백 정규화"""
    text = _PUNCTUATION.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def levenshtein(a: str, b: str) -> int:
    """두 문자열의 편집 거리 (삽입/삭제/치환 비용 1)"""
    return Levenshtein.distance(a, b)


def fuzzy_score(token: str, keyword: str) -> float:
    """토큰 하나와 키워드의 퍼지 점수 (0.0 ~ 0.6)"""
    if len(token) < MIN_TOKEN_LENGTH:
        return 0.0
    distance = levenshtein(token, keyword)
    if distance > MAX_EDIT_DISTANCE or distance >= len(keyword):
        return 0.0
    similarity = 1.0 - distance / max(len(token), len(keyword))
    return MAX_FUZZY_SCORE * similarity


def keyword_match_score(normalized_message: str, keyword: str) -> float:
    """정규화된 메시지에 대한 키워드 하나의 점수 (정확 1.0, 퍼지 최대 0.6)"""
    normalized_keyword = normalize_text(keyword)
    if not normalized_keyword:
        return 0.0
    if normalized_keyword in normalized_message:
        return EXACT_MATCH_SCORE

    # 여러 단어 키워드는 정확 일치만 인정
    if " " in normalized_keyword:
        return 0.0

    best = 0.0
    for token in normalized_message.split(" "):
        best = max(best, fuzzy_score(token, normalized_keyword))
    return best


def keyword_score(message: str, keywords: Iterable[str]) -> float:
    """키워드 목록 전체 점수 (키워드별 점수의 합)

    Args:
        message: 사용자 입력
        keywords: 도메인 키워드 목록

    Returns:
        점수 합계 (키워드 하나당 0.0 ~ 1.0)
    """
    normalized_message = normalize_text(message)
    if not normalized_message:
        return 0.0
    return sum(keyword_match_score(normalized_message, keyword) for keyword in keywords)
