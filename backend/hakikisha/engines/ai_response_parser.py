"""Turns raw model output into a validated ``ParsedAIVerdict``.

Model output is untrusted text. The parser never raises to its caller:

1. Extract a JSON object (``json`` fence, raw object, or one buried in prose).
   No object → ``MalformedAIResponse`` → keyword heuristic over the full text.
2. Map the verdict through an alias table. Missing or unknown verdict →
   ``UnexpectedAIResponse`` → keyword heuristic over verdict + explanation.
3. Coerce the confidence into [0, 1]; missing or unreadable → 0.5.

Every fallback is logged (``ai_response_fallback``) and recorded on the
result's ``fallback_reason`` so it ends up on the stored AI verdict.
"""

import json
import logging
import math
import re
from typing import Any, List, Optional

from hakikisha.errors import AIResponseError, MalformedAIResponse, UnexpectedAIResponse
from hakikisha.schemas.verdict import ParsedAIVerdict, VerdictLabel

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
MAX_EXPLANATION = 2000

# ── Verdict aliases ──────────────────────────────────────────────────────

_VERDICT_ALIASES: dict[str, VerdictLabel] = {
    "true": VerdictLabel.TRUE,
    "verified": VerdictLabel.TRUE,
    "accurate": VerdictLabel.TRUE,
    "correct": VerdictLabel.TRUE,
    "confirmed": VerdictLabel.TRUE,
    "mostly true": VerdictLabel.TRUE,
    "false": VerdictLabel.FALSE,
    "incorrect": VerdictLabel.FALSE,
    "inaccurate": VerdictLabel.FALSE,
    "fake": VerdictLabel.FALSE,
    "fabricated": VerdictLabel.FALSE,
    "debunked": VerdictLabel.FALSE,
    "mostly false": VerdictLabel.FALSE,
    "misleading": VerdictLabel.MISLEADING,
    "partly true": VerdictLabel.MISLEADING,
    "partially true": VerdictLabel.MISLEADING,
    "half true": VerdictLabel.MISLEADING,
    "mixed": VerdictLabel.MISLEADING,
    "exaggerated": VerdictLabel.MISLEADING,
    "satire": VerdictLabel.SATIRE,
    "satirical": VerdictLabel.SATIRE,
    "parody": VerdictLabel.SATIRE,
    "needs context": VerdictLabel.NEEDS_CONTEXT,
    "missing context": VerdictLabel.NEEDS_CONTEXT,
    "unverifiable": VerdictLabel.NEEDS_CONTEXT,
    "unverified": VerdictLabel.NEEDS_CONTEXT,
    "unknown": VerdictLabel.NEEDS_CONTEXT,
    "insufficient evidence": VerdictLabel.NEEDS_CONTEXT,
}

_CONFIDENCE_WORDS = {"high": 0.9, "medium": 0.7, "low": 0.5}

# ── Keyword heuristic ────────────────────────────────────────────────────

# Negated phrases are counted (and removed) before single words, so that
# "not true" is not also counted as "true".
_NEGATIONS: list[tuple[str, VerdictLabel]] = [
    (r"\bnot (?:true|accurate|correct)\b", VerdictLabel.FALSE),
    (r"\bno evidence\b", VerdictLabel.FALSE),
    (r"\b(?:cannot|can't|could not) be (?:verified|confirmed)\b", VerdictLabel.NEEDS_CONTEXT),
    (r"\bout of context\b", VerdictLabel.MISLEADING),
    (r"\bpartly true\b|\bpartially true\b|\bhalf true\b", VerdictLabel.MISLEADING),
]

_KEYWORDS: dict[VerdictLabel, list[str]] = {
    VerdictLabel.TRUE: ["true", "accurate", "correct", "verified", "confirmed", "factual"],
    VerdictLabel.FALSE: ["false", "incorrect", "inaccurate", "untrue", "fabricated", "hoax", "debunked", "fake"],
    VerdictLabel.MISLEADING: ["misleading", "exaggerated", "distorted", "cherry-picked"],
    VerdictLabel.SATIRE: ["satire", "satirical", "parody", "joke"],
    VerdictLabel.NEEDS_CONTEXT: ["unverifiable", "unverified", "insufficient", "unclear", "inconclusive"],
}


class AIResponseParser:
    """Parse model output; fall back to keywords when the output is unusable."""

    def parse(self, text: str) -> ParsedAIVerdict:
        text = text or ""
        try:
            data = self._extract_json(text)
        except MalformedAIResponse as exc:
            return self._fallback(exc, text, explanation=text, confidence=DEFAULT_CONFIDENCE, sources=[])

        explanation = self._coerce_explanation(data.get("explanation") or data.get("reasoning"))
        confidence = self.coerce_confidence(data.get("confidence_score", data.get("confidence")))
        sources = self._coerce_sources(data.get("sources", data.get("evidence_sources")))
        raw_verdict = data.get("verdict")

        try:
            verdict = self.normalize_verdict(raw_verdict)
        except UnexpectedAIResponse as exc:
            return self._fallback(
                exc,
                f"{raw_verdict or ''} {explanation}",
                explanation=explanation,
                confidence=confidence,
                sources=sources,
            )

        return ParsedAIVerdict(
            verdict=verdict,
            confidence_score=confidence,
            explanation=explanation or "No explanation provided.",
            sources=sources,
        )

    # ── JSON extraction ──────────────────────────────────────────────

    @staticmethod
    def _extract_json(text: str) -> dict:
        """Find a JSON object in potentially messy model output."""
        # 1) Markdown code block
        md = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text)
        candidates: List[str] = [md.group(1)] if md else []

        # 2) The whole text
        stripped = text.strip()
        if stripped.startswith("{"):
            candidates.append(stripped)

        # 3) First "{" to last "}"
        start, end = text.find("{"), text.rfind("}")
        if 0 <= start < end:
            candidates.append(text[start:end + 1])

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

        raise MalformedAIResponse(f"no JSON object in model output (first 200 chars): {text[:200]!r}")

    # ── field coercion ───────────────────────────────────────────────

    @staticmethod
    def normalize_verdict(raw: Any) -> VerdictLabel:
        """Examples:
            >>> AIResponseParser.normalize_verdict("Verified")
            <VerdictLabel.TRUE: 'true'>
            >>> AIResponseParser.normalize_verdict("needs-context")
            <VerdictLabel.NEEDS_CONTEXT: 'needs_context'>
        """
        if not isinstance(raw, str) or not raw.strip():
            raise UnexpectedAIResponse(f"verdict missing or not a string: {raw!r}")
        key = re.sub(r"[\s_\-]+", " ", raw.strip().lower())
        try:
            return _VERDICT_ALIASES[key]
        except KeyError:
            raise UnexpectedAIResponse(f"verdict outside the allowed set: {raw!r}") from None

    @staticmethod
    def coerce_confidence(raw: Any) -> float:
        """Examples:
            >>> AIResponseParser.coerce_confidence("high")
            0.9
            >>> AIResponseParser.coerce_confidence("85%")
            0.85
            >>> AIResponseParser.coerce_confidence(1.2)
            1.0
            >>> AIResponseParser.coerce_confidence(None)
            0.5
        """
        if raw is None or isinstance(raw, bool):
            return DEFAULT_CONFIDENCE
        if isinstance(raw, str):
            word = raw.strip().lower()
            if word in _CONFIDENCE_WORDS:
                return _CONFIDENCE_WORDS[word]
            if word.endswith("%"):
                return AIResponseParser._percentage(word[:-1])
            raw = word
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if math.isnan(value):
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, value))

    @staticmethod
    def _percentage(number: str) -> float:
        try:
            value = float(number.strip()) / 100.0
        except ValueError:
            return DEFAULT_CONFIDENCE
        if math.isnan(value):
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, value))

    @staticmethod
    def _coerce_explanation(raw: Any) -> str:
        if raw is None:
            return ""
        return str(raw).strip()[:MAX_EXPLANATION]

    @staticmethod
    def _coerce_sources(raw: Any) -> List[str]:
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, list):
            return []
        sources: list[str] = []
        for item in raw:
            if isinstance(item, dict):
                item = item.get("url") or item.get("name") or item.get("title")
            if isinstance(item, str) and item.strip() and item.strip() not in sources:
                sources.append(item.strip())
        return sources

    # ── fallback ─────────────────────────────────────────────────────

    def _fallback(
        self,
        error: AIResponseError,
        evidence: str,
        *,
        explanation: str,
        confidence: float,
        sources: List[str],
    ) -> ParsedAIVerdict:
        verdict = self.keyword_verdict(evidence)
        logger.warning(
            "ai_response_fallback reason=%s verdict=%s detail=%s",
            error.reason, verdict.value, error,
        )
        return ParsedAIVerdict(
            verdict=verdict,
            confidence_score=min(confidence, DEFAULT_CONFIDENCE),
            explanation=(explanation.strip()[:MAX_EXPLANATION] or "The AI response could not be interpreted."),
            sources=sources,
            fallback_reason=error.reason,
        )

    @staticmethod
    def keyword_verdict(text: str) -> VerdictLabel:
        """Count verdict keywords; a tie or no evidence means NEEDS_CONTEXT.

        Examples:
            >>> AIResponseParser.keyword_verdict("This claim is false and was debunked")
            <VerdictLabel.FALSE: 'false'>
            >>> AIResponseParser.keyword_verdict("It is not true")
            <VerdictLabel.FALSE: 'false'>
            >>> AIResponseParser.keyword_verdict("Hard to say")
            <VerdictLabel.NEEDS_CONTEXT: 'needs_context'>
        """
        lowered = (text or "").lower()
        scores = {label: 0 for label in VerdictLabel}

        for pattern, label in _NEGATIONS:
            found = re.findall(pattern, lowered)
            if found:
                scores[label] += len(found)
                lowered = re.sub(pattern, " ", lowered)

        for label, words in _KEYWORDS.items():
            for word in words:
                scores[label] += len(re.findall(rf"\b{re.escape(word)}\b", lowered))

        best = max(scores.values())
        if best == 0:
            return VerdictLabel.NEEDS_CONTEXT
        leaders = [label for label, score in scores.items() if score == best]
        if len(leaders) > 1:
            return VerdictLabel.NEEDS_CONTEXT
        return leaders[0]
