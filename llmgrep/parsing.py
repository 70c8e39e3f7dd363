import json
import re

from llmgrep.constants import RAW_SAMPLE_CHARS, SCORE_MAX, SCORE_MIN
from llmgrep.logging import get_logger
from llmgrep.models import ScoreVerdict, Subject, Unscored, UnscoredReason, Verdict

_logger = get_logger(__name__)

_NUMBER = r"[-+]?(?:\d+(?:\.\d+)?|\.\d+)"
_SUFFIX = r"(?:\s*(?P<pct>%)|\s*(?:/|\bout\s+of\b)\s*(?P<den>\d+(?:\.\d+)?))?"
# scale restated next to the label: "score (0-100):", "score [1-10] =", "score out of 10:"
_SCALE = r"(?P<scale>\([^)]*\)|\[[^\]]*\]|out\s+of\s+\d+)"

_LABELLED_SCORE = re.compile(
    rf"""["']?\b(?:relevance[ _]?)?score["']?\s*{_SCALE}?\s*[:=]?\s*(?:(?:is|of)\s+)?(?P<num>{_NUMBER}){_SUFFIX}""",
    re.IGNORECASE,
)
_BARE_NUMBER = re.compile(rf"(?<![\w.])(?P<num>{_NUMBER}){_SUFFIX}(?!\w)(?!\.\d)")
# "0-100", "0 to 100", "from 1 to 10": never a score
_RANGE = re.compile(
    r"(?<![\w.])(?:from[ \t]+)?\d+(?:\.\d+)?[ \t]*(?:-|–|\bto\b)[ \t]*\d+(?:\.\d+)?(?![\w.])",
    re.IGNORECASE,
)
# "on a scale of 0 to 10, ... 8"
_SCALE_PHRASE = re.compile(
    r"\bscale\s+(?:of\s+|from\s+)?\d+(?:\.\d+)?\s*(?:-|–|\bto\b)\s*(?P<top>\d+(?:\.\d+)?)",
    re.IGNORECASE,
)
_DIGITS = re.compile(r"\d+(?:\.\d+)?")
_EXPLANATION_LABEL = re.compile(
    r"""["']?\b(?:reason|reasoning|explanation|analysis|rationale)["']?\s*[:=]\s*""",
    re.IGNORECASE,
)
_EXPLANATION_KEYS = ("reason", "reasoning", "explanation", "analysis", "rationale")
_FENCE = re.compile(r"^```[\w-]*\s*\n?|\n?```\s*$")


def clamp_score(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE.sub("", text).strip()
    return text


def _mask_ranges(text: str) -> str:
    """Blank out range tokens, keeping offsets so match spans still index `text`."""
    return _RANGE.sub(lambda m: " " * len(m.group()), text)


def _scale_top(text: str, span: tuple[int, int]) -> float | None:
    start, end = span
    if start < 0:
        return None
    numbers = [float(n) for n in _DIGITS.findall(text[start:end])]
    return max(numbers) if numbers else None


def _scale(num: str, pct: str | None, den: str | None, scale_top: float | None = None) -> float:
    value = float(num)
    if den is None and pct is None and scale_top:
        den = str(scale_top)
    if den is not None:
        denominator = float(den)
        if denominator > 0:
            value = value / denominator * SCORE_MAX
    elif pct is None and "." in num and 0 <= value <= 1:
        # 0.85 on a unit scale
        value *= SCORE_MAX
    return clamp_score(value)


def _extract_json_object(text: str) -> dict | None:
    start = text.find("{")
    if start < 0:
        return None
    try:
        obj, _ = json.JSONDecoder().raw_decode(text[start:])
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None


def _from_json(obj: dict) -> tuple[float, str] | None:
    raw_score = next((v for k, v in obj.items() if k.lower() in ("score", "relevance", "relevance_score")), None)
    if isinstance(raw_score, bool) or raw_score is None:
        return None
    if isinstance(raw_score, int | float):
        score = _scale(str(raw_score), None, None)
    elif isinstance(raw_score, str) and (m := _BARE_NUMBER.search(_mask_ranges(raw_score))):
        score = _scale(m["num"], m["pct"], m["den"])
    else:
        return None

    explanation = next(
        (str(v) for k, v in obj.items() if k.lower() in _EXPLANATION_KEYS and v is not None),
        "",
    )
    return score, explanation.strip()


def _clean(text: str) -> str:
    return " ".join(text.split()).strip(" -:,.;\"'")


def _explanation(text: str, score_span: tuple[int, int], labelled: bool) -> str:
    start, end = score_span
    label = _EXPLANATION_LABEL.search(text)
    if label is None:
        return _clean(f"{text[:start]} {text[end:]}")
    if start < label.end():
        return _clean(text[label.end() :])

    # Score after the explanation: a "Score:" line ends it, an inline number is part of the prose.
    line_start = text.rfind("\n", 0, start) + 1
    if labelled or not text[line_start:start].strip():
        return _clean(text[label.end() : start])
    return _clean(f"{text[label.end() : start]} {text[end:]}")


class ResponseParser:
    """Turns free-text model replies into verdicts, or into an explicit Unscored."""

    def __init__(self, raw_sample_chars: int = RAW_SAMPLE_CHARS):
        self.raw_sample_chars = raw_sample_chars

    def parse(self, raw: str, subject: Subject) -> Verdict:
        text = _strip_fences(raw or "")

        if (obj := _extract_json_object(text)) is not None and (parsed := _from_json(obj)) is not None:
            score, explanation = parsed
            return ScoreVerdict(subject=subject, score=score, explanation=explanation)

        masked = _mask_ranges(text)
        if match := _LABELLED_SCORE.search(masked):
            labelled = True
            scale_top = _scale_top(text, match.span("scale"))
        elif match := _BARE_NUMBER.search(masked):
            labelled = False
            phrase = _SCALE_PHRASE.search(text, 0, match.start())
            scale_top = _scale_top(text, phrase.span("top")) if phrase else None
        else:
            _logger.debug("No score in response", subject=str(subject), raw=text[: self.raw_sample_chars])
            return Unscored(
                subject=subject,
                reason=UnscoredReason.PARSE_FAILURE,
                detail="no numeric score in response",
                raw_sample=(raw or "")[: self.raw_sample_chars],
            )

        score = _scale(match["num"], match["pct"], match["den"], scale_top)
        return ScoreVerdict(subject=subject, score=score, explanation=_explanation(text, match.span(), labelled))


def parse_verdict(raw: str, subject: Subject, raw_sample_chars: int = RAW_SAMPLE_CHARS) -> Verdict:
    return ResponseParser(raw_sample_chars).parse(raw, subject)
