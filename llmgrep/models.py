from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class SkipReason(StrEnum):
    TOO_LARGE = "too_large"
    BINARY = "binary"
    UNREADABLE = "unreadable"
    NOT_REGULAR = "not_regular"


class UnscoredReason(StrEnum):
    PARSE_FAILURE = "parse_failure"
    SCORING_FAILURE = "scoring_failure"


class Phase(StrEnum):
    FILENAME = "filename"
    CONTENT = "content"


@dataclass(frozen=True)
class CandidateFile:
    path: Path
    rel_path: str
    size: int


@dataclass(frozen=True)
class SkippedFile:
    path: Path
    reason: SkipReason
    detail: str = ""


@dataclass(frozen=True)
class Subject:
    path: Path
    chunk_index: int | None = None

    def __str__(self) -> str:
        if self.chunk_index is None:
            return str(self.path)
        return f"{self.path}#chunk{self.chunk_index}"


@dataclass(frozen=True)
class ScoreVerdict:
    subject: Subject
    score: float
    explanation: str


@dataclass(frozen=True)
class Unscored:
    """A subject that could not be judged. Distinct from a judged score of zero."""

    subject: Subject
    reason: UnscoredReason
    detail: str = ""
    raw_sample: str | None = None


Verdict = ScoreVerdict | Unscored


@dataclass(frozen=True)
class RankedResult:
    path: Path
    rel_path: str
    score: float
    explanation: str
    filename_score: float | None = None
    chunks_scored: int = 1
    chunks_total: int = 1


@dataclass(frozen=True)
class FileAnalysis:
    """Content verdict for one file plus its chunk bookkeeping."""

    candidate: CandidateFile
    verdict: Verdict
    chunks_scored: int
    chunks_total: int


@dataclass
class SearchRun:
    """Mutable accumulator for one invocation.

    Owned by the caller so whatever has been collected survives cancellation.
    Content analyses are recorded as each file finishes, in completion order.
    """

    root: Path
    query: str
    candidates: list[CandidateFile] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    filename_verdicts: dict[Path, ScoreVerdict] = field(default_factory=dict)
    survivors: list[CandidateFile] = field(default_factory=list)
    analyses: list[FileAnalysis] = field(default_factory=list)
    unscored: list[tuple[Phase, Unscored]] = field(default_factory=list)
    interrupted: bool = False

    def record_analysis(self, analysis: FileAnalysis) -> None:
        self.analyses.append(analysis)
        if isinstance(analysis.verdict, Unscored):
            self.unscored.append((Phase.CONTENT, analysis.verdict))

    def results(self) -> list[RankedResult]:
        """Ranked results, best first; ties keep Phase-1 order."""
        order = {c.path: i for i, c in enumerate(self.survivors)}
        ranked = [
            RankedResult(
                path=a.candidate.path,
                rel_path=a.candidate.rel_path,
                score=a.verdict.score,
                explanation=a.verdict.explanation,
                filename_score=fv.score if (fv := self.filename_verdicts.get(a.candidate.path)) else None,
                chunks_scored=a.chunks_scored,
                chunks_total=a.chunks_total,
            )
            for a in self.analyses
            if isinstance(a.verdict, ScoreVerdict)
        ]
        return sorted(ranked, key=lambda r: (-r.score, order.get(r.path, len(order))))
