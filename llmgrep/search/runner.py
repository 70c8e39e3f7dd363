import asyncio
from pathlib import Path

from llmgrep.config import Config
from llmgrep.llm.base import ScoringClient
from llmgrep.logging import get_logger
from llmgrep.models import Phase, SearchRun
from llmgrep.parsing import ResponseParser
from llmgrep.scan import TreeWalker, validate_root
from llmgrep.search.aggregation import get_reducer
from llmgrep.search.analysis import ContentAnalyzer
from llmgrep.search.dispatch import ScoringDispatcher
from llmgrep.search.triage import FilenameRanker

_logger = get_logger(__name__)


async def run_search(
    root: Path,
    query: str,
    config: Config,
    client: ScoringClient,
    run: SearchRun | None = None,
) -> SearchRun:
    """Walk `root`, triage by filename, analyze the survivors' content.

    Everything collected is stored on `run`, which the caller may pass in so it can
    still report partial results if this coroutine is cancelled.
    """
    root = validate_root(root)
    if run is None:
        run = SearchRun(root=root, query=query)

    await client.ping()

    walker = TreeWalker.from_config(config)
    run.candidates = await asyncio.to_thread(walker.walk, root)
    run.skipped = walker.skipped
    _logger.info("Collected candidates", candidates=len(run.candidates), skipped=len(run.skipped))
    if not run.candidates:
        return run

    dispatcher = ScoringDispatcher(client, ResponseParser(config.raw_sample_chars), config.concurrency)

    ranker = FilenameRanker(dispatcher, config.top_n, rounds=config.triage_rounds)
    triage = await ranker.triage(run.candidates, query)
    run.filename_verdicts = {c.path: v for c, v in triage.ranked}
    run.unscored.extend((Phase.FILENAME, u) for u in triage.unscored)
    run.survivors = triage.survivors
    if not run.survivors:
        return run

    analyzer = ContentAnalyzer(
        dispatcher,
        chunk_size=config.chunk_size,
        reducer=get_reducer(config.aggregation, config.aggregation_top_k),
    )
    await analyzer.analyze_all(run.survivors, query, on_result=run.record_analysis)
    _logger.info("Content analysis done", analyzed=len(run.analyses))
    return run
