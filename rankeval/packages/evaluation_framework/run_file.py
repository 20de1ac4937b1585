"""
TREC-style run files: ``<topic> Q0 <doc> <rank> <score> <tag>`` per line.
"""

import logging
from pathlib import Path
from typing import Union

from .errors import RunFormatError
from .models import Run, RunRecord

logger = logging.getLogger(__name__)

# Legacy positional field, always this constant.
Q0 = "Q0"


def format_run_line(record: RunRecord) -> str:
    """Render one record; score is fixed to 4 decimal places."""
    return (f"{record.topic_id} {Q0} {record.document_id} "
            f"{record.rank} {record.score:.4f} {record.run_tag}\n")


def write_run(path: Union[str, Path], run: Run) -> Path:
    """Write every record of the run, in the order it was produced."""
    path_obj = Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(path_obj, 'w', encoding='utf-8') as f:
        for record in run.records:
            f.write(format_run_line(record))

    logger.info(f"Wrote {len(run)} run lines for {len(run.topics())} topics to {path_obj}")
    return path_obj


def parse_run_line(line: str, path: str, line_number: int, default_tag: str) -> RunRecord:
    """Parse one space-separated run line. Raises ``RunFormatError`` when malformed."""
    parts = line.split(" ")
    if len(parts) < 5:
        raise RunFormatError(f"expected 6 space-separated fields, got {len(parts)}", path, line_number)
    if len(parts) > 6:
        raise RunFormatError(f"expected 6 space-separated fields, got {len(parts)}", path, line_number)

    topic_id, _q0, document_id, rank_field, score_field = parts[:5]
    run_tag = parts[5] if len(parts) == 6 else default_tag

    if not topic_id or not document_id:
        raise RunFormatError("empty topic or document id", path, line_number)

    try:
        rank = int(rank_field)
    except ValueError:
        raise RunFormatError(f"rank is not an integer: {rank_field!r}", path, line_number) from None

    try:
        score = float(score_field)
    except ValueError:
        raise RunFormatError(f"score is not a number: {score_field!r}", path, line_number) from None

    return RunRecord(topic_id=topic_id, document_id=document_id, rank=rank, score=score, run_tag=run_tag)


def read_run(path: Union[str, Path]) -> Run:
    """Load a run file. Any malformed line rejects the whole file."""
    logger.info(f"Loading run from {path}")

    path_obj = Path(path)
    if not path_obj.exists():
        logger.error(f"Run file not found: {path}")
        raise FileNotFoundError(f"Run file not found: {path}")

    run = Run(tag=path_obj.stem)
    tags = set()
    with open(path_obj, 'r', encoding='utf-8') as f:
        for line_num, raw in enumerate(f, 1):
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            try:
                record = parse_run_line(line, str(path), line_num, path_obj.stem)
            except RunFormatError as e:
                logger.error(f"Malformed run file: {e}")
                raise
            run.records.append(record)
            tags.add(record.run_tag)

    if len(tags) == 1:
        run.tag = tags.pop()
    elif len(tags) > 1:
        logger.warning(f"Run file {path} mixes run tags {sorted(tags)}; using '{run.tag}'")

    logger.info(f"Loaded {len(run)} run lines for {len(run.topics())} topics from {path}")
    return run
