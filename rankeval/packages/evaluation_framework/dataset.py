"""
Corpus and query loading from JSONL files.

Each line is a JSON object with string fields ``_id`` and ``text``. Malformed
lines are skipped with a diagnostic; a missing file is fatal.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Iterable, Iterator, List, TypeVar, Union

from .models import Document, ParseDiagnostic, Query

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class JsonlLoad(Generic[T]):
    """Valid records of a JSONL file plus diagnostics for skipped lines."""
    records: List[T] = field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)


def parse_jsonl_lines(
    lines: Iterable[str],
    path: str,
    factory: Callable[[str, str], T],
    unique_ids: bool = False
) -> Iterator[Union[T, ParseDiagnostic]]:
    """Lazily parse ``{"_id": ..., "text": ...}`` lines into records or diagnostics.

    Ids must be single non-empty tokens so they survive the run file format.
    With ``unique_ids``, a repeated id is skipped and the first one kept.
    """
    seen = set()
    for line_num, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            yield ParseDiagnostic(path, line_num, line, f"invalid JSON ({e.msg})")
            continue

        if not isinstance(data, dict):
            yield ParseDiagnostic(path, line_num, line, "expected a JSON object")
            continue

        record_id = data.get("_id")
        text = data.get("text")
        if not isinstance(record_id, str) or not isinstance(text, str):
            yield ParseDiagnostic(path, line_num, line, "missing string field '_id' or 'text'")
            continue

        if not record_id or any(ch.isspace() for ch in record_id):
            yield ParseDiagnostic(path, line_num, line, f"id {record_id!r} is empty or contains whitespace")
            continue

        if unique_ids:
            if record_id in seen:
                yield ParseDiagnostic(path, line_num, line, f"duplicate id {record_id!r}")
                continue
            seen.add(record_id)

        yield factory(record_id, text)


def _load(
    path: Union[str, Path],
    factory: Callable[[str, str], T],
    kind: str,
    unique_ids: bool = False
) -> JsonlLoad[T]:
    logger.info(f"Loading {kind} from {path}")

    path_obj = Path(path)
    if not path_obj.exists():
        logger.error(f"{kind.capitalize()} file not found: {path}")
        raise FileNotFoundError(f"{kind.capitalize()} file not found: {path}")

    result: JsonlLoad[T] = JsonlLoad()
    with open(path_obj, 'r', encoding='utf-8') as f:
        for item in parse_jsonl_lines(f, str(path), factory, unique_ids=unique_ids):
            if isinstance(item, ParseDiagnostic):
                logger.warning(f"Skipping line {item}")
                result.diagnostics.append(item)
            else:
                result.records.append(item)

    logger.info(f"Loaded {len(result.records)} {kind} from {path} "
                f"({len(result.diagnostics)} lines skipped)")
    return result


def read_documents(path: Union[str, Path]) -> JsonlLoad[Document]:
    """Load corpus documents from JSONL file."""
    return _load(path, Document, "documents")


def iter_documents(path: Union[str, Path]) -> Iterator[Document]:
    """Stream corpus documents without keeping the whole file in memory."""
    path_obj = Path(path)
    if not path_obj.exists():
        logger.error(f"Documents file not found: {path}")
        raise FileNotFoundError(f"Documents file not found: {path}")

    with open(path_obj, 'r', encoding='utf-8') as f:
        for item in parse_jsonl_lines(f, str(path), Document):
            if isinstance(item, ParseDiagnostic):
                logger.warning(f"Skipping line {item}")
                continue
            yield item


def read_queries(path: Union[str, Path]) -> JsonlLoad[Query]:
    """Load evaluation queries from JSONL file. A repeated query id is skipped."""
    return _load(path, Query, "queries", unique_ids=True)


def check_files_exist(paths: Iterable[Union[str, Path]], kind: str) -> None:
    """Raise FileNotFoundError for the first missing input file."""
    for path in paths:
        if not Path(path).exists():
            logger.error(f"{kind} file not found: {path}")
            raise FileNotFoundError(f"{kind} file not found: {path}")
