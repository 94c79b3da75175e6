import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonGameSource:
    """Reads game documents from a file or a directory of files.

    A file holds one document, a list of documents, or (``.jsonl``) one
    document per line. Directories are read in name order.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def source_type(self) -> str:
        return "json"

    @property
    def source_detail(self) -> str:
        return str(self._path)

    def fetch(self, **params: Any) -> list[dict[str, Any]]:
        encoding = params.pop("encoding", "utf-8")
        if self._path.is_dir():
            files = sorted(p for p in self._path.iterdir() if p.suffix in (".json", ".jsonl"))
        else:
            files = [self._path]
        documents: list[dict[str, Any]] = []
        for file in files:
            logger.debug("Reading JSON %s", file)
            documents.extend(_read_documents(file, encoding))
        logger.debug("Read %d game documents from %s", len(documents), self._path)
        return documents


def _read_documents(path: Path, encoding: str) -> list[dict[str, Any]]:
    text = path.read_text(encoding=encoding)
    if path.suffix == ".jsonl":
        return [json.loads(line) for line in text.splitlines() if line.strip()]
    parsed = json.loads(text)
    if isinstance(parsed, list):
        return parsed
    return [parsed]
