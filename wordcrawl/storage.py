import json
from pathlib import Path
from typing import Dict, TextIO

from .types import CrawlResult


class CrawlResultWriter:
    def __init__(self, result: CrawlResult) -> None:
        self.result = result

    def to_dict(self) -> Dict:
        # key order of word_counts is the ranking and must survive serialization
        return {"wordCounts": dict(self.result.word_counts), "urlsVisited": self.result.urls_visited}

    def write_to(self, stream: TextIO) -> None:
        json.dump(self.to_dict(), stream, ensure_ascii=False, indent=2)
        stream.write("\n")
        stream.flush()

    def write(self, output_path: str) -> None:
        out_path = Path(output_path)
        if out_path.parent:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as fh:
            self.write_to(fh)
