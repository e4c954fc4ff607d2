"""
Document extractors - uploaded files to plain text

Binary formats (PDF, DOCX) are converted outside this project; the core
only needs something that yields SourceDocument objects. PlainTextExtractor
covers text files for the CLI and tests.
"""

from pathlib import Path
from typing import Protocol

from core.exceptions import ValidationFailure

from .models import SourceDocument

TEXT_SUFFIXES = {".txt", ".md", ".markdown", ".csv", ".json", ".html", ".htm", ".rst"}


class DocumentExtractor(Protocol):
    def extract(self, path: Path) -> SourceDocument:
        ...


class PlainTextExtractor:
    """Reads UTF-8 text files; the file name becomes the document source."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def extract(self, path: Path) -> SourceDocument:
        path = Path(path)
        if not path.is_file():
            raise ValidationFailure(f"File not found: {path}", field="path")
        if path.suffix.lower() not in TEXT_SUFFIXES:
            raise ValidationFailure(
                f"Unsupported file type '{path.suffix}'. Convert it to text first.",
                field="path",
            )
        try:
            text = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise ValidationFailure(f"{path.name} is not valid {self.encoding} text", field="path") from e

        return SourceDocument(text=text, filename=path.name)
