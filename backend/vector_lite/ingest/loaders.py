"""Document loaders for supported formats."""

from __future__ import annotations

import re
from pathlib import Path

import fitz
import yaml
from docx import Document

from vector_lite.ingest.types import LoadedDocument

_RTF_GROUP_RE = re.compile(r"\{\\(?:\*|fonttbl|colortbl|stylesheet|info)[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")
_RTF_PAR_RE = re.compile(r"\\par\b ?")
_RTF_CONTROL_RE = re.compile(r"\\[a-zA-Z]+-?\d* ?")
_RTF_HEX_RE = re.compile(r"\\'([0-9a-fA-F]{2})")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")


class BaseLoader:
    """Common loader interface."""

    suffixes: tuple[str, ...] = ()

    def can_load(self, path: Path) -> bool:
        return path.suffix.lower() in self.suffixes

    def load(self, path: Path) -> LoadedDocument:  # pragma: no cover - interface
        raise NotImplementedError

    def _document(self, path: Path, text: str, raw: bytes, title: str | None = None) -> LoadedDocument:
        return LoadedDocument(
            path=path,
            title=title or path.stem,
            text=text,
            file_type=path.suffix.lower().lstrip(".") or "txt",
            size_bytes=len(raw),
        )


class TextLoader(BaseLoader):
    suffixes = (".txt", ".text", ".log")

    def load(self, path: Path) -> LoadedDocument:
        raw = path.read_bytes()
        return self._document(path, raw.decode("utf-8", errors="replace"), raw)


class MarkdownLoader(BaseLoader):
    suffixes = (".md", ".markdown")

    def load(self, path: Path) -> LoadedDocument:
        raw = path.read_bytes()
        text = raw.decode("utf-8", errors="replace")
        front_matter, body = _split_front_matter(text)
        title = front_matter.get("title") if front_matter else None
        return self._document(path, body.strip(), raw, title=str(title) if title else None)


class PDFLoader(BaseLoader):
    suffixes = (".pdf",)

    def load(self, path: Path) -> LoadedDocument:
        raw = path.read_bytes()
        with fitz.open(stream=raw, filetype="pdf") as doc:
            pages = [page.get_text("text", sort=True).strip() for page in doc]
        return self._document(path, "\n\n".join(page for page in pages if page), raw)


class DocxLoader(BaseLoader):
    suffixes = (".docx",)

    def load(self, path: Path) -> LoadedDocument:
        raw = path.read_bytes()
        document = Document(path)
        paragraphs = [para.text.strip() for para in document.paragraphs if para.text.strip()]
        core = document.core_properties
        return self._document(path, "\n\n".join(paragraphs), raw, title=core.title or None)


class RTFLoader(BaseLoader):
    suffixes = (".rtf",)

    def load(self, path: Path) -> LoadedDocument:
        raw = path.read_bytes()
        return self._document(path, rtf_to_text(raw.decode("latin-1")), raw)


class LoaderRegistry:
    """Pick a loader by suffix; unknown suffixes are read as plain text."""

    def __init__(self) -> None:
        self._loaders: list[BaseLoader] = [
            MarkdownLoader(),
            TextLoader(),
            PDFLoader(),
            DocxLoader(),
            RTFLoader(),
        ]
        self._fallback = TextLoader()

    def register(self, loader: BaseLoader) -> None:
        self._loaders.insert(0, loader)

    def for_path(self, path: Path) -> BaseLoader:
        for loader in self._loaders:
            if loader.can_load(path):
                return loader
        return self._fallback

    def load(self, path: Path) -> LoadedDocument:
        if not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")
        return self.for_path(path).load(path)


def rtf_to_text(source: str) -> str:
    """Strip RTF control words and groups, keeping paragraph breaks."""
    text = _RTF_GROUP_RE.sub("", source)
    text = _RTF_HEX_RE.sub(lambda match: bytes.fromhex(match.group(1)).decode("latin-1"), text)
    text = _RTF_PAR_RE.sub("\n", text)
    text = _RTF_CONTROL_RE.sub("", text)
    text = text.replace("{", "").replace("}", "")
    text = _TRAILING_SPACE_RE.sub("\n", text)
    return text.strip()


def _split_front_matter(text: str) -> tuple[dict[str, object] | None, str]:
    if text.startswith("---"):
        parts = text.split("---", 2)
        if len(parts) >= 3:
            try:
                front_matter = yaml.safe_load(parts[1]) or {}
            except yaml.YAMLError:
                return None, text
            if isinstance(front_matter, dict):
                return front_matter, parts[2]
    return None, text


__all__ = [
    "BaseLoader",
    "TextLoader",
    "MarkdownLoader",
    "PDFLoader",
    "DocxLoader",
    "RTFLoader",
    "LoaderRegistry",
    "rtf_to_text",
]
