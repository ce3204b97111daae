"""Document loader interface and implementations."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from llm_memory.documents.models import Document
from llm_memory.exceptions import DocumentError, ErrorCode, NotFoundError
from llm_memory.logging_config import get_logger

logger = get_logger(__name__)

FILE_TYPES = {
    ".txt": "text/plain",
    ".text": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".rst": "text/x-rst",
}


class DocumentLoader(ABC):
    """Abstract base class for document loaders."""

    @abstractmethod
    def load(self, source: str | Path) -> list[Document]:
        """Load documents from a source.

        Args:
            source: Path or identifier for the document source.

        Returns:
            Loaded documents.

        Raises:
            DocumentError: If loading fails.
        """
        ...


class TextFileLoader(DocumentLoader):
    """Loader for plain text files.

    Supports .txt, .md, and other text-based files.
    """

    SUPPORTED_EXTENSIONS = frozenset(FILE_TYPES)

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize the text file loader.

        Args:
            encoding: Text encoding to use when reading files.
        """
        self.encoding = encoding

    def load(self, source: str | Path) -> list[Document]:
        """Load a text file as a single document."""
        return [self.load_file(source)]

    def load_file(self, source: str | Path) -> Document:
        """Load a text file as a document.

        Args:
            source: Path to the text file.

        Returns:
            Document with file content and file metadata.

        Raises:
            DocumentError: If file cannot be read.
        """
        path = Path(source)

        if not path.exists():
            raise DocumentError(
                f"File not found: {path}",
                code=ErrorCode.DOCUMENT_NOT_FOUND,
                details={"path": str(path)},
            )

        if not path.is_file():
            raise DocumentError(
                f"Not a file: {path}",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details={"path": str(path)},
            )

        try:
            content = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise DocumentError(
                f"Failed to decode file: {path}",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details={"path": str(path), "encoding": self.encoding, "error": str(e)},
            ) from e
        except OSError as e:
            raise DocumentError(
                f"Failed to read file: {path}",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details={"path": str(path), "error": str(e)},
            ) from e

        return Document(content=content, metadata=self._file_metadata(path))

    def supports(self, source: str | Path) -> bool:
        """Check if source is a supported text file."""
        return Path(source).suffix.lower() in self.SUPPORTED_EXTENSIONS

    @staticmethod
    def _file_metadata(path: Path) -> dict[str, Any]:
        stat = path.stat()
        modified = datetime.fromtimestamp(stat.st_mtime, UTC)
        return {
            "source": str(path),
            "file_name": path.name,
            "file_type": FILE_TYPES.get(path.suffix.lower(), "text/plain"),
            "file_size": stat.st_size,
            "timestamp": modified.strftime("%Y%m%d%H%M%S"),
        }


class DirectoryLoader(DocumentLoader):
    """Recursively load every supported file under a directory."""

    def __init__(self, file_loader: TextFileLoader | None = None) -> None:
        self._file_loader = file_loader or TextFileLoader()

    def load(self, source: str | Path) -> list[Document]:
        """Load all supported files below a directory, in path order.

        Unsupported files are skipped.

        Raises:
            DocumentError: If the directory does not exist or a file fails to load.
        """
        root = Path(source)
        if not root.is_dir():
            raise DocumentError(
                f"Directory not found: {root}",
                code=ErrorCode.DOCUMENT_NOT_FOUND,
                details={"path": str(root)},
            )

        documents: list[Document] = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            if not self._file_loader.supports(path):
                logger.debug("Skipping unsupported file", extra={"path": str(path)})
                continue
            documents.append(self._file_loader.load_file(path))

        logger.info(
            f"Loaded {len(documents)} documents",
            extra={"directory": str(root)},
        )
        return documents


LOADERS: dict[str, type[DocumentLoader]] = {
    "file": DirectoryLoader,
    "text": TextFileLoader,
}


def load_documents(loader_name: str, source: str | Path) -> list[Document]:
    """Load documents with a registered loader.

    Args:
        loader_name: Registered loader name ("file" for directories,
            "text" for a single file).
        source: Path passed to the loader.

    Returns:
        Loaded documents.

    Raises:
        NotFoundError: If no loader is registered under the name.
    """
    loader_class = LOADERS.get(loader_name)
    if loader_class is None:
        raise NotFoundError(
            f"Loader '{loader_name}' not found",
            details={"loader": loader_name, "available": sorted(LOADERS)},
        )
    return loader_class().load(source)
