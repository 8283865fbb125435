"""
Main Input Handler Module.

This module provides the InputHandler class that turns files on disk
into DocumentInput objects for the pipeline. The MIME type is derived
from the file extension.

Usage:
    from docextract.input_handler import InputHandler

    handler = InputHandler()
    document = handler.load("receipt.pdf")

    # Collect every supported file in a directory
    documents = handler.load_batch("./receipts/")

Classes:
    InputHandler: Loads files from disk into DocumentInput objects
"""

from pathlib import Path
from typing import List, Union

from docextract.utils.logger import get_logger
from docextract.utils.helpers import format_file_size, get_file_extension
from docextract.utils.exceptions import UnsupportedFileTypeError
from .document import DocumentInput

# Initialize module logger
logger = get_logger(__name__)


class InputHandler:
    """
    Loads documents from the filesystem.

    Attributes:
        EXTENSION_MIME_TYPES: File extension to MIME type mapping

    Example:
        >>> handler = InputHandler()
        >>> handler.detect_mime_type("scan.JPG")
        'image/jpeg'
    """

    EXTENSION_MIME_TYPES = {
        '.pdf': 'application/pdf',
        '.jpg': 'image/jpeg',
        '.jpeg': 'image/jpeg',
        '.png': 'image/png',
        '.webp': 'image/webp',
    }

    def detect_mime_type(self, filepath: Union[str, Path]) -> str:
        """
        Map a file extension to its MIME type.

        Raises:
            UnsupportedFileTypeError: If the extension is not supported.
        """
        extension = get_file_extension(filepath)
        mime_type = self.EXTENSION_MIME_TYPES.get(extension)
        if mime_type is None:
            raise UnsupportedFileTypeError(
                extension or str(filepath), sorted(self.EXTENSION_MIME_TYPES)
            )
        return mime_type

    def is_supported(self, filepath: Union[str, Path]) -> bool:
        return get_file_extension(filepath) in self.EXTENSION_MIME_TYPES

    def load(self, filepath: Union[str, Path]) -> DocumentInput:
        """
        Read a file into a DocumentInput.

        Args:
            filepath: Path to the document.

        Returns:
            DocumentInput with bytes, MIME type, name and size.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            UnsupportedFileTypeError: If the extension is not supported.
        """
        path = Path(filepath)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        mime_type = self.detect_mime_type(path)
        data = path.read_bytes()

        logger.debug(f"Loaded {path.name} ({format_file_size(len(data))}, {mime_type})")
        return DocumentInput(
            data=data,
            mime_type=mime_type,
            filename=path.name,
            size=len(data)
        )

    def find_files(
        self,
        directory: Union[str, Path],
        recursive: bool = False
    ) -> List[Path]:
        """Return the supported files in a directory, sorted by path."""
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {directory}")

        pattern = "**/*" if recursive else "*"
        files = sorted(
            p for p in directory.glob(pattern)
            if p.is_file() and self.is_supported(p)
        )
        logger.info(f"Found {len(files)} supported file(s) in {directory}")
        return files

    def load_batch(
        self,
        directory: Union[str, Path],
        recursive: bool = False
    ) -> List[DocumentInput]:
        """
        Load every supported file in a directory.

        Example:
            >>> documents = handler.load_batch("./receipts/")
            >>> print(f"Loaded {len(documents)} documents")
        """
        return [self.load(path) for path in self.find_files(directory, recursive)]
