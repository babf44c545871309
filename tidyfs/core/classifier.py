"""Extension based file classification."""

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import Category, extension_of

DEFAULT_CATEGORY = "Other"

# Built-in rule table. Order matters only for listing; lookups use the merged map.
BUILTIN_CATEGORIES: Tuple[Category, ...] = (
    Category("Documents", ("pdf", "doc", "docx", "txt", "rtf", "odt", "md",
                           "xls", "xlsx", "ppt", "pptx")),
    Category("Images", ("jpg", "jpeg", "png", "gif", "bmp", "tiff", "svg", "webp")),
    Category("Videos", ("mp4", "avi", "mov", "wmv", "flv", "mkv", "webm")),
    Category("Audio", ("mp3", "wav", "ogg", "flac", "aac", "m4a")),
    Category("Archives", ("zip", "rar", "7z", "tar", "gz", "bz2", "xz")),
    Category("Code", ("rs", "py", "js", "html", "css", "java", "c", "cpp",
                      "h", "go", "rb", "php", "sh")),
    Category("Executables", ("exe", "msi", "app", "dmg", "deb", "rpm")),
)


def normalize_extension(extension: Optional[str]) -> Optional[str]:
    """Lowercase an extension and strip one leading dot; empty becomes None."""
    if extension is None:
        return None
    extension = extension.strip().lower()
    if extension.startswith("."):
        extension = extension[1:]
    return extension or None


class ExtensionClassifier:
    """Maps file extensions to category names.

    User categories are registered after the built-ins, so on a conflicting
    extension the last registration wins.
    """

    def __init__(self, custom_categories: Optional[Mapping[str, Iterable[str]]] = None):
        """
        Initialize the classifier.

        Args:
            custom_categories: Ordered mapping of category name to extensions.
        """
        categories: List[Category] = list(BUILTIN_CATEGORIES)
        for name, extensions in (custom_categories or {}).items():
            normalized = tuple(
                ext for ext in (normalize_extension(e) for e in extensions) if ext
            )
            categories.append(Category(name, normalized))

        self._categories = tuple(categories)
        self._table: Dict[str, str] = {}
        for category in self._categories:
            for extension in category.extensions:
                self._table[extension] = category.name

    @classmethod
    def from_config(cls, config) -> "ExtensionClassifier":
        """Build a classifier from a configuration snapshot."""
        return cls(config.custom_categories)

    @property
    def categories(self) -> Tuple[Category, ...]:
        return self._categories

    def classify(self, extension: Optional[str]) -> str:
        """
        Return the category name for an extension.

        Args:
            extension: Extension with or without a leading dot, any case

        Returns:
            Category name, or "Other" when no rule matches
        """
        extension = normalize_extension(extension)
        if extension is None:
            return DEFAULT_CATEGORY
        return self._table.get(extension, DEFAULT_CATEGORY)

    def classify_path(self, file_path: Path) -> str:
        return self.classify(extension_of(file_path))
