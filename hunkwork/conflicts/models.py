"""Models for merge conflicts."""

from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel


class ConflictInfo(BaseModel):
    """Three-way content of one conflicted (or formerly conflicted) file.

    ``merged_content`` is the working-tree text including conflict markers.
    """

    file_path: str
    base_content: Optional[str] = None
    ours_content: Optional[str] = None
    theirs_content: Optional[str] = None
    merged_content: Optional[str] = None
    is_resolved: bool = False

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.file_path).name

    @property
    def has_content(self) -> bool:
        """Whether at least one side has non-empty content."""
        return any((self.base_content, self.ours_content, self.theirs_content))
