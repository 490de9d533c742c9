"""Error types raised while publishing a website.

Every failure that escapes a publishing run is a :class:`PublishingError`.
Lower-level errors raised by the publishing context (:class:`FileIOError`,
:class:`ContentError`) and by deployment methods (:class:`DeploymentError`)
derive from :class:`PublishingErrorConvertible`; the pipeline turns them into
a :class:`PublishingError` that names the step they were raised from.

Examples
--------
>>> from pathlib import PurePosixPath
>>> from publishkit.errors import FileIOError, FileIOReason
>>> error = FileIOError(PurePosixPath("Resources"), FileIOReason.FOLDER_NOT_FOUND)
>>> converted = error.publishing_error(step_name="Copy resources")
>>> converted.step_name, converted.info_message
('Copy resources', 'Folder not found')
"""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import PurePath


class PublishingError(Exception):
    """Structured error describing why a publishing run failed.

    Attributes
    ----------
    step_name : str or None
        Name of the step that was running, if any.
    path : PurePath or None
        Path associated with the failure.
    info_message : str or None
        Human-readable description of the failure.
    underlying_error : BaseException or None
        Error that caused this one.
    """

    def __init__(
        self,
        *,
        step_name: str | None = None,
        path: PurePath | None = None,
        info_message: str | None = None,
        underlying_error: BaseException | None = None,
    ) -> None:
        self.step_name = step_name
        self.path = path
        self.info_message = info_message
        self.underlying_error = underlying_error
        super().__init__(info_message or "Publishing failed")

    def __str__(self) -> str:
        lines = ["Publishing encountered an error:"]
        if self.step_name:
            lines.append(f"[step] {self.step_name}")
        if self.path is not None:
            lines.append(f"[path] {self.path}")
        if self.info_message:
            lines.append(f"[info] {self.info_message}")
        if self.underlying_error is not None:
            lines.append(f"[error] {self.underlying_error}")
        return "\n".join(lines)


class SetupError(PublishingError):
    """Raised when the folder structure cannot be set up before a run."""


class ConfigurationError(PublishingError):
    """Raised when a run has no steps to execute."""


class PublishingErrorConvertible(Exception):
    """Base class for errors that can describe themselves as a publishing error."""

    def publishing_error(self, *, step_name: str) -> PublishingError:
        raise NotImplementedError


class FileIOReason(enum.Enum):
    """Reason attached to a :class:`FileIOError`."""

    FOLDER_NOT_FOUND = "Folder not found"
    FILE_NOT_FOUND = "File not found"
    FOLDER_CREATION_FAILED = "Failed to create folder"
    FILE_CREATION_FAILED = "Failed to create file"
    FOLDER_COPYING_FAILED = "Failed to copy folder"
    FILE_COPYING_FAILED = "Failed to copy file"
    DEPLOYMENT_FOLDER_SETUP_FAILED = "Failed to set up deployment folder"


class FileIOError(PublishingErrorConvertible):
    """Raised when the publishing context fails to read or write the filesystem."""

    def __init__(
        self,
        path: PurePath,
        reason: FileIOReason,
        *,
        underlying_error: BaseException | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        self.underlying_error = underlying_error
        super().__init__(f"{reason.value}: {path}")

    def publishing_error(self, *, step_name: str) -> PublishingError:
        return PublishingError(
            step_name=step_name,
            path=self.path,
            info_message=self.reason.value,
            underlying_error=self.underlying_error,
        )


class ContentReason(enum.Enum):
    """Reason attached to a :class:`ContentError`."""

    PAGE_NOT_FOUND = "No page found at the given path"
    PAGE_MUTATION_FAILED = "Page mutation failed"
    MARKDOWN_METADATA_DECODING_FAILED = "Failed to decode Markdown metadata"


class ContentError(PublishingErrorConvertible):
    """Raised when website content cannot be found, decoded or mutated."""

    def __init__(
        self,
        path: PurePath,
        reason: ContentReason,
        *,
        underlying_error: BaseException | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        self.underlying_error = underlying_error
        super().__init__(f"{reason.value}: {path}")

    def publishing_error(self, *, step_name: str) -> PublishingError:
        return PublishingError(
            step_name=step_name,
            path=self.path,
            info_message=self.reason.value,
            underlying_error=self.underlying_error,
        )


class DeploymentError(PublishingErrorConvertible):
    """Raised when a deployment method's external command fails."""

    def __init__(
        self,
        path: PurePath | None,
        info_message: str,
        *,
        output_message: str | None = None,
    ) -> None:
        self.path = path
        self.info_message = info_message
        self.output_message = output_message
        super().__init__(info_message)

    def publishing_error(self, *, step_name: str) -> PublishingError:
        message = self.info_message
        if self.output_message:
            message = f"{message}\n{self.output_message.strip()}"
        return PublishingError(step_name=step_name, path=self.path, info_message=message)


__all__ = [
    "ConfigurationError",
    "ContentError",
    "ContentReason",
    "DeploymentError",
    "FileIOError",
    "FileIOReason",
    "PublishingError",
    "PublishingErrorConvertible",
    "SetupError",
]
