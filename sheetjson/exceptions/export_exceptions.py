"""
Custom exceptions for sheet export operations.

This module defines a hierarchy of exceptions for the error conditions
that can occur while decoding workbooks, fetching remote documents and
exporting records. All exceptions inherit from SheetExportError so that
each input's pipeline can be guarded with a single except clause.

Empty sheets and empty row selections are not errors and have no
exception here.

Example:
    try:
        workbook = service.decode(source)
    except DecodeError as e:
        logger.warning(f"Skipping {e.source_name}: {e.reason}")
    except SheetExportError as e:
        logger.error(f"General error: {e}")
"""


class SheetExportError(Exception):
    """
    Base exception for all sheet export errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for API responses.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "EXPORT_ERROR",
        details: dict | None = None,
    ) -> None:
        """
        Initialize the SheetExportError.

        Args:
            message: Human-readable error description.
            error_code: Machine-readable error code for API responses.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class DecodeError(SheetExportError):
    """
    Raised when bytes cannot be decoded into a workbook.

    Attributes:
        source_name: Name of the file or document that failed to decode.
        reason: Decoder-specific reason, if known.
    """

    def __init__(self, source_name: str, reason: str | None = None) -> None:
        self.source_name = source_name
        self.reason = reason

        message = f"Malformed workbook: {source_name}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="MALFORMED_WORKBOOK",
            details={"source_name": source_name, "reason": reason},
        )


class InvalidReferenceError(SheetExportError):
    """
    Raised when a remote document URL has no extractable identifier.

    No network access happens before this is raised.

    Attributes:
        url: The URL that was rejected.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            message=f"Invalid document reference: {url}",
            error_code="INVALID_REFERENCE",
            details={"url": url},
        )


class NetworkError(SheetExportError):
    """
    Raised when fetching remote document bytes fails.

    Attributes:
        url: The export URL that was requested.
        status_code: HTTP status of the response, if one was received.
        reason: Transport-specific reason.
    """

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason

        message = f"Failed to fetch remote document: {url}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="NETWORK_ERROR",
            details={"url": url, "status_code": status_code, "reason": reason},
        )


class SheetNotFoundError(SheetExportError):
    """
    Raised when the requested sheet does not exist in the workbook.

    Attributes:
        sheet_name: Name of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class SourceNotFoundError(SheetExportError):
    """
    Raised when a local source file does not exist.

    Attributes:
        file_path: Path to the file that was not found.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            message=f"Source file not found: {file_path}",
            error_code="SOURCE_NOT_FOUND",
            details={"file_path": file_path},
        )


class UnsupportedSourceError(SheetExportError):
    """
    Raised when a source file does not carry an accepted extension.

    Attributes:
        source_name: Name of the rejected file.
        accepted_extensions: Extensions the pipeline accepts.
    """

    def __init__(
        self,
        source_name: str,
        accepted_extensions: list[str] | None = None,
    ) -> None:
        self.source_name = source_name
        self.accepted_extensions = accepted_extensions or [".xlsx"]

        super().__init__(
            message=(
                f"Unsupported source file: {source_name}. "
                f"Accepted: {', '.join(self.accepted_extensions)}"
            ),
            error_code="UNSUPPORTED_SOURCE",
            details={
                "source_name": source_name,
                "accepted_extensions": self.accepted_extensions,
            },
        )


class ReadError(SheetExportError):
    """
    Raised when a local source file exists but cannot be read.

    Attributes:
        file_path: Path to the file being read.
        reason: Specific reason for the read failure.
    """

    def __init__(self, file_path: str, reason: str | None = None) -> None:
        self.file_path = file_path
        self.reason = reason

        message = f"Failed to read source file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="READ_ERROR",
            details={"file_path": file_path, "reason": reason},
        )
