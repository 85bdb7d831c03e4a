"""Custom exception hierarchy for the material library."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Folder errors
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    INVALID_NAME = "INVALID_NAME"
    SELF_PARENT = "SELF_PARENT"
    CYCLIC_MOVE = "CYCLIC_MOVE"
    DESTINATION_EXISTS = "DESTINATION_EXISTS"

    # Storage errors
    STORAGE_NOT_CONFIGURED = "STORAGE_NOT_CONFIGURED"
    PHYSICAL_CREATE_FAILED = "PHYSICAL_CREATE_FAILED"
    PHYSICAL_RENAME_FAILED = "PHYSICAL_RENAME_FAILED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"

    # Index errors
    DATABASE_BUSY = "DATABASE_BUSY"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"


class LibraryException(Exception):
    """
    Base exception for all material library errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class FolderNotFoundError(LibraryException):
    """Folder not found in the index."""

    def __init__(self, folder_id: str):
        super().__init__(
            f"Folder not found: {folder_id}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=404,
            details={"folder_id": folder_id}
        )


class InvalidNameError(LibraryException):
    """Folder name has nothing usable left after sanitization."""

    def __init__(self, name: str):
        super().__init__(
            f"Invalid folder name: {name!r}",
            ErrorCode.INVALID_NAME,
            status_code=400,
            details={"name": name}
        )


class SelfParentError(LibraryException):
    """A folder cannot become its own parent."""

    def __init__(self, folder_id: str):
        super().__init__(
            f"Folder cannot be its own parent: {folder_id}",
            ErrorCode.SELF_PARENT,
            status_code=400,
            details={"folder_id": folder_id}
        )


class CyclicMoveError(LibraryException):
    """Moving the folder would place it inside its own subtree."""

    def __init__(self, folder_id: str, target_parent_id: str):
        super().__init__(
            f"Cannot move folder {folder_id} into its own descendant {target_parent_id}",
            ErrorCode.CYCLIC_MOVE,
            status_code=400,
            details={"folder_id": folder_id, "target_parent_id": target_parent_id}
        )


class DestinationExistsError(LibraryException):
    """A folder (index row or physical directory) already occupies the target path."""

    def __init__(self, path: str):
        super().__init__(
            f"A folder already exists at path '{path}'",
            ErrorCode.DESTINATION_EXISTS,
            status_code=409,
            details={"path": path}
        )


class StorageNotConfiguredError(LibraryException):
    """No storage root has been configured for the network drive."""

    def __init__(self, message: str = "Storage root is not configured. Set STORAGE_ROOT."):
        super().__init__(
            message,
            ErrorCode.STORAGE_NOT_CONFIGURED,
            status_code=503,
        )


class PhysicalCreateFailedError(LibraryException):
    """Creating a physical directory failed (permissions, drive offline, ...)."""

    def __init__(self, directory: str, original_error: Optional[Exception] = None):
        details = {"directory": directory}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Failed to create directory: {directory}",
            ErrorCode.PHYSICAL_CREATE_FAILED,
            status_code=503,
            details=details
        )


class PhysicalRenameFailedError(LibraryException):
    """Renaming a physical directory failed."""

    def __init__(self, source: str, destination: str, original_error: Optional[Exception] = None):
        details = {"source": source, "destination": destination}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Failed to rename directory: {source} -> {destination}",
            ErrorCode.PHYSICAL_RENAME_FAILED,
            status_code=503,
            details=details
        )


class PartialFailureError(LibraryException):
    """The physical rename succeeded but the index update did not.

    ``details["compensated"]`` tells whether the directory was renamed back.
    When it is False the index and the filesystem disagree.
    """

    def __init__(self, old_path: str, new_path: str, compensated: bool, original_error: Optional[Exception] = None):
        details = {"old_path": old_path, "new_path": new_path, "compensated": compensated}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Index update failed after renaming '{old_path}' to '{new_path}'",
            ErrorCode.PARTIAL_FAILURE,
            status_code=500,
            details=details
        )


class ValidationError(LibraryException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class DatabaseBusyError(LibraryException):
    """The folder index could not be written (locked, unreachable, ...)."""

    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        details = {"operation": operation}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Folder index unavailable during {operation}; retry later",
            ErrorCode.DATABASE_BUSY,
            status_code=503,
            details=details
        )
