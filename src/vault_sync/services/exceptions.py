class FileOperationError(Exception):
    """Raised when file operations fail"""

    pass
