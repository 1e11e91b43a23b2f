# Custom exceptions for soldeps

class SoldepsError(Exception):
    """Base exception for all application-specific errors."""
    pass


class ParserError(SoldepsError):
    """Raised when a source file cannot be turned into a syntax tree."""
    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"Failed to parse {file_path}: {message}")


class FileNotIndexedError(SoldepsError):
    """Raised when an analysis targets a file missing from the workspace index."""
    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"File is not part of the workspace index: {file_path}")


class PositionNotInFunctionError(SoldepsError):
    """Raised when a cursor position does not fall inside any function definition."""
    def __init__(self, file_path: str, line: int, column: int):
        self.file_path = file_path
        self.line = line
        self.column = column
        super().__init__(
            f"No function definition encloses {file_path}:{line}:{column}"
        )


class ConfigError(SoldepsError):
    """Raised for configuration-related problems."""
    pass
