# Custom exceptions for ScriptLens

class ScriptLensError(Exception):
    """Base exception for all application-specific errors."""
    pass

class ConfigError(ScriptLensError):
    """Raised for configuration-related problems."""
    pass

class ScriptParseError(ScriptLensError):
    """Raised when a script or one of its imports cannot be read or understood."""
    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"Failed to parse {file_path}: {message}")

class ImportNotFoundError(ScriptParseError):
    """Raised when an imported script cannot be located on any probing directory."""
    def __init__(self, file_path: str, import_name: str, probed: list = None):
        self.import_name = import_name
        self.probed = probed or []
        super().__init__(file_path, f"cannot find imported script '{import_name}'")

class PackageResolutionError(ScriptLensError):
    """Raised when the package resolver fails for reasons other than a missing package."""

    def __init__(self, package: str, message: str):
        self.package = package
        super().__init__(f"Package '{package}': {message}")


class ProbeError(ScriptLensError):
    """Raised when the isolated identity probe process cannot produce a result."""

    def __init__(self, message: str, returncode: int = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)
