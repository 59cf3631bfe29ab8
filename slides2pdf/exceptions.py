class ConversionError(Exception):
    """Base class for all errors raised while converting a presentation."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Presentation conversion failed"
        super().__init__(message)
        # Use exception chaining if cause is provided
        self.__cause__ = cause


class MalformedPackageError(ConversionError):
    """Raised when the input is not a readable presentation package."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Input is not a valid presentation package"
        super().__init__(message, cause=cause)


class PackageEncryptedError(MalformedPackageError):
    """Raised when the presentation is encrypted or password-protected."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Presentation is encrypted or password-protected"
        super().__init__(message, cause=cause)


class PackageZipBombError(MalformedPackageError):
    """Raised when the package archive looks like a ZIP bomb."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Package archive exceeds the configured ZIP limits"
        super().__init__(message, cause=cause)


class NoSlidesFoundError(ConversionError):
    """Raised when the package contains no slide entries at all."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "No slides found in the presentation"
        super().__init__(message, cause=cause)


class SlideExtractionError(ConversionError):
    """Raised when a single slide cannot be turned into a page image.

    The orchestrator recovers from it by emitting an error page for
    that slide only.
    """

    def __init__(
        self,
        message: str = None,
        *,
        slide_number: int | None = None,
        cause: Exception = None,
    ):
        self.slide_number = slide_number
        if message is None:
            message = f"Failed to extract slide {slide_number}"
        super().__init__(message, cause=cause)


class UnresolvedRelationshipError(ConversionError):
    """Raised when a relationship id is not present in a relationship table."""

    def __init__(self, rel_id: str, message: str = None, *, cause: Exception = None):
        self.rel_id = rel_id
        if message is None:
            message = f"Unresolved relationship id: {rel_id}"
        super().__init__(message, cause=cause)


class ConversionFileFormatNotSupportedError(ConversionError):
    """Raised when the file format for conversion is not supported."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Conversion file format not supported: {file_path}"
        super().__init__(message, cause=cause)
