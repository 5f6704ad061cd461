class AutoApplyError(Exception):
    """Base class for errors raised by autoapply."""


class BackendUnavailable(AutoApplyError):
    """No language-model backend is configured."""


class BackendError(AutoApplyError):
    """The backend call failed or returned data the caller could not use."""


class UnsupportedFileType(AutoApplyError):
    """The resume file format cannot be turned into text."""
