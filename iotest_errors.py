"""
iotest_errors.py

Exception hierarchy of the HDF5 I/O tester. Everything raised on purpose
derives from IoTestError so that h5_iotest.main can tell a known failure
(log it, abort the job) from a programming error.
"""


class IoTestError(Exception):
    pass


class ConfigError(IoTestError):
    """Malformed or semantically invalid configuration."""


class StorageError(IoTestError):
    """A storage call failed. `operation` names what was being done."""

    def __init__(self, operation, cause=None):
        self.operation = operation
        self.cause = cause
        msg = operation if cause is None else f"{operation}: {cause}"
        super().__init__(msg)


class ShapeMismatchError(StorageError):
    def __init__(self, name, expected, found):
        self.expected = tuple(expected)
        self.found = tuple(found)
        super().__init__(f"dataset '{name}' has shape {self.found}, expected {self.expected}")


class VerificationError(StorageError):
    def __init__(self, name, step, mismatches):
        self.mismatches = mismatches
        super().__init__(f"dataset '{name}' step {step}: {mismatches} element(s) differ from what was written")
