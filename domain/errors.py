class DomainError(Exception):
    """Base class for ledger domain failures."""


class BackupError(DomainError):
    """Base class for backup export/import failures."""


class BackupValidationError(BackupError):
    """Backup document is structurally invalid. Raised before any destructive step."""


class BackupVersionError(BackupValidationError):
    """Backup document was produced by a newer format version."""


class BackupRestoreError(BackupError):
    """Import failed during the destructive phase."""


class ImportCancelled(Exception):
    """The user dismissed the document picker."""
