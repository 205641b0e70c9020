"""
Import Errors Module

Exceptions raised while importing levels.

Fatal errors (SourceUnavailable, FormatError, ApplyError) abort the run.
Document operation errors are raised by document providers for a single
entity and are recovered by the engine as warnings.
"""


class LevelImportError(Exception):
    """Base class for all level importer errors."""
    pass


class SourceUnavailable(LevelImportError):
    """
    Error raised when the input file cannot be used.

    This happens when:
    - The path does not exist
    - The file cannot be opened or read
    - A spreadsheet cannot be loaded by the reader
    """
    pass


class FormatError(LevelImportError):
    """
    Error raised when a delimited text file lacks a required column.

    The header row must contain a name column and an elevation column,
    either recognized by their aliases or given in an explicit column mapping.
    """
    pass


class ApplyError(LevelImportError):
    """
    Error raised when applying changes to the document fails.

    The transaction group has been rolled back when this is raised, so no
    structural change from the run remains in the document.
    """
    pass


class DocumentOperationError(LevelImportError):
    """
    Error raised by a document provider when a single operation fails.

    Examples:
    - A level cannot be created at the requested elevation
    - A level or view cannot take the requested name
    - A view cannot be created for a level
    """
    pass


class ReadOnlyParameterError(DocumentOperationError):
    """
    Error raised when an element parameter cannot be written.

    Typically the elevation of a level that is locked or pinned.
    """
    pass
