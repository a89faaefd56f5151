"""Exception hierarchy for CiteHarvest."""


class CiteHarvestError(Exception):
    """Base class for all CiteHarvest failures."""


class AdapterError(CiteHarvestError):
    """An external extraction or parse process failed or could not be started."""

    def __init__(self, message: str, command=None, returncode=None, output: str = ""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class SourceNotFoundError(AdapterError):
    """No source document could be resolved for a citekey."""


class StructuralParseError(CiteHarvestError):
    """A structured bibliographic entry is malformed and needs manual repair."""


class InternalStateError(CiteHarvestError):
    """The dispatcher reached a stage it does not know how to handle."""


__all__ = [
    'CiteHarvestError',
    'AdapterError',
    'SourceNotFoundError',
    'StructuralParseError',
    'InternalStateError',
]
