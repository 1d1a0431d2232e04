"""Exceptions raised by the EAGLE importer."""


class EagleImportError(IOError):
    """The document cannot be imported at all (unreadable or malformed)."""


class MissingSymbolError(EagleImportError):
    """A gate refers to a symbol that its library does not define."""

    def __init__(self, library, deviceset, gate, symbol):
        self.library = library
        self.deviceset = deviceset
        self.gate = gate
        self.symbol = symbol
        super().__init__(f"Library '{library}': gate '{gate}' of device set "
                         f"'{deviceset}' uses unknown symbol '{symbol}'")
