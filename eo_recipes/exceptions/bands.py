"""Errors about band labels, named after the matching openEO process errors."""


class NirBandAmbiguous(Exception):
    """The NIR band can't be resolved, please specify the specific NIR band name."""


class RedBandAmbiguous(Exception):
    """The red band can't be resolved, please specify the specific red band name."""


class BandNotAvailable(Exception):
    """A band required by an index or mask is not present in the data cube."""


class DimensionAmbiguous(Exception):
    """Dimension of type ``bands`` is not available or is ambiguous."""


class BandExists(Exception):
    """A band with the specified target name exists."""
