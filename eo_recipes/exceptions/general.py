"""General process and catalog exceptions."""


class DimensionNotAvailable(Exception):
    """A dimension with the specified name does not exist."""


class UnitMismatch(Exception):
    """The unit of the spatial reference system does not match the expected unit."""


class KernelDimensionsUneven(Exception):
    """Each dimension of the kernel must have an uneven number of elements."""


class EmptyCollection(ValueError):
    """A collection search or filter matched no items."""


class DatasetNotFound(KeyError):
    """The dataset id is not part of the dataset catalog."""


class IndexNotFound(KeyError):
    """The index name is not registered."""
