"""
Exception hierarchy for imagesort.
"""


class ImageSortError(Exception):
    """Base error for imagesort."""


class ConfigurationError(ImageSortError):
    """Invalid or incomplete sort job configuration; raised before any file is touched."""


class SortInProgressError(ImageSortError):
    """A sort run was started while another run is active on the same sorter."""


class PlanningError(ImageSortError):
    """A destination could not be computed for a single file."""


class NamingCollisionError(PlanningError):
    pass
