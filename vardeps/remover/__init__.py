"""Dependency removal for packed (.var archive) and unpacked packages."""

from vardeps.remover.archive import RewritePolicy, rewrite_archive
from vardeps.remover.contracts import ErrorKind, RemovalReport, RemovalResult
from vardeps.remover.descriptor import (
    DESCRIPTOR_NAME,
    MATCHER_PATTERN,
    MATCHER_SCANNER,
    MATCHERS,
    DescriptorPatch,
    patch_descriptor,
    strip_trailing_commas,
)
from vardeps.remover.dispatch import (
    patch_unpacked_folder,
    preview_removal,
    remove_dependencies,
)

__all__ = [
    "DESCRIPTOR_NAME",
    "MATCHERS",
    "MATCHER_PATTERN",
    "MATCHER_SCANNER",
    "DescriptorPatch",
    "ErrorKind",
    "RemovalReport",
    "RemovalResult",
    "RewritePolicy",
    "patch_descriptor",
    "patch_unpacked_folder",
    "preview_removal",
    "remove_dependencies",
    "rewrite_archive",
    "strip_trailing_commas",
]
