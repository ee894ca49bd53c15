"""Package selection."""

from monoship.filters.chain import select_by_name, select_packages
from monoship.filters.criteria import SelectionCriteria
from monoship.filters.since import ChangeSet, detect_changed_packages

__all__ = [
    "ChangeSet",
    "SelectionCriteria",
    "detect_changed_packages",
    "select_by_name",
    "select_packages",
]
