"""
Bottles services - Business logic layer.

This package contains all business operations for the bottles app:
- Master catalogue search and creation
- Collection management (add, update, open, fill level, clear)
- Label queue and print sessions
- Dashboard statistics and storage locations
"""

from .catalogue import (
    search_master_bottles,
    get_master_bottle,
    create_master_bottle,
)

from .collection_management import (
    add_to_collection,
    get_user_bottle,
    get_user_collection,
    update_user_bottle,
    remove_from_collection,
    open_bottle,
    set_fill_level,
    clear_collection,
)

from .label_management import (
    LABEL_FILTERS,
    get_bottles_needing_labels,
    count_labels_needed,
    mark_label_printed,
    record_print_session,
    get_label_code,
    generate_label_qr,
)

from .collection_stats import (
    get_dashboard_stats,
    get_location_areas,
    get_location_bins,
)

from .exceptions import (
    BottlesServiceError,
    MasterBottleNotFoundError,
    DuplicateMasterBottleError,
    UserBottleNotFoundError,
    InvalidBottleStateError,
    InvalidFillLevelError,
    InvalidLabelFilterError,
)

__all__ = [
    # Catalogue
    'search_master_bottles',
    'get_master_bottle',
    'create_master_bottle',
    # Collection
    'add_to_collection',
    'get_user_bottle',
    'get_user_collection',
    'update_user_bottle',
    'remove_from_collection',
    'open_bottle',
    'set_fill_level',
    'clear_collection',
    # Labels
    'LABEL_FILTERS',
    'get_bottles_needing_labels',
    'count_labels_needed',
    'mark_label_printed',
    'record_print_session',
    'get_label_code',
    'generate_label_qr',
    # Stats & locations
    'get_dashboard_stats',
    'get_location_areas',
    'get_location_bins',
    # Exceptions
    'BottlesServiceError',
    'MasterBottleNotFoundError',
    'DuplicateMasterBottleError',
    'UserBottleNotFoundError',
    'InvalidBottleStateError',
    'InvalidFillLevelError',
    'InvalidLabelFilterError',
]
