"""
Shops app services layer.

Services contain business logic and orchestrate operations across the
shop stores, the holding area and the ledgers. Views and management
commands call these, never the models directly, for anything that moves
money or changes a shop's payment state.
"""

from .exceptions import (
    ShopsServiceError,
    NotFoundError,
    ShopNotFoundError,
    RenewalCandidateNotFoundError,
    CategoryNotFoundError,
    InvalidStateError,
    UnauthorizedActionError,
    ShopValidationError,
)

from .records import (
    HOLDING_STORE,
    SYSTEM_ACTOR,
    Actor,
    PaymentInfo,
    PaymentState,
    ShopRecord,
    ShopRef,
)

from .repository import (
    NearestShop,
    PaymentFilter,
    PlanUpdate,
    find_by_category,
    find_by_slot,
    find_nearest_per_category,
)

from .listing import (
    SORT_TYPES,
    ListedShop,
    PagedResult,
    list_shops,
    nearest_shop_per_category,
    slot_shops,
)

from .lifecycle import (
    BatchError,
    BatchResult,
    BulkDeleteResult,
    ExpiryStats,
    create_shop,
    mark_paid,
    change_plan,
    sweep_expired,
    renew,
    is_candidate_owned_by,
    list_renewal_candidates,
    expiry_stats,
    deduct_for_deleted_shops,
    delete_shops,
    delete_all_shops,
    record_visit,
)


__all__ = [
    # Exceptions
    'ShopsServiceError',
    'NotFoundError',
    'ShopNotFoundError',
    'RenewalCandidateNotFoundError',
    'CategoryNotFoundError',
    'InvalidStateError',
    'UnauthorizedActionError',
    'ShopValidationError',

    # Canonical records
    'HOLDING_STORE',
    'SYSTEM_ACTOR',
    'Actor',
    'PaymentInfo',
    'PaymentState',
    'ShopRecord',
    'ShopRef',

    # Repository reads
    'NearestShop',
    'PaymentFilter',
    'PlanUpdate',
    'find_by_category',
    'find_by_slot',
    'find_nearest_per_category',

    # Listing
    'SORT_TYPES',
    'ListedShop',
    'PagedResult',
    'list_shops',
    'nearest_shop_per_category',
    'slot_shops',

    # Lifecycle
    'BatchError',
    'BatchResult',
    'BulkDeleteResult',
    'ExpiryStats',
    'create_shop',
    'mark_paid',
    'change_plan',
    'sweep_expired',
    'renew',
    'is_candidate_owned_by',
    'list_renewal_candidates',
    'expiry_stats',
    'deduct_for_deleted_shops',
    'delete_shops',
    'delete_all_shops',
    'record_visit',
]
