"""
Shop storage.

Shops live in three independently shaped stores that are not keyed to one
another, plus a holding area for shops whose paid window has elapsed:

- ``LegacyShop``   pre-payment-gate listings (``name``/``address``/``image_url``);
                   ``payment_status`` may be NULL, meaning the row predates
                   the payment gate and is always visible
- ``AdminShop``    back-office listings created from shop photos
                   (``shop_name``/``full_address``/``photo_url``)
- ``AgentShop``    field-agent registrations (``shop_name``/``address``), the
                   only store that carries an owning agent
- ``RenewShop``    expired shops waiting for a renewal payment

Services never touch these models directly for reads; they go through
``services.repository`` which normalizes the three shapes into ``ShopRecord``.
"""

from django.core.validators import RegexValidator, MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone

from .plans import PlanType


pincode_validator = RegexValidator(r'^\d{6}$', 'Pincode must be 6 digits')
mobile_validator = RegexValidator(
    r'^(\+?\d{1,3}[-.\s]?)?(\d{10})$',
    'Please provide a valid 10-digit mobile number'
)
latitude_validators = [MinValueValidator(-90), MaxValueValidator(90)]
longitude_validators = [MinValueValidator(-180), MaxValueValidator(180)]


class StoreTag(models.TextChoices):
    LEGACY = 'legacy', 'Legacy'
    ADMIN = 'admin', 'Admin'
    AGENT = 'agent', 'Agent'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'


class PaymentMode(models.TextChoices):
    CASH = 'CASH', 'Cash'
    UPI = 'UPI', 'UPI'
    NONE = 'NONE', 'None'


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'categories'
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class LegacyShop(models.Model):
    """Listing from before the payment gate existed."""

    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100)
    image_url = models.CharField(max_length=500, blank=True)
    icon_url = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True, validators=latitude_validators)
    longitude = models.FloatField(null=True, blank=True, validators=longitude_validators)
    area = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=500, blank=True)
    district = models.CharField(max_length=100, blank=True)

    # NULL means the listing predates payments
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        null=True,
        blank=True
    )
    plan_type = models.CharField(max_length=20, blank=True)
    plan_amount = models.PositiveIntegerField(null=True, blank=True)
    last_payment_date = models.DateTimeField(null=True, blank=True)
    payment_expiry_date = models.DateTimeField(null=True, blank=True)

    visitor_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'shops'
        indexes = [
            models.Index(fields=['category'], name='legacy_category_idx'),
            models.Index(fields=['payment_status'], name='legacy_payment_status_idx'),
        ]

    def __str__(self):
        return self.name


class AdminShop(models.Model):
    """Listing created in the back office, usually from a geotagged photo."""

    shop_name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=100)
    category = models.CharField(max_length=100)
    category_ref = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_shops'
    )
    mobile = models.CharField(max_length=20, blank=True, validators=[mobile_validator])
    area = models.CharField(max_length=100, blank=True)
    full_address = models.CharField(max_length=500)
    city = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=6, blank=True, validators=[pincode_validator])
    district = models.CharField(max_length=100, blank=True)
    latitude = models.FloatField(null=True, blank=True, validators=latitude_validators)
    longitude = models.FloatField(null=True, blank=True, validators=longitude_validators)
    photo_url = models.CharField(max_length=500, blank=True)
    icon_url = models.CharField(max_length=500, blank=True)

    created_by_admin = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_shops'
    )

    # Payment
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    payment_mode = models.CharField(
        max_length=10,
        choices=PaymentMode.choices,
        default=PaymentMode.NONE
    )
    receipt_no = models.CharField(max_length=50, blank=True)
    last_payment_date = models.DateTimeField(null=True, blank=True)
    payment_expiry_date = models.DateTimeField(null=True, blank=True)

    # Plan
    plan_type = models.CharField(max_length=20, choices=PlanType.choices, default=PlanType.BASIC)
    plan_amount = models.PositiveIntegerField(default=100)
    plan_start_date = models.DateTimeField(null=True, blank=True)
    plan_end_date = models.DateTimeField(null=True, blank=True)
    # Explicit override; NULL means "use the plan's rank"
    priority_rank = models.PositiveIntegerField(null=True, blank=True)
    is_home_page_banner = models.BooleanField(default=False)
    is_top_slider = models.BooleanField(default=False)
    is_left_bar = models.BooleanField(default=False)
    is_right_bar = models.BooleanField(default=False)
    is_hero = models.BooleanField(default=False)

    # Popularity and external review inputs
    visitor_count = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(max_digits=3, decimal_places=2, null=True, blank=True)
    review_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'shops_from_image'
        indexes = [
            models.Index(fields=['category'], name='admin_shop_category_idx'),
            models.Index(fields=['payment_status'], name='admin_shop_status_idx'),
            models.Index(fields=['payment_expiry_date'], name='admin_shop_expiry_idx'),
            models.Index(fields=['district'], name='admin_shop_district_idx'),
            models.Index(fields=['shop_name', 'owner_name'], name='admin_shop_name_owner_idx'),
        ]

    def __str__(self):
        return self.shop_name


class AgentShop(models.Model):
    """Listing registered in the field by an agent."""

    shop_name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=100)
    mobile = models.CharField(max_length=20, validators=[mobile_validator])
    email = models.EmailField(blank=True)
    category = models.CharField(max_length=100)
    pincode = models.CharField(max_length=6, validators=[pincode_validator])
    area = models.CharField(max_length=100)
    address = models.CharField(max_length=500)
    city = models.CharField(max_length=100, blank=True)
    district = models.CharField(max_length=100, blank=True)
    photo_url = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True, validators=latitude_validators)
    longitude = models.FloatField(null=True, blank=True, validators=longitude_validators)

    agent = models.ForeignKey(
        'ledger.Agent',
        on_delete=models.PROTECT,
        related_name='shops'
    )

    # Payment
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    payment_mode = models.CharField(
        max_length=10,
        choices=PaymentMode.choices,
        default=PaymentMode.NONE
    )
    receipt_no = models.CharField(max_length=50, blank=True)
    amount = models.PositiveIntegerField(default=100)
    agent_commission = models.PositiveIntegerField(default=0)
    last_payment_date = models.DateTimeField(null=True, blank=True)
    payment_expiry_date = models.DateTimeField(null=True, blank=True)

    plan_type = models.CharField(max_length=20, choices=PlanType.choices, default=PlanType.BASIC)
    priority_rank = models.PositiveIntegerField(null=True, blank=True)

    visitor_count = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(max_digits=3, decimal_places=2, null=True, blank=True)
    review_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'agent_shops'
        indexes = [
            models.Index(fields=['agent', '-created_at'], name='agent_shop_agent_created_idx'),
            models.Index(fields=['payment_status'], name='agent_shop_status_idx'),
            models.Index(fields=['payment_expiry_date'], name='agent_shop_expiry_idx'),
            models.Index(fields=['category'], name='agent_shop_category_idx'),
            models.Index(fields=['shop_name', 'owner_name', 'mobile'], name='agent_shop_identity_idx'),
        ]

    def __str__(self):
        return f"{self.shop_name} ({self.agent_id})"


class RenewShop(models.Model):
    """
    Holding area entry for a shop whose paid window elapsed.

    ``snapshot`` keeps the full normalized record so renewal can rebuild the
    live row(s) as they were. ``(original_store, original_id)`` is unique,
    which makes the expiry sweep safe to re-run or run concurrently.
    """

    shop_name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=100, blank=True)
    mobile = models.CharField(max_length=20, blank=True)
    category = models.CharField(max_length=100)
    pincode = models.CharField(max_length=6, blank=True)
    address = models.CharField(max_length=500, blank=True)
    district = models.CharField(max_length=100, blank=True)
    photo_url = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    original_store = models.CharField(max_length=10, choices=StoreTag.choices)
    original_id = models.BigIntegerField()
    original_agent_shop_id = models.BigIntegerField(null=True, blank=True)
    agent = models.ForeignKey(
        'ledger.Agent',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='renewal_candidates'
    )

    # Expired term, kept so agent totals stay reproducible
    plan_type = models.CharField(max_length=20, choices=PlanType.choices, default=PlanType.BASIC)
    amount = models.PositiveIntegerField(default=0)
    commission = models.PositiveIntegerField(default=0)

    expired_date = models.DateTimeField()
    original_created_at = models.DateTimeField()
    last_payment_date = models.DateTimeField(null=True, blank=True)
    snapshot = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'renew_shops'
        constraints = [
            models.UniqueConstraint(
                fields=['original_store', 'original_id'],
                name='unique_renew_original_ref'
            ),
            models.UniqueConstraint(
                fields=['original_agent_shop_id'],
                condition=models.Q(original_agent_shop_id__isnull=False),
                name='unique_renew_original_agent_shop'
            ),
        ]
        indexes = [
            models.Index(fields=['expired_date'], name='renew_expired_idx'),
            models.Index(fields=['category'], name='renew_category_idx'),
        ]
        ordering = ['expired_date']

    def __str__(self):
        return f"{self.shop_name} (expired {self.expired_date:%Y-%m-%d})"


class RenewalPayment(models.Model):
    """One renewal: the payment taken and the expired term it replaced."""

    shop_name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=100, blank=True)
    mobile = models.CharField(max_length=20, blank=True)
    category = models.CharField(max_length=100, blank=True)
    district = models.CharField(max_length=100, blank=True)

    agent = models.ForeignKey(
        'ledger.Agent',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='renewal_payments'
    )
    renewed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='renewals'
    )

    plan_type = models.CharField(max_length=20, choices=PlanType.choices, default=PlanType.BASIC)
    renewal_amount = models.PositiveIntegerField()
    renewal_commission = models.PositiveIntegerField(default=0)
    previous_amount = models.PositiveIntegerField(default=0)
    previous_commission = models.PositiveIntegerField(default=0)
    payment_mode = models.CharField(max_length=10, choices=PaymentMode.choices, default=PaymentMode.CASH)
    receipt_no = models.CharField(max_length=50, blank=True)
    renewal_date = models.DateTimeField()

    # Holding-area entry this renewal consumed
    candidate_id = models.BigIntegerField(db_index=True)
    original_store = models.CharField(max_length=10, choices=StoreTag.choices)
    original_id = models.BigIntegerField()
    new_store = models.CharField(max_length=10, choices=StoreTag.choices)
    new_id = models.BigIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'renewal_payments'
        indexes = [
            models.Index(fields=['agent', '-renewal_date'], name='renewal_agent_date_idx'),
            models.Index(fields=['-renewal_date'], name='renewal_date_idx'),
        ]
        ordering = ['-renewal_date']

    def __str__(self):
        return f"{self.shop_name} renewed {self.renewal_date:%Y-%m-%d} ({self.renewal_amount})"
