# Generated manually for shops app

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


PLAN_CHOICES = [
    ('BASIC', 'Basic Plan'),
    ('PREMIUM', 'Premium Plan'),
    ('FEATURED', 'Featured Plan'),
    ('LEFT_BAR', 'Left Bar Plan'),
    ('RIGHT_BAR', 'Right Bar Plan'),
    ('BANNER', 'Banner Plan'),
    ('HERO', 'Hero Plan'),
]
STATUS_CHOICES = [('PENDING', 'Pending'), ('PAID', 'Paid')]
MODE_CHOICES = [('CASH', 'Cash'), ('UPI', 'UPI'), ('NONE', 'None')]
STORE_CHOICES = [('legacy', 'Legacy'), ('admin', 'Admin'), ('agent', 'Agent')]

PINCODE_VALIDATOR = django.core.validators.RegexValidator('^\\d{6}$', 'Pincode must be 6 digits')
MOBILE_VALIDATOR = django.core.validators.RegexValidator(
    '^(\\+?\\d{1,3}[-.\\s]?)?(\\d{10})$', 'Please provide a valid 10-digit mobile number'
)
LATITUDE_VALIDATORS = [django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)]
LONGITUDE_VALIDATORS = [django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('ledger', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('slug', models.SlugField(max_length=120, unique=True)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'categories',
                'ordering': ['name'],
                'verbose_name_plural': 'categories',
            },
        ),
        migrations.CreateModel(
            name='LegacyShop',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('category', models.CharField(max_length=100)),
                ('image_url', models.CharField(blank=True, max_length=500)),
                ('icon_url', models.CharField(blank=True, max_length=500)),
                ('latitude', models.FloatField(blank=True, null=True, validators=LATITUDE_VALIDATORS)),
                ('longitude', models.FloatField(blank=True, null=True, validators=LONGITUDE_VALIDATORS)),
                ('area', models.CharField(blank=True, max_length=100)),
                ('address', models.CharField(blank=True, max_length=500)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('payment_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=10, null=True)),
                ('plan_type', models.CharField(blank=True, max_length=20)),
                ('plan_amount', models.PositiveIntegerField(blank=True, null=True)),
                ('last_payment_date', models.DateTimeField(blank=True, null=True)),
                ('payment_expiry_date', models.DateTimeField(blank=True, null=True)),
                ('visitor_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'shops',
                'indexes': [
                    models.Index(fields=['category'], name='legacy_category_idx'),
                    models.Index(fields=['payment_status'], name='legacy_payment_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AdminShop',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_name', models.CharField(max_length=200)),
                ('owner_name', models.CharField(max_length=100)),
                ('category', models.CharField(max_length=100)),
                ('mobile', models.CharField(blank=True, max_length=20, validators=[MOBILE_VALIDATOR])),
                ('area', models.CharField(blank=True, max_length=100)),
                ('full_address', models.CharField(max_length=500)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('pincode', models.CharField(blank=True, max_length=6, validators=[PINCODE_VALIDATOR])),
                ('district', models.CharField(blank=True, max_length=100)),
                ('latitude', models.FloatField(blank=True, null=True, validators=LATITUDE_VALIDATORS)),
                ('longitude', models.FloatField(blank=True, null=True, validators=LONGITUDE_VALIDATORS)),
                ('photo_url', models.CharField(blank=True, max_length=500)),
                ('icon_url', models.CharField(blank=True, max_length=500)),
                ('payment_status', models.CharField(choices=STATUS_CHOICES, default='PENDING', max_length=10)),
                ('payment_mode', models.CharField(choices=MODE_CHOICES, default='NONE', max_length=10)),
                ('receipt_no', models.CharField(blank=True, max_length=50)),
                ('last_payment_date', models.DateTimeField(blank=True, null=True)),
                ('payment_expiry_date', models.DateTimeField(blank=True, null=True)),
                ('plan_type', models.CharField(choices=PLAN_CHOICES, default='BASIC', max_length=20)),
                ('plan_amount', models.PositiveIntegerField(default=100)),
                ('plan_start_date', models.DateTimeField(blank=True, null=True)),
                ('plan_end_date', models.DateTimeField(blank=True, null=True)),
                ('priority_rank', models.PositiveIntegerField(blank=True, null=True)),
                ('is_home_page_banner', models.BooleanField(default=False)),
                ('is_top_slider', models.BooleanField(default=False)),
                ('is_left_bar', models.BooleanField(default=False)),
                ('is_right_bar', models.BooleanField(default=False)),
                ('is_hero', models.BooleanField(default=False)),
                ('visitor_count', models.PositiveIntegerField(default=0)),
                ('rating', models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True)),
                ('review_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('category_ref', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admin_shops', to='shops.category')),
                ('created_by_admin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_shops', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'shops_from_image',
                'indexes': [
                    models.Index(fields=['category'], name='admin_shop_category_idx'),
                    models.Index(fields=['payment_status'], name='admin_shop_status_idx'),
                    models.Index(fields=['payment_expiry_date'], name='admin_shop_expiry_idx'),
                    models.Index(fields=['district'], name='admin_shop_district_idx'),
                    models.Index(fields=['shop_name', 'owner_name'], name='admin_shop_name_owner_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AgentShop',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_name', models.CharField(max_length=200)),
                ('owner_name', models.CharField(max_length=100)),
                ('mobile', models.CharField(max_length=20, validators=[MOBILE_VALIDATOR])),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('category', models.CharField(max_length=100)),
                ('pincode', models.CharField(max_length=6, validators=[PINCODE_VALIDATOR])),
                ('area', models.CharField(max_length=100)),
                ('address', models.CharField(max_length=500)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('photo_url', models.CharField(blank=True, max_length=500)),
                ('latitude', models.FloatField(blank=True, null=True, validators=LATITUDE_VALIDATORS)),
                ('longitude', models.FloatField(blank=True, null=True, validators=LONGITUDE_VALIDATORS)),
                ('payment_status', models.CharField(choices=STATUS_CHOICES, default='PENDING', max_length=10)),
                ('payment_mode', models.CharField(choices=MODE_CHOICES, default='NONE', max_length=10)),
                ('receipt_no', models.CharField(blank=True, max_length=50)),
                ('amount', models.PositiveIntegerField(default=100)),
                ('agent_commission', models.PositiveIntegerField(default=0)),
                ('last_payment_date', models.DateTimeField(blank=True, null=True)),
                ('payment_expiry_date', models.DateTimeField(blank=True, null=True)),
                ('plan_type', models.CharField(choices=PLAN_CHOICES, default='BASIC', max_length=20)),
                ('priority_rank', models.PositiveIntegerField(blank=True, null=True)),
                ('visitor_count', models.PositiveIntegerField(default=0)),
                ('rating', models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True)),
                ('review_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('agent', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shops', to='ledger.agent')),
            ],
            options={
                'db_table': 'agent_shops',
                'indexes': [
                    models.Index(fields=['agent', '-created_at'], name='agent_shop_agent_created_idx'),
                    models.Index(fields=['payment_status'], name='agent_shop_status_idx'),
                    models.Index(fields=['payment_expiry_date'], name='agent_shop_expiry_idx'),
                    models.Index(fields=['category'], name='agent_shop_category_idx'),
                    models.Index(fields=['shop_name', 'owner_name', 'mobile'], name='agent_shop_identity_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RenewShop',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_name', models.CharField(max_length=200)),
                ('owner_name', models.CharField(blank=True, max_length=100)),
                ('mobile', models.CharField(blank=True, max_length=20)),
                ('category', models.CharField(max_length=100)),
                ('pincode', models.CharField(blank=True, max_length=6)),
                ('address', models.CharField(blank=True, max_length=500)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('photo_url', models.CharField(blank=True, max_length=500)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('original_store', models.CharField(choices=STORE_CHOICES, max_length=10)),
                ('original_id', models.BigIntegerField()),
                ('original_agent_shop_id', models.BigIntegerField(blank=True, null=True)),
                ('plan_type', models.CharField(choices=PLAN_CHOICES, default='BASIC', max_length=20)),
                ('amount', models.PositiveIntegerField(default=0)),
                ('commission', models.PositiveIntegerField(default=0)),
                ('expired_date', models.DateTimeField()),
                ('original_created_at', models.DateTimeField()),
                ('last_payment_date', models.DateTimeField(blank=True, null=True)),
                ('snapshot', models.JSONField(default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('agent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='renewal_candidates', to='ledger.agent')),
            ],
            options={
                'db_table': 'renew_shops',
                'ordering': ['expired_date'],
                'indexes': [
                    models.Index(fields=['expired_date'], name='renew_expired_idx'),
                    models.Index(fields=['category'], name='renew_category_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('original_store', 'original_id'), name='unique_renew_original_ref'),
                    models.UniqueConstraint(condition=models.Q(('original_agent_shop_id__isnull', False)), fields=('original_agent_shop_id',), name='unique_renew_original_agent_shop'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RenewalPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_name', models.CharField(max_length=200)),
                ('owner_name', models.CharField(blank=True, max_length=100)),
                ('mobile', models.CharField(blank=True, max_length=20)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('plan_type', models.CharField(choices=PLAN_CHOICES, default='BASIC', max_length=20)),
                ('renewal_amount', models.PositiveIntegerField()),
                ('renewal_commission', models.PositiveIntegerField(default=0)),
                ('previous_amount', models.PositiveIntegerField(default=0)),
                ('previous_commission', models.PositiveIntegerField(default=0)),
                ('payment_mode', models.CharField(choices=MODE_CHOICES, default='CASH', max_length=10)),
                ('receipt_no', models.CharField(blank=True, max_length=50)),
                ('renewal_date', models.DateTimeField()),
                ('candidate_id', models.BigIntegerField(db_index=True)),
                ('original_store', models.CharField(choices=STORE_CHOICES, max_length=10)),
                ('original_id', models.BigIntegerField()),
                ('new_store', models.CharField(choices=STORE_CHOICES, max_length=10)),
                ('new_id', models.BigIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('agent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='renewal_payments', to='ledger.agent')),
                ('renewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='renewals', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'renewal_payments',
                'ordering': ['-renewal_date'],
                'indexes': [
                    models.Index(fields=['agent', '-renewal_date'], name='renewal_agent_date_idx'),
                    models.Index(fields=['-renewal_date'], name='renewal_date_idx'),
                ],
            },
        ),
    ]
