from rest_framework import serializers
from django.conf import settings

from .models import PaymentMode, RenewShop, StoreTag
from .plans import PlanType, PLAN_ALIASES
from .services import SORT_TYPES, PaymentInfo, ShopRef, ShopValidationError


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()


class ShopRecordSerializer(serializers.Serializer):
    """Canonical shop, whichever store it lives in."""

    ref = serializers.SerializerMethodField()
    store = serializers.CharField(source='ref.store')
    shop_id = serializers.IntegerField(source='ref.id')
    name = serializers.CharField()
    owner_name = serializers.CharField()
    category = serializers.CharField()
    mobile = serializers.CharField()
    address = serializers.CharField()
    area = serializers.CharField()
    city = serializers.CharField()
    pincode = serializers.CharField()
    district = serializers.CharField()
    latitude = serializers.FloatField(allow_null=True)
    longitude = serializers.FloatField(allow_null=True)
    image_url = serializers.CharField()
    plan_type = serializers.CharField()
    payment_status = serializers.SerializerMethodField()
    payment_mode = serializers.CharField()
    amount = serializers.IntegerField()
    receipt_no = serializers.CharField()
    created_at = serializers.DateTimeField(allow_null=True)
    last_payment_date = serializers.DateTimeField(allow_null=True)
    payment_expiry_date = serializers.DateTimeField(allow_null=True)
    visitor_count = serializers.IntegerField()
    rating = serializers.FloatField(allow_null=True)
    review_count = serializers.IntegerField()
    priority_rank = serializers.IntegerField(source='effective_priority')
    agent_id = serializers.IntegerField(allow_null=True)

    def get_ref(self, obj) -> str:
        return str(obj.ref)

    def get_payment_status(self, obj) -> str:
        return obj.payment_status.value


class ListedShopSerializer(serializers.Serializer):
    """Shop as shown in a public listing; distance rounded to 0.1 km."""

    def to_representation(self, instance):
        data = ShopRecordSerializer(instance.record).data
        data['distance'] = round(instance.distance, 1)
        data['priority_rank'] = instance.priority_rank
        return data


class ListingQuerySerializer(serializers.Serializer):
    sort = serializers.ChoiceField(choices=SORT_TYPES, default='nearby')
    lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, min_value=-180, max_value=180)
    page = serializers.IntegerField(default=1, min_value=1)
    page_size = serializers.IntegerField(required=False, min_value=1)

    def validate_page_size(self, value):
        return min(value, settings.SHOP_LISTING_MAX_PAGE_SIZE)


class NearestQuerySerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class ShopCreateSerializer(serializers.Serializer):
    """Input for a new PENDING shop. Format checks happen in the service."""

    store = serializers.ChoiceField(
        choices=[StoreTag.ADMIN, StoreTag.AGENT],
        required=False
    )
    agent_id = serializers.IntegerField(required=False)
    name = serializers.CharField(max_length=200)
    owner_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    category = serializers.CharField(max_length=100)
    mobile = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    area = serializers.CharField(max_length=100, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    pincode = serializers.CharField(max_length=10, required=False, allow_blank=True)
    district = serializers.CharField(max_length=100, required=False, allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    image_url = serializers.CharField(max_length=500, required=False, allow_blank=True)
    plan_type = serializers.CharField(max_length=20, required=False, allow_blank=True)
    amount = serializers.IntegerField(required=False, min_value=0)


class PaymentSerializer(serializers.Serializer):
    payment_mode = serializers.ChoiceField(
        choices=[PaymentMode.CASH, PaymentMode.UPI],
        default=PaymentMode.CASH
    )
    receipt_no = serializers.CharField(max_length=50, required=False, allow_blank=True)
    amount = serializers.IntegerField(required=False, min_value=0)
    plan_type = serializers.CharField(max_length=20, required=False, allow_blank=True)
    district = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_plan_type(self, value):
        if value and value.strip().upper() not in set(PlanType.values) | set(PLAN_ALIASES):
            raise serializers.ValidationError(f"Unknown plan tier: {value}")
        return value

    def to_payment_info(self) -> PaymentInfo:
        data = self.validated_data
        return PaymentInfo(
            mode=data['payment_mode'],
            receipt_no=data.get('receipt_no', ''),
            amount=data.get('amount'),
            plan_type=data.get('plan_type') or None,
            district=data.get('district') or None,
        )


class PlanChangeSerializer(serializers.Serializer):
    plan_type = serializers.CharField(max_length=20)

    def validate_plan_type(self, value):
        if value.strip().upper() not in set(PlanType.values) | set(PLAN_ALIASES):
            raise serializers.ValidationError(f"Unknown plan tier: {value}")
        return value


class SlotQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1)


class BulkDeleteSerializer(serializers.Serializer):
    """Either explicit refs ("agent:12") or ``all: true``."""

    refs = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    all = serializers.BooleanField(default=False)

    def validate_refs(self, value):
        refs = []
        for raw in value:
            store, _, shop_id = raw.partition(':')
            try:
                refs.append(ShopRef.parse(store, shop_id))
            except ShopValidationError as e:
                raise serializers.ValidationError(str(e))
        return refs

    def validate(self, attrs):
        if not attrs['all'] and not attrs['refs']:
            raise serializers.ValidationError("Provide refs or set all to true")
        if attrs['all'] and attrs['refs']:
            raise serializers.ValidationError("refs and all are mutually exclusive")
        return attrs


class RenewShopSerializer(serializers.ModelSerializer):
    agent_code = serializers.CharField(source='agent.agent_code', read_only=True, default=None)

    class Meta:
        model = RenewShop
        fields = [
            'id',
            'shop_name',
            'owner_name',
            'mobile',
            'category',
            'district',
            'address',
            'original_store',
            'original_id',
            'agent',
            'agent_code',
            'plan_type',
            'amount',
            'commission',
            'expired_date',
            'original_created_at',
            'last_payment_date',
        ]
        read_only_fields = fields


class SweepQuerySerializer(serializers.Serializer):
    now = serializers.DateTimeField(required=False)
