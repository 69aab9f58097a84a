from rest_framework import serializers

from .models import Agent, RevenueEntry, ReconciliationTask


class AgentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Agent
        fields = [
            'id',
            'name',
            'phone',
            'email',
            'agent_code',
            'total_shops',
            'total_earnings',
            'created_at',
        ]
        read_only_fields = ['id', 'total_shops', 'total_earnings', 'created_at']


class RevenueEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = RevenueEntry
        fields = [
            'id',
            'district',
            'date',
            'basic_plan_revenue',
            'premium_plan_revenue',
            'featured_plan_revenue',
            'left_bar_plan_revenue',
            'right_bar_plan_revenue',
            'banner_plan_revenue',
            'hero_plan_revenue',
            'basic_plan_count',
            'premium_plan_count',
            'featured_plan_count',
            'left_bar_plan_count',
            'right_bar_plan_count',
            'banner_plan_count',
            'hero_plan_count',
            'total_agent_commission',
            'total_revenue',
            'net_revenue',
        ]
        read_only_fields = fields


class ReconciliationTaskSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReconciliationTask
        fields = [
            'id',
            'kind',
            'status',
            'agent',
            'district',
            'date',
            'plan',
            'amount',
            'commission',
            'reason',
            'attempts',
            'last_error',
            'created_at',
            'resolved_at',
        ]
        read_only_fields = fields


class RevenueQuerySerializer(serializers.Serializer):
    district = serializers.CharField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError("start_date must be before end_date")
        return attrs


def recompute_payload(result):
    return {
        'agent_id': result.agent_id,
        'old_totals': {
            'total_shops': result.old_totals.total_shops,
            'total_earnings': result.old_totals.total_earnings,
        },
        'new_totals': {
            'total_shops': result.new_totals.total_shops,
            'total_earnings': result.new_totals.total_earnings,
        },
        'changed': result.changed,
    }
