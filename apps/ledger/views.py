from dataclasses import asdict

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.shops.permissions import IsAdminRole, IsBackOffice

from .models import Agent, RevenueEntry, ReconciliationTask
from .serializers import (
    AgentSerializer,
    ReconciliationTaskSerializer,
    RevenueEntrySerializer,
    RevenueQuerySerializer,
    recompute_payload,
)
from .services import (
    AgentNotFoundError,
    normalize_district,
    process_reconciliation_tasks,
    recompute_agent,
    recompute_all_agents,
)


class LedgerPagination(PageNumberPagination):
    """Custom pagination for ledger listings."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


@extend_schema(
    responses={200: AgentSerializer(many=True)},
    description="Agents with their cached totals. Agents only see themselves.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsBackOffice])
def agent_list(request):
    agents = Agent.objects.order_by('name')
    if request.user.is_agent and not request.user.is_admin:
        agents = agents.filter(pk=request.user.agent_id)

    paginator = LedgerPagination()
    page = paginator.paginate_queryset(agents, request)
    return paginator.get_paginated_response(AgentSerializer(page, many=True).data)


@extend_schema(
    request=None,
    responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    description="Rebuild one agent's totals from their shops.",
    tags=['ledger'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def agent_recompute(request, agent_id):
    try:
        result = recompute_agent(agent_id=agent_id)
    except AgentNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response(recompute_payload(result))


@extend_schema(
    request=None,
    responses={200: OpenApiTypes.OBJECT},
    description="Rebuild every agent's totals.",
    tags=['ledger'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def agent_recompute_all(request):
    results = recompute_all_agents()
    return Response({
        'processed': len(results),
        'corrected': sum(1 for r in results if r.changed),
        'updates': [recompute_payload(r) for r in results if r.changed],
    })


@extend_schema(
    parameters=[
        OpenApiParameter('district', OpenApiTypes.STR),
        OpenApiParameter('start_date', OpenApiTypes.DATE),
        OpenApiParameter('end_date', OpenApiTypes.DATE),
    ],
    responses={200: RevenueEntrySerializer(many=True)},
    description="District revenue by day.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAdminRole])
def revenue_list(request):
    query = RevenueQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    entries = RevenueEntry.objects.all()
    if params.get('district'):
        entries = entries.filter(district=normalize_district(params['district']))
    if params.get('start_date'):
        entries = entries.filter(date__gte=params['start_date'])
    if params.get('end_date'):
        entries = entries.filter(date__lte=params['end_date'])

    paginator = LedgerPagination()
    page = paginator.paginate_queryset(entries, request)
    return paginator.get_paginated_response(RevenueEntrySerializer(page, many=True).data)


@extend_schema(
    responses={200: ReconciliationTaskSerializer(many=True)},
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAdminRole])
def reconciliation_list(request):
    tasks = ReconciliationTask.objects.pending().select_related('agent')
    return Response(ReconciliationTaskSerializer(tasks, many=True).data)


@extend_schema(
    request=None,
    responses={200: OpenApiTypes.OBJECT},
    description="Apply or recompute ledger writes that failed earlier.",
    tags=['ledger'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def reconciliation_process(request):
    summary = process_reconciliation_tasks()
    return Response(asdict(summary))
