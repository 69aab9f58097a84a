from dataclasses import asdict

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .permissions import IsAdminRole, IsBackOffice
from .serializers import (
    BulkDeleteSerializer,
    ErrorSerializer,
    ListedShopSerializer,
    ListingQuerySerializer,
    NearestQuerySerializer,
    PaymentSerializer,
    PlanChangeSerializer,
    RenewShopSerializer,
    ShopCreateSerializer,
    ShopRecordSerializer,
    SlotQuerySerializer,
    SweepQuerySerializer,
)
from .services import (
    Actor,
    ShopRef,
    change_plan,
    create_shop,
    delete_all_shops,
    delete_shops,
    expiry_stats,
    list_renewal_candidates,
    list_shops,
    mark_paid,
    nearest_shop_per_category,
    record_visit,
    renew,
    slot_shops,
    sweep_expired,
    # Exceptions
    InvalidStateError,
    NotFoundError,
    ShopsServiceError,
    ShopValidationError,
    UnauthorizedActionError,
)


def _error_response(e: ShopsServiceError) -> Response:
    """Map a service exception to an HTTP error response."""
    if isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, UnauthorizedActionError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(e, InvalidStateError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(e)}, status=code)


def _bulk_delete_payload(result):
    return {
        'deleted_count': result.deleted_count,
        'missing': result.missing,
        'deduction': asdict(result.deduction),
    }


# =============================================================================
# PUBLIC LISTING
# =============================================================================

@extend_schema(
    parameters=[
        OpenApiParameter('sort', OpenApiTypes.STR, description='nearby, popular or rated'),
        OpenApiParameter('lat', OpenApiTypes.FLOAT, description='Caller latitude'),
        OpenApiParameter('lng', OpenApiTypes.FLOAT, description='Caller longitude'),
        OpenApiParameter('page', OpenApiTypes.INT),
        OpenApiParameter('page_size', OpenApiTypes.INT),
    ],
    responses={200: ListedShopSerializer(many=True), 404: ErrorSerializer},
    description="Visible shops in a category, ranked and paged.",
    tags=['listing'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def category_shops(request, slug):
    """List a category's shops - thin HTTP handler."""
    query = ListingQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    try:
        result = list_shops(
            category=slug,
            sort_type=params['sort'],
            latitude=params.get('lat'),
            longitude=params.get('lng'),
            page=params['page'],
            page_size=params.get('page_size'),
        )
    except ShopsServiceError as e:
        return _error_response(e)

    return Response({
        'results': ListedShopSerializer(result.results, many=True).data,
        'page': result.page,
        'page_size': result.page_size,
        'total': result.total,
        'total_pages': result.total_pages,
        'has_more': result.has_more,
    })


@extend_schema(
    parameters=[
        OpenApiParameter('lat', OpenApiTypes.FLOAT, required=True),
        OpenApiParameter('lng', OpenApiTypes.FLOAT, required=True),
    ],
    responses={200: OpenApiTypes.OBJECT, 400: ErrorSerializer},
    description="Distance to the closest visible shop in every active category.",
    tags=['listing'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def nearest_shops(request):
    query = NearestQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    try:
        nearest = nearest_shop_per_category(
            latitude=query.validated_data['lat'],
            longitude=query.validated_data['lng'],
        )
    except ShopValidationError as e:
        return _error_response(e)

    return Response({
        'categories': {
            slug: {'distance': round(item.distance, 1), 'popularity': item.popularity}
            for slug, item in nearest.items()
        }
    })


@extend_schema(
    parameters=[OpenApiParameter('limit', OpenApiTypes.INT)],
    responses={200: ListedShopSerializer(many=True), 400: ErrorSerializer},
    description="Visible shops whose plan may fill a display slot, highest priority first.",
    tags=['listing'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def slot_listing(request, slot):
    query = SlotQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    try:
        items = slot_shops(slot=slot, limit=query.validated_data.get('limit'))
    except ShopsServiceError as e:
        return _error_response(e)

    return Response({
        'slot': slot.upper(),
        'results': ListedShopSerializer(items, many=True).data,
        'count': len(items),
    })


@extend_schema(request=None, responses={200: OpenApiTypes.OBJECT, 404: ErrorSerializer}, tags=['listing'])
@api_view(['POST'])
@permission_classes([AllowAny])
def shop_visit(request, store, shop_id):
    """Count a visit to a shop page."""
    try:
        count = record_visit(ref=ShopRef.parse(store, shop_id))
    except ShopsServiceError as e:
        return _error_response(e)
    return Response({'visitor_count': count})


# =============================================================================
# LIFECYCLE
# =============================================================================

@extend_schema(
    request=ShopCreateSerializer,
    responses={201: ShopRecordSerializer, 400: ErrorSerializer, 403: ErrorSerializer},
    description="Register a new shop; it stays hidden until paid.",
    tags=['shops'],
)
@api_view(['POST'])
@permission_classes([IsBackOffice])
def shop_create(request):
    serializer = ShopCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    store = data.pop('store', None)

    try:
        record = create_shop(data=data, actor=Actor.from_user(request.user), store=store)
    except ShopsServiceError as e:
        return _error_response(e)

    return Response(ShopRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=PaymentSerializer,
    responses={
        200: ShopRecordSerializer,
        403: ErrorSerializer,
        404: ErrorSerializer,
        409: ErrorSerializer,
    },
    description="Record an operator-asserted payment and start the paid window.",
    tags=['shops'],
)
@api_view(['POST'])
@permission_classes([IsBackOffice])
def shop_mark_paid(request, store, shop_id):
    serializer = PaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = mark_paid(
            ref=ShopRef.parse(store, shop_id),
            payment=serializer.to_payment_info(),
            actor=Actor.from_user(request.user),
        )
    except ShopsServiceError as e:
        return _error_response(e)

    return Response(ShopRecordSerializer(record).data)


@extend_schema(
    request=PlanChangeSerializer,
    responses={200: OpenApiTypes.OBJECT, 400: ErrorSerializer, 403: ErrorSerializer, 404: ErrorSerializer},
    description="Move a shop and its sibling record to another plan.",
    tags=['shops'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def shop_change_plan(request, store, shop_id):
    serializer = PlanChangeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        update = change_plan(
            ref=ShopRef.parse(store, shop_id),
            plan_type=serializer.validated_data['plan_type'],
            actor=Actor.from_user(request.user),
        )
    except ShopsServiceError as e:
        return _error_response(e)

    return Response({
        'shop': ShopRecordSerializer(update.record).data,
        'previous_plan': update.previous_plan,
        'sibling': ShopRecordSerializer(update.sibling).data if update.sibling else None,
        'sibling_error': update.sibling_error,
    })


@extend_schema(
    request=BulkDeleteSerializer,
    responses={200: OpenApiTypes.OBJECT, 403: ErrorSerializer},
    description="Hard delete shops after reversing their commission and revenue.",
    tags=['shops'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def shop_bulk_delete(request):
    serializer = BulkDeleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    actor = Actor.from_user(request.user)

    try:
        if serializer.validated_data['all']:
            result = delete_all_shops(actor=actor)
        else:
            result = delete_shops(refs=serializer.validated_data['refs'], actor=actor)
    except ShopsServiceError as e:
        return _error_response(e)

    return Response(_bulk_delete_payload(result))


# =============================================================================
# RENEWALS
# =============================================================================

@extend_schema(
    responses={200: RenewShopSerializer(many=True)},
    description="Expired shops waiting for renewal. Agents only see their own.",
    tags=['renewals'],
)
@api_view(['GET'])
@permission_classes([IsBackOffice])
def renewal_candidates(request):
    actor = Actor.from_user(request.user)
    candidates = list_renewal_candidates(agent_id=actor.agent_id if actor.is_agent else None)
    return Response(RenewShopSerializer(candidates, many=True).data)


@extend_schema(
    request=PaymentSerializer,
    responses={
        201: ShopRecordSerializer,
        403: ErrorSerializer,
        404: ErrorSerializer,
        409: ErrorSerializer,
    },
    description="Take a renewal payment; the shop is live again with a fresh window.",
    tags=['renewals'],
)
@api_view(['POST'])
@permission_classes([IsBackOffice])
def renewal_renew(request, candidate_id):
    serializer = PaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = renew(
            candidate_id=candidate_id,
            payment=serializer.to_payment_info(),
            actor=Actor.from_user(request.user),
        )
    except ShopsServiceError as e:
        return _error_response(e)

    return Response(ShopRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=SweepQuerySerializer,
    responses={200: OpenApiTypes.OBJECT},
    description="Move every shop whose paid window has ended to the holding area.",
    tags=['renewals'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def renewal_sweep(request):
    serializer = SweepQuerySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = sweep_expired(now=serializer.validated_data.get('now'))
    return Response({
        'moved_count': result.moved_count,
        'errors': [asdict(error) for error in result.errors],
    })


@extend_schema(responses={200: OpenApiTypes.OBJECT}, tags=['renewals'])
@api_view(['GET'])
@permission_classes([IsAdminRole])
def renewal_stats(request):
    return Response(asdict(expiry_stats()))
