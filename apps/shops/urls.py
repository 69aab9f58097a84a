from django.urls import path
from . import views

app_name = 'shops'

urlpatterns = [
    # Public listing
    path('categories/nearest/', views.nearest_shops, name='nearest-shops'),
    path('categories/<slug:slug>/shops/', views.category_shops, name='category-shops'),
    path('slots/<str:slot>/shops/', views.slot_listing, name='slot-shops'),

    # Shops
    # POST /api/shops/shops/                            - Create (PENDING)
    # POST /api/shops/shops/delete/                     - Bulk delete with deductions (admin)
    # POST /api/shops/shops/{store}/{id}/mark-paid/     - Record payment
    # POST /api/shops/shops/{store}/{id}/plan/          - Change plan (admin)
    # POST /api/shops/shops/{store}/{id}/visit/         - Count a visit
    path('shops/', views.shop_create, name='shop-create'),
    path('shops/delete/', views.shop_bulk_delete, name='shop-bulk-delete'),
    path('shops/<str:store>/<int:shop_id>/mark-paid/', views.shop_mark_paid, name='shop-mark-paid'),
    path('shops/<str:store>/<int:shop_id>/plan/', views.shop_change_plan, name='shop-change-plan'),
    path('shops/<str:store>/<int:shop_id>/visit/', views.shop_visit, name='shop-visit'),

    # Renewals
    path('renewals/', views.renewal_candidates, name='renewal-list'),
    path('renewals/sweep/', views.renewal_sweep, name='renewal-sweep'),
    path('renewals/stats/', views.renewal_stats, name='renewal-stats'),
    path('renewals/<int:candidate_id>/renew/', views.renewal_renew, name='renewal-renew'),
]
